"""
PHP execution backend.

Runs the config source with the `php` command line binary inside a
generated wrapper script. Every call gets its own PHP process and its
own temporary directory, so each introspection starts from a clean
global scope.

The wrapper:
    1. captures defined constants, variables and included files
    2. evaluates the config source inline in global scope, with any
       output it prints buffered away
    3. captures again
    4. writes both captures as JSON to a result file
"""

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from wpconf.backends.base import ExecutionContext, ExecutionTrace
from wpconf.errors import ExecutionFailedError
from wpconf.model import EnvironmentSnapshot

logger = logging.getLogger(__name__)

WRAPPER_VARIABLES = (
    "__wpconf_before",
    "__wpconf_source",
    "__wpconf_output",
    "__wpconf_error",
    "__wpconf_after",
    "__wpconf_json",
)

SUPERGLOBALS = (
    "GLOBALS", "_SERVER", "_GET", "_POST", "_FILES", "_COOKIE",
    "_SESSION", "_REQUEST", "_ENV", "argv", "argc",
)

_JSON_FLAGS = "JSON_PARTIAL_OUTPUT_ON_ERROR | JSON_UNESCAPED_SLASHES | JSON_INVALID_UTF8_SUBSTITUTE"


def _capture_expression() -> str:
    return (
        "array("
        "'constants' => get_defined_constants(), "
        "'variables' => array_diff_key(get_defined_vars(), array('GLOBALS' => 1)), "
        "'included_files' => get_included_files()"
        ")"
    )


def build_wrapper() -> str:
    """
    Generate the PHP wrapper script.

    Usage: php wrapper.php <source-file> <result-file>
    """
    lines: List[str] = []

    lines.append("<?php")
    # =========================================================================
    # BEFORE (must be the first statement: no wrapper variables exist yet)
    # =========================================================================
    lines.append(f"$__wpconf_before = {_capture_expression()};")
    lines.append("$__wpconf_source = file_get_contents($argv[1]);")
    lines.append("$__wpconf_output = $argv[2];")

    # =========================================================================
    # EXECUTE
    # =========================================================================
    lines.append("ob_start();")
    lines.append("try {")
    lines.append("    eval('?>' . $__wpconf_source);")
    lines.append("} catch (Throwable $__wpconf_error) {")
    lines.append("    ob_end_clean();")
    lines.append("    fwrite(STDERR, get_class($__wpconf_error) . ': ' . $__wpconf_error->getMessage()"
                 " . ' on line ' . $__wpconf_error->getLine() . PHP_EOL);")
    lines.append("    exit(2);")
    lines.append("}")
    lines.append("ob_end_clean();")

    # =========================================================================
    # AFTER
    # =========================================================================
    lines.append(f"$__wpconf_after = {_capture_expression()};")
    lines.append("$__wpconf_json = json_encode(")
    lines.append("    array('before' => $__wpconf_before, 'after' => $__wpconf_after),")
    lines.append(f"    {_JSON_FLAGS}")
    lines.append(");")
    lines.append("if ($__wpconf_json === false) {")
    lines.append("    fwrite(STDERR, 'Could not encode snapshot: ' . json_last_error_msg() . PHP_EOL);")
    lines.append("    exit(3);")
    lines.append("}")
    lines.append("file_put_contents($__wpconf_output, $__wpconf_json);")

    return "\n".join(lines) + "\n"


class PhpExecutionContext(ExecutionContext):
    """
    Execution context backed by the php CLI binary.

    Properties:
        binary: PHP executable name or path
        timeout: Seconds before the PHP process is killed
        ini: Extra -d settings passed to php
    """

    bookkeeping_names = WRAPPER_VARIABLES + SUPERGLOBALS

    def __init__(self, binary: str = "php", timeout: float = 30,
                 ini: Optional[Sequence[str]] = None):
        self.binary = binary
        self.timeout = timeout
        self.ini = list(ini or ("display_errors=stderr", "log_errors=0"))

    def _command(self, wrapper: Path, source: Path, result: Path) -> List[str]:
        command = [self.binary]
        for setting in self.ini:
            command.extend(["-d", setting])
        command.extend([str(wrapper), str(source), str(result)])
        return command

    def execute(self, source: str, path: Path) -> ExecutionTrace:
        path = Path(path)
        with tempfile.TemporaryDirectory(prefix="wpconf-") as tmp:
            tmp_dir = Path(tmp)
            wrapper = tmp_dir / "wrapper.php"
            source_file = tmp_dir / "source.php"
            result_file = tmp_dir / "result.json"
            wrapper.write_text(build_wrapper(), encoding="utf-8")
            source_file.write_text(source, encoding="utf-8", errors="surrogateescape")

            command = self._command(wrapper, source_file, result_file)
            logger.debug("Running %s in %s", " ".join(command), path.parent)
            try:
                completed = subprocess.run(
                    command,
                    cwd=str(path.parent),
                    capture_output=True,
                    text=True,
                    errors="replace",
                    timeout=self.timeout,
                )
            except FileNotFoundError as exc:
                raise ExecutionFailedError(
                    f"PHP binary '{self.binary}' not found. Install PHP or set WPCONF_PHP.",
                    context={"binary": self.binary},
                ) from exc
            except subprocess.TimeoutExpired as exc:
                raise ExecutionFailedError(
                    f"Executing '{path}' timed out after {self.timeout} seconds.",
                    context={"path": str(path)},
                ) from exc

            if completed.returncode != 0:
                detail = (completed.stderr or completed.stdout).strip()
                raise ExecutionFailedError(
                    f"Failed to execute '{path}': {detail or 'exit code ' + str(completed.returncode)}",
                    context={"path": str(path), "returncode": completed.returncode},
                )
            if not result_file.exists():
                raise ExecutionFailedError(
                    f"'{path}' stopped the PHP process before it finished loading.",
                    context={"path": str(path)},
                )

            try:
                data = json.loads(result_file.read_text(encoding="utf-8"))
            except ValueError as exc:
                raise ExecutionFailedError(
                    f"Could not decode the snapshot of '{path}': {exc}", context={"path": str(path)}
                ) from exc

        return ExecutionTrace(
            before=EnvironmentSnapshot.from_dict(data.get("before") or {}),
            after=EnvironmentSnapshot.from_dict(data.get("after") or {}),
        )
