"""File access for the config file.

Text is read and written without newline translation so that CRLF files
keep their line endings byte for byte. Writes go to a temporary file in
the same directory which is fsync'd and then renamed over the target, so
a reader never sees a half written config.
"""
from __future__ import annotations

import hashlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

from wpconf.errors import ConfigChangedError, ConfigIOError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


CONFIG_FILENAME = "wp-config.php"


def locate_config(start: Optional[PathLike] = None) -> Optional[Path]:
    """Find the wp-config.php governing ``start`` (default: the working directory).

    Walks up the directory tree. WordPress also accepts a wp-config.php one
    level above its root, as long as that parent is not another install.
    """
    current = Path(start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if (directory / "wp-settings.php").is_file():
            parent = directory.parent
            if (parent / CONFIG_FILENAME).is_file() and not (parent / "wp-settings.php").is_file():
                return parent / CONFIG_FILENAME
            return None
    return None


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8", "surrogateescape")).hexdigest()


def read_text(path: PathLike, encoding: str = "utf-8") -> str:
    """Read the whole file, raising ConfigIOError on failure."""
    try:
        with open(path, "r", encoding=encoding, errors="surrogateescape", newline="") as fh:
            return fh.read()
    except OSError as exc:
        raise ConfigIOError(
            f"Could not read '{path}': {exc.strerror or exc}", context={"path": str(path)}
        ) from exc


def write_text_atomic(
    path: PathLike,
    text: str,
    *,
    expected_hash: Optional[str] = None,
    encoding: str = "utf-8",
) -> None:
    """Atomically replace ``path`` with ``text``.

    - Data is written to a temporary file in the target's directory
    - The temp file gets the target's permission bits, is fsync'd, then renamed
    - When ``expected_hash`` is given and the file on disk no longer matches
      it, ConfigChangedError is raised and nothing is written
    - Any leftover temp file is removed on failure
    """
    path = Path(path)

    if expected_hash is not None and path.exists():
        current = read_text(path, encoding=encoding)
        if content_hash(current) != expected_hash:
            raise ConfigChangedError(
                f"'{path}' was modified by another process; refusing to overwrite it.",
                context={"path": str(path)},
            )

    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding=encoding,
            errors="surrogateescape",
            newline="",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            delete=False,
        ) as fh:
            tmp_path = Path(fh.name)
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        if path.exists():
            shutil.copymode(str(path), str(tmp_path))
        os.replace(str(tmp_path), str(path))
        tmp_path = None
        logger.debug("Wrote %d characters to %s", len(text), path)
    except OSError as exc:
        raise ConfigIOError(
            f"Could not write '{path}': {exc.strerror or exc}", context={"path": str(path)}
        ) from exc
    finally:
        if tmp_path is not None and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                logger.warning("Could not remove temporary file %s", tmp_path)
