"""
Config Introspector: what does the config file actually define?

The answer comes from executing the file, not from reading it, because
a config may branch on conditionals, include other files, or compute
values at runtime. The execution context captures the environment
before and after, and the difference is the listing.

IMPORTANT: Executing the file runs its code for real. Side effects of
the config itself (opening connections, writing files) are not
sandboxed away; only the global scope is fresh for every call.
"""

from __future__ import annotations

import difflib
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from wpconf.backends.base import ExecutionContext
from wpconf.backends.php import PhpExecutionContext
from wpconf.errors import AmbiguousKindError, NotFoundError
from wpconf.file_io import read_text
from wpconf.lexer import quote_php_string
from wpconf.model import ConfigEntry, EntryType, Kind
from wpconf.snapshot import diff, diff_includes

logger = logging.getLogger(__name__)

# Loading wp-settings.php would boot all of WordPress
_SETTINGS_REQUIRE_RE = re.compile(
    r"^[ \t]*(?:require|include)(?:_once)?\s*\(?\s*ABSPATH\s*\.\s*['\"]wp-settings\.php['\"]\s*\)?\s*;[^\n]*\n?",
    re.MULTILINE | re.IGNORECASE,
)
_FILE_CONSTANT_RE = re.compile(r"(?<![A-Za-z0-9_\x80-\xff$>:])__(FILE|DIR)__(?![A-Za-z0-9_\x80-\xff])")


def prepare_source(text: str, path: Union[str, Path]) -> str:
    """
    Make config source safe to evaluate outside its file.

    Drops the wp-settings.php bootstrap and pins __FILE__ and __DIR__
    to the real file location, since evaluated code would otherwise
    report the wrapper's location.
    """
    path = Path(path).resolve()
    text = _SETTINGS_REQUIRE_RE.sub("", text)
    literals = {
        "FILE": quote_php_string(str(path)),
        "DIR": quote_php_string(str(path.parent)),
    }
    return _FILE_CONSTANT_RE.sub(lambda m: literals[m.group(1)], text)


class ConfigIntrospector:
    """
    Lists the constants, variables and includes a config file produces.

    Properties:
        context: ExecutionContext used to run the file. Defaults to a
            PhpExecutionContext using the `php` binary on PATH.
    """

    def __init__(self, context: Optional[ExecutionContext] = None):
        self.context = context or PhpExecutionContext()

    def list_entries(self, path: Union[str, Path]) -> List[ConfigEntry]:
        """
        Execute the config file and report what it introduced.

        Returns:
            Variables, then constants, then included files, each group
            in the order the execution defined them

        Raises:
            ConfigIOError: The file cannot be read
            ExecutionFailedError: The file failed to execute
        """
        path = Path(path)
        source = prepare_source(read_text(path), path)
        trace = self.context.execute(source, path)

        variables = diff(trace.before.variables, trace.after.variables, EntryType.VARIABLE,
                         exclude=self.context.bookkeeping_names)
        constants = diff(trace.before.constants, trace.after.constants, EntryType.CONSTANT)
        includes = diff_includes(trace.before, trace.after)

        logger.debug("%s defines %d variables, %d constants, %d includes",
                     path, len(variables), len(constants), len(includes))
        return variables + constants + includes


def filter_entries(entries: Iterable[ConfigEntry], filters: Sequence[str],
                   strict: bool = False) -> List[ConfigEntry]:
    """
    Keep entries whose name matches any filter.

    A filter matches when it is a substring of the name, or equal to the
    name when strict is set. Without filters every entry is kept.
    """
    entries = list(entries)
    if not filters:
        return entries
    result = []
    for entry in entries:
        for flt in filters:
            if strict and flt != entry.name:
                continue
            if flt not in entry.name:
                continue
            result.append(entry)
            break
    return result


def _matches_kind(entry: ConfigEntry, kind: Kind) -> bool:
    if kind is Kind.ALL:
        return entry.type in (EntryType.CONSTANT, EntryType.VARIABLE)
    return entry.type.value == kind.value


def get_value(entries: Iterable[ConfigEntry], name: str, kind: Kind = Kind.ALL):
    """
    Value of a single constant or variable from an introspection listing.

    Raises:
        AmbiguousKindError: kind is Kind.ALL and the name is both a
            constant and a variable
        NotFoundError: No match; carries the closest existing name as a
            suggestion when there is one
    """
    entries = list(entries)
    matches = [e for e in entries if e.name == name and _matches_kind(e, kind)]
    if len(matches) > 1:
        raise AmbiguousKindError(name)
    if matches:
        return matches[0].value

    label = "constant or variable" if kind is Kind.ALL else kind.value
    names = [e.name for e in entries if _matches_kind(e, kind)]
    candidates = difflib.get_close_matches(name, names, n=1)
    suggestion = candidates[0] if candidates and candidates[0] != name else None
    raise NotFoundError(name, label, suggestion=suggestion)
