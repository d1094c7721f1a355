"""
Config Transformer: format-preserving edits to a wp-config.php file.

Each public operation is one read-modify-write cycle over the whole file:
    - exists: is a constant/variable defined?
    - update: change the value of a definition, or add it at the anchor
    - remove: delete a definition and its line

IMPORTANT: Only the located statement (or the inserted region) changes.
Every other byte of the file is written back untouched. The file is
never executed here; see wpconf.introspector for runtime values.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Tuple, Union

from wpconf import anchor as anchors
from wpconf import locator
from wpconf.errors import AmbiguousKindError, NotFoundError
from wpconf.file_io import content_hash, read_text, write_text_atomic
from wpconf.lexer import quote_php_string
from wpconf.model import Definition, Kind, TransformOptions, UpdateResult

logger = logging.getLogger(__name__)

_TRAILING_COMMENT_RE = re.compile(r"[ \t]*(?:(?://|#).*|/\*(?:(?!\*/).)*\*/[ \t]*)?\r?$")


def render_value(value: str, raw: bool = False) -> str:
    """Render a value as PHP source: verbatim when raw, else a quoted literal."""
    if raw:
        return str(value)
    return quote_php_string(str(value))


def render_statement(kind: Kind, name: str, value: str, raw: bool = False) -> str:
    """Render a complete new definition statement."""
    rendered = render_value(value, raw)
    if kind is Kind.CONSTANT:
        return f"define({quote_php_string(name)}, {rendered});"
    if kind is Kind.VARIABLE:
        return f"${name} = {rendered};"
    raise ValueError(f"Cannot render a statement of kind {kind!r}")


def _kind_label(kind: Kind) -> str:
    return "constant or variable" if kind is Kind.ALL else kind.value


def _removal_bounds(text: str, definition: Definition) -> Tuple[int, int]:
    """Region to delete so that no blank line is left behind."""
    start, end = definition.span
    line_start = text.rfind("\n", 0, start) + 1
    newline = text.find("\n", end)
    line_end = len(text) if newline == -1 else newline
    next_line_start = len(text) if newline == -1 else newline + 1

    before = text[line_start:start]
    after = text[end:line_end]
    if not before.strip() and _TRAILING_COMMENT_RE.fullmatch(after):
        if newline == -1 and line_start > 0:
            # Last line without terminator: eat the previous line break instead
            prev = line_start - 1
            if prev > 0 and text[prev - 1] == "\r":
                prev -= 1
            return prev, line_end
        return line_start, next_line_start

    # Other code shares the line: drop the statement and the blanks after it
    trailing = len(after) - len(after.lstrip(" \t"))
    stop = end + trailing
    if stop == line_end or text[stop:line_end] == "\r":
        leading = len(before) - len(before.rstrip(" \t"))
        return start - leading, stop
    return start, stop


class ConfigTransformer:
    """
    Edits one config file in place.

    The transformer holds no file state between calls: every operation
    reads the current text, computes the complete new text, and replaces
    the file atomically. If the file changes on disk between the read and
    the write, ConfigChangedError is raised instead of clobbering it.

    Properties:
        path: Path of the config file
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self) -> str:
        return read_text(self.path)

    def _write(self, original: str, updated: str) -> None:
        write_text_atomic(self.path, updated, expected_hash=content_hash(original))

    def find(self, kind: Kind, name: str, text: str | None = None):
        """Return the effective Definition of (kind, name) or None."""
        if text is None:
            text = self.read()
        return locator.find(text, kind, name)

    def exists(self, kind: Kind, name: str) -> bool:
        """
        Check whether a definition exists.

        With Kind.ALL both namespaces are checked; finding the name as a
        constant AND as a variable raises AmbiguousKindError.
        """
        text = self.read()
        if kind.is_concrete:
            return locator.find(text, kind, name) is not None
        has_constant = locator.find(text, Kind.CONSTANT, name) is not None
        has_variable = locator.find(text, Kind.VARIABLE, name) is not None
        if has_constant and has_variable:
            raise AmbiguousKindError(name)
        return has_constant or has_variable

    def resolve_kind(self, kind: Kind, name: str) -> Kind:
        """
        Map a requested kind to the concrete kind present in the file.

        Raises:
            AmbiguousKindError: Kind.ALL and both kinds are defined
            NotFoundError: Nothing of the requested kind is defined
        """
        text = self.read()
        if kind.is_concrete:
            if locator.find(text, kind, name) is None:
                raise NotFoundError(name, kind.value)
            return kind
        has_constant = locator.find(text, Kind.CONSTANT, name) is not None
        has_variable = locator.find(text, Kind.VARIABLE, name) is not None
        if has_constant and has_variable:
            raise AmbiguousKindError(name)
        if has_constant:
            return Kind.CONSTANT
        if has_variable:
            return Kind.VARIABLE
        raise NotFoundError(name, _kind_label(kind))

    def update(self, kind: Kind, name: str, value: str,
               options: TransformOptions | None = None) -> UpdateResult:
        """
        Set the value of a constant or variable.

        An existing definition keeps its statement framing (keyword, name
        quoting, spacing, extra define() arguments, inline comment); only
        its value expression is replaced. A missing one is inserted at the
        anchor when options.add is set.

        Raises:
            ValueError: kind is Kind.ALL
            NotFoundError: Missing and options.add is False
            AnchorNotFoundError: Missing and the anchor line is absent
        """
        if not kind.is_concrete:
            raise ValueError("update() needs a concrete kind, resolve Kind.ALL first")
        options = options or TransformOptions()

        text = self.read()
        definition = locator.find(text, kind, name)

        if definition is not None:
            start, end = definition.value_span
            updated = text[:start] + render_value(value, options.raw) + text[end:]
            created = False
        elif options.add:
            statement = render_statement(kind, name, value, options.raw)
            updated = anchors.insert(text, options.anchor, statement)
            created = True
        else:
            raise NotFoundError(name, kind.value)

        if updated != text:
            self._write(text, updated)
        logger.info("%s %s '%s' in %s", "Added" if created else "Updated", kind.value, name, self.path)
        return UpdateResult(kind=kind, name=name, created=created)

    def remove(self, kind: Kind, name: str) -> None:
        """
        Delete the effective definition of a constant or variable.

        Raises:
            ValueError: kind is Kind.ALL
            NotFoundError: Nothing to delete
        """
        if not kind.is_concrete:
            raise ValueError("remove() needs a concrete kind, resolve Kind.ALL first")

        text = self.read()
        definition = locator.find(text, kind, name)
        if definition is None:
            raise NotFoundError(name, kind.value)

        start, end = _removal_bounds(text, definition)
        self._write(text, text[:start] + text[end:])
        logger.info("Removed %s '%s' from %s", kind.value, name, self.path)
