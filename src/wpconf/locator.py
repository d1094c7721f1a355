"""
Definition Locator.

Scans raw config text for the statements that define a given constant
or variable:

    define( 'NAME', value [, case_insensitive] );
    $NAME = value;

Matching is tolerant of whitespace and line breaks inside the statement,
of single or double quotes around the constant name, and of a trailing
inline comment. Occurrences inside comments, string literals or inline
HTML are ignored, and a statement is only recognized where a statement
can start, including the body of a brace-less `if`, `else` or loop.

When a name is defined more than once the LAST occurrence wins, the same
way the last assignment wins at runtime. `find_all` exposes every
occurrence so callers can detect duplicates.
"""

import logging
import re
from typing import List, Optional

from wpconf.lexer import PHPScanError, SourceMap, decode_php_string
from wpconf.model import Definition, Kind

logger = logging.getLogger(__name__)

# Characters after which a new statement may begin (';' also stands in for an open tag)
_STATEMENT_BOUNDARIES = ("", ";", "{", "}", ":")
# Brace-less bodies: `if (...) stmt;`, `else stmt;`
_CONTROL_HEADERS = ("if", "elseif", "while", "for", "foreach")
_CONTROL_KEYWORDS = ("else", "do")


def _at_statement_start(source: SourceMap, start: int) -> bool:
    prev = source.previous_significant_offset(start)
    if prev < 0 or source.masked[prev] in _STATEMENT_BOUNDARIES:
        return True
    if source.masked[prev] == ")":
        opening = source.opening_bracket(prev)
        if opening < 0:
            return False
        header = source.previous_significant_offset(opening)
        return header >= 0 and source.word_before(header).lower() in _CONTROL_HEADERS
    return source.word_before(prev).lower() in _CONTROL_KEYWORDS


def _constant_pattern(name: str) -> "re.Pattern":
    return re.compile(
        r"(?<![A-Za-z0-9_\x80-\xff$>\\:])(?i:define)\s*\(\s*(['\"])" + re.escape(name) + r"\1\s*,"
    )


def _variable_pattern(name: str) -> "re.Pattern":
    return re.compile(
        r"(?<!\$)\$" + re.escape(name) + r"\s*=(?![=>])"
    )


def _build_definition(source: SourceMap, kind: Kind, name: str,
                      start: int, value_start: int) -> Optional[Definition]:
    """Delimit the value and statement end of a candidate match."""
    masked = source.masked
    terminators = ",)" if kind is Kind.CONSTANT else ";"
    try:
        value_end = source.scan_expression(value_start, terminators)
        if kind is Kind.CONSTANT and masked[value_end] == ",":
            # Optional third argument of define()
            close = source.scan_expression(value_end + 1, ")")
        elif kind is Kind.CONSTANT:
            close = value_end
        else:
            close = None
    except PHPScanError as exc:
        logger.debug("Skipping %s '%s' at %d: %s", kind.value, name, start, exc)
        return None

    if close is not None:
        semicolon = re.compile(r"\s*;").match(masked, close + 1)
        if semicolon is None:
            logger.debug("Skipping %s '%s' at %d: define() is not a statement", kind.value, name, start)
            return None
        end = semicolon.end()
    else:
        end = value_end + 1

    # Trim blanks and comments around the value expression
    value_start = value_start + (len(masked[value_start:value_end]) - len(masked[value_start:value_end].lstrip()))
    trimmed_end = source.rstrip_offset(value_start, value_end)
    if trimmed_end <= value_start:
        return None

    raw_value = source.text[value_start:trimmed_end]
    literal = source.string_literal(value_start, trimmed_end)
    decoded = decode_php_string(raw_value) if literal is not None else None

    return Definition(
        name=name,
        kind=kind,
        value=decoded if decoded is not None else raw_value,
        raw_value=raw_value,
        span=(start, end),
        value_span=(value_start, trimmed_end),
        quoted=decoded is not None,
    )


def find_all(text: str, kind: Kind, name: str) -> List[Definition]:
    """
    Return every definition of (kind, name) in file order.

    Args:
        text: Full config file text
        kind: Kind.CONSTANT or Kind.VARIABLE
        name: Constant or variable name (no leading $)

    Returns:
        List of Definition objects, possibly empty
    """
    if not kind.is_concrete:
        raise ValueError("find_all() needs a concrete kind, not Kind.ALL")

    source = SourceMap(text)
    pattern = _constant_pattern(name) if kind is Kind.CONSTANT else _variable_pattern(name)

    found: List[Definition] = []
    for match in pattern.finditer(source.masked):
        start = match.start()
        if not source.is_code(start):
            continue
        if not _at_statement_start(source, start):
            continue
        definition = _build_definition(source, kind, name, start, match.end())
        if definition is None:
            continue
        if found and definition.start < found[-1].end:
            continue
        found.append(definition)

    return found


def find(text: str, kind: Kind, name: str) -> Optional[Definition]:
    """
    Locate the effective definition of (kind, name).

    Returns the last occurrence, or None when the name is not defined.
    Not finding a definition is a normal outcome, never an error.
    """
    found = find_all(text, kind, name)
    if not found:
        return None
    if len(found) > 1:
        logger.debug("%s '%s' is defined %d times; using the last one", kind.value, name, len(found))
    return found[-1]
