"""
Anchor Resolver.

New definitions are inserted relative to a marker line, by default the
"/* That's all, stop editing! */" comment of a stock wp-config.php.
"""

import logging

from wpconf.errors import AnchorNotFoundError
from wpconf.model import AnchorSpec, Placement

logger = logging.getLogger(__name__)

_SEPARATOR_ESCAPES = (("\\n", "\n"), ("\\r", "\r"), ("\\t", "\t"))


def _line_bounds(text: str, offset: int):
    """Return (line_start, next_line_start) of the line holding offset."""
    line_start = text.rfind("\n", 0, offset) + 1
    newline = text.find("\n", offset)
    next_line_start = len(text) if newline == -1 else newline + 1
    return line_start, next_line_start


def locate(text: str, anchor: AnchorSpec) -> int:
    """
    Find where a new definition goes.

    Args:
        text: Full config file text
        anchor: AnchorSpec with the marker text and placement

    Returns:
        Offset of the start of the first line containing the marker
        (BEFORE), or the offset just past that line's terminator (AFTER)

    Raises:
        AnchorNotFoundError: If no line contains the marker
    """
    if not anchor.marker_text:
        raise AnchorNotFoundError(anchor.marker_text)
    hit = text.find(anchor.marker_text)
    if hit == -1:
        raise AnchorNotFoundError(anchor.marker_text)

    line_start, next_line_start = _line_bounds(text, hit)
    offset = line_start if anchor.placement is Placement.BEFORE else next_line_start
    logger.debug("Anchor %r found on line starting at %d, insertion offset %d",
                 anchor.marker_text, line_start, offset)
    return offset


def insert(text: str, anchor: AnchorSpec, statement: str) -> str:
    """
    Insert statement next to the anchor line, joined by the anchor's separator.

    Only the inserted region differs from the input text.
    """
    offset = locate(text, anchor)
    if offset == len(text) and text and not text.endswith("\n"):
        # AFTER an anchor on a final line without terminator
        addition = anchor.separator + statement
    else:
        addition = statement + anchor.separator
    return text[:offset] + addition + text[offset:]


def parse_separator(separator: str) -> str:
    """
    Interpret the escape sequences a user can type on the command line.

    '\\n' becomes a newline, '\\r' a carriage return and '\\t' a tab.
    """
    for escaped, actual in _SEPARATOR_ESCAPES:
        separator = separator.replace(escaped, actual)
    return separator
