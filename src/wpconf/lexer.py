"""
PHP source scanning for wpconf.

This is NOT a PHP parser. It only classifies regions of a file so that
the locator can tell real code apart from text that merely mentions a
name:
    - inline HTML outside <?php ... ?>
    - open and close tags
    - comments (//, #, /* */)
    - string literals ('...', "...", `...`, heredoc and nowdoc)
    - everything else is code

It also knows how to find the end of a value expression and how to
encode/decode PHP string literals.
"""

import bisect
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence


class PHPScanError(Exception):
    """Raised when a value expression cannot be delimited."""
    pass


HTML = "html"
OPEN_TAG = "open_tag"
CLOSE_TAG = "close_tag"
COMMENT = "comment"
STRING = "string"
CODE = "code"


@dataclass(frozen=True)
class Token:
    """A classified region of the source text, [start, end)."""
    kind: str
    start: int
    end: int
    quote: str = ""


_OPEN_TAG_RE = re.compile(r"<\?php(?=\s|$)|<\?=|<\?(?!xml)", re.IGNORECASE)
_SPECIAL_RE = re.compile(r"\?>|//|#(?!\[)|/\*|['\"`]|<<<")
_LINE_COMMENT_END_RE = re.compile(r"\n|\?>")
_HEREDOC_RE = re.compile(r"<<<[ \t]*([\"']?)([A-Za-z_\x80-\xff][A-Za-z0-9_\x80-\xff]*)\1\r?\n")
_SINGLE_ESCAPE_RE = re.compile(r"\\([\\'])")
_DOUBLE_ESCAPE_RE = re.compile(
    r"\\(?:([nrtvef\\$\"])|([0-7]{1,3})|x([0-9A-Fa-f]{1,2})|u\{([0-9A-Fa-f]+)\})"
)
_INTERPOLATION_RE = re.compile(r"(?<!\\)(?:\\\\)*(\$[A-Za-z_\x80-\xff{]|\{\$)")

_SIMPLE_ESCAPES = {
    "n": "\n", "r": "\r", "t": "\t", "v": "\v", "e": "\x1b", "f": "\f",
    "\\": "\\", "$": "$", '"': '"',
}


def _end_of_quoted(text: str, pos: int, quote: str) -> int:
    """Return the offset just past the closing quote starting at text[pos]."""
    i = pos + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        i += 1
    return n


def _end_of_heredoc(text: str, match: "re.Match") -> int:
    label = re.escape(match.group(2))
    closing = re.compile(r"^[ \t]*" + label + r"(?![A-Za-z0-9_\x80-\xff])", re.MULTILINE)
    found = closing.search(text, match.end())
    if found is None:
        return len(text)
    return found.end()


def tokenize(text: str) -> List[Token]:
    """
    Split PHP source text into classified regions.

    The regions cover the whole text without gaps or overlaps, in order.
    Unterminated comments and strings run to the end of the text.
    """
    tokens: List[Token] = []
    n = len(text)
    pos = 0
    in_php = False

    while pos < n:
        if not in_php:
            m = _OPEN_TAG_RE.search(text, pos)
            if m is None:
                tokens.append(Token(HTML, pos, n))
                break
            if m.start() > pos:
                tokens.append(Token(HTML, pos, m.start()))
            tokens.append(Token(OPEN_TAG, m.start(), m.end()))
            pos = m.end()
            in_php = True
            continue

        m = _SPECIAL_RE.search(text, pos)
        if m is None:
            tokens.append(Token(CODE, pos, n))
            break
        if m.start() > pos:
            tokens.append(Token(CODE, pos, m.start()))
        start = m.start()
        marker = m.group(0)

        if marker == "?>":
            tokens.append(Token(CLOSE_TAG, start, m.end()))
            pos = m.end()
            in_php = False
        elif marker in ("//", "#"):
            # A line comment stops at the newline or at a close tag
            end_match = _LINE_COMMENT_END_RE.search(text, m.end())
            end = end_match.start() if end_match else n
            tokens.append(Token(COMMENT, start, end))
            pos = end
        elif marker == "/*":
            end = text.find("*/", m.end())
            end = n if end == -1 else end + 2
            tokens.append(Token(COMMENT, start, end))
            pos = end
        elif marker == "<<<":
            doc = _HEREDOC_RE.match(text, start)
            if doc is None:
                tokens.append(Token(CODE, start, m.end()))
                pos = m.end()
                continue
            end = _end_of_heredoc(text, doc)
            tokens.append(Token(STRING, start, end, quote="<<<"))
            pos = end
        else:
            end = _end_of_quoted(text, start, marker)
            tokens.append(Token(STRING, start, end, quote=marker))
            pos = end

    return tokens


class SourceMap:
    """
    Tokenized view of a source text with offset lookups.

    `masked` is the text with comments, inline HTML and close tags blanked
    out (newlines kept) and every open tag turned into a ';' so that the
    start of PHP code reads like a statement boundary.
    """

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self._starts = [t.start for t in self.tokens]
        self.masked = self._build_mask()

    def _build_mask(self) -> str:
        parts = []
        for tok in self.tokens:
            chunk = self.text[tok.start:tok.end]
            if tok.kind in (COMMENT, HTML, CLOSE_TAG):
                parts.append(re.sub(r"[^\r\n]", " ", chunk))
            elif tok.kind == OPEN_TAG:
                parts.append(";" + " " * (len(chunk) - 1))
            else:
                parts.append(chunk)
        return "".join(parts)

    def token_at(self, offset: int) -> Optional[Token]:
        idx = bisect.bisect_right(self._starts, offset) - 1
        if idx < 0:
            return None
        tok = self.tokens[idx]
        if tok.start <= offset < tok.end:
            return tok
        return None

    def is_code(self, offset: int) -> bool:
        tok = self.token_at(offset)
        return tok is not None and tok.kind == CODE

    def previous_significant_offset(self, offset: int) -> int:
        """Offset of the last non-blank masked character before offset, -1 if none."""
        i = offset - 1
        masked = self.masked
        while i >= 0:
            tok = self.token_at(i)
            if tok is not None and tok.kind == STRING:
                return i
            if not masked[i].isspace():
                return i
            i -= 1
        return -1

    def previous_significant(self, offset: int) -> str:
        """Last non-blank masked character before offset, '' at start of text."""
        i = self.previous_significant_offset(offset)
        return self.masked[i] if i >= 0 else ""

    def opening_bracket(self, close: int) -> int:
        """Offset of the '(' matching the ')' at close, -1 if unbalanced."""
        masked = self.masked
        depth = 0
        i = close
        while i >= 0:
            tok = self.token_at(i)
            if tok is not None and tok.kind == STRING:
                i = tok.start - 1
                continue
            if masked[i] == ")":
                depth += 1
            elif masked[i] == "(":
                depth -= 1
                if depth == 0:
                    return i
            i -= 1
        return -1

    def word_before(self, end: int) -> str:
        """Identifier ending at offset end (inclusive), '' when masked[end] is not part of one."""
        masked = self.masked
        i = end
        while i >= 0 and (masked[i].isalnum() or masked[i] == "_"):
            i -= 1
        if i >= 0 and masked[i] in "$>:\\":
            return ""
        return masked[i + 1:end + 1]

    def scan_expression(self, start: int, terminators: Sequence[str]) -> int:
        """
        Find the offset of the first terminator at bracket depth zero.

        Strings are skipped whole, comments are blank in the mask.
        Raises PHPScanError when the expression runs into a close tag,
        an unbalanced bracket, or the end of the text.
        """
        masked = self.masked
        n = len(masked)
        depth = 0
        i = start
        while i < n:
            tok = self.token_at(i)
            if tok is not None:
                if tok.kind == STRING:
                    i = tok.end
                    continue
                if tok.kind in (CLOSE_TAG, HTML):
                    raise PHPScanError(f"Expression starting at {start} leaves PHP code")
            ch = masked[i]
            if depth == 0 and ch in terminators:
                return i
            if ch in "([{":
                depth += 1
            elif ch in ")]}":
                depth -= 1
                if depth < 0:
                    raise PHPScanError(f"Unbalanced '{ch}' at {i}")
            i += 1
        raise PHPScanError(f"Expression starting at {start} is not terminated")

    def rstrip_offset(self, start: int, end: int) -> int:
        """Offset just past the last non-blank masked character in [start, end)."""
        i = end
        while i > start:
            tok = self.token_at(i - 1)
            if tok is not None and tok.kind == STRING:
                return i
            if not self.masked[i - 1].isspace():
                return i
            i -= 1
        return start

    def string_literal(self, start: int, end: int) -> Optional[Token]:
        """Return the token when [start, end) is exactly one quoted string literal."""
        tok = self.token_at(start)
        if tok is None or tok.kind != STRING or tok.quote not in ("'", '"'):
            return None
        if tok.start != start or tok.end != end:
            return None
        return tok


def decode_php_string(literal: str) -> Optional[str]:
    """
    Decode a single- or double-quoted PHP string literal.

    Returns None for double-quoted strings that interpolate variables,
    since their value is only known at runtime.
    """
    if len(literal) < 2 or literal[0] != literal[-1] or literal[0] not in "'\"":
        return None
    body = literal[1:-1]
    if literal[0] == "'":
        return _SINGLE_ESCAPE_RE.sub(lambda m: m.group(1), body)

    if _INTERPOLATION_RE.search(body):
        return None

    def _replace(m):
        if m.group(1):
            return _SIMPLE_ESCAPES[m.group(1)]
        if m.group(2):
            return chr(int(m.group(2), 8) & 0xFF)
        if m.group(3):
            return chr(int(m.group(3), 16))
        return chr(int(m.group(4), 16))

    return _DOUBLE_ESCAPE_RE.sub(_replace, body)


def quote_php_string(value: str) -> str:
    """Render value as a single-quoted PHP literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"
