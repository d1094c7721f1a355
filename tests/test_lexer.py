"""
Tests for PHP source scanning.
"""

import pytest

from wpconf.lexer import (
    CLOSE_TAG,
    CODE,
    COMMENT,
    HTML,
    OPEN_TAG,
    STRING,
    PHPScanError,
    SourceMap,
    decode_php_string,
    quote_php_string,
    tokenize,
)


def kinds(text):
    return [(t.kind, text[t.start:t.end]) for t in tokenize(text)]


class TestTokenize:
    """Region classification."""

    def test_regions_cover_text(self):
        text = "<html>\n<?php $a = 'x'; // note\n/* block */ ?>\ntail"
        tokens = tokenize(text)
        assert tokens[0].start == 0
        assert tokens[-1].end == len(text)
        for prev, nxt in zip(tokens, tokens[1:]):
            assert prev.end == nxt.start

    def test_classification(self):
        text = "<b><?php $a = 'x'; # hash\n?>c"
        assert kinds(text) == [
            (HTML, "<b>"),
            (OPEN_TAG, "<?php"),
            (CODE, " $a = "),
            (STRING, "'x'"),
            (CODE, "; "),
            (COMMENT, "# hash"),
            (CODE, "\n"),
            (CLOSE_TAG, "?>"),
            (HTML, "c"),
        ]

    def test_line_comment_stops_at_close_tag(self):
        text = "<?php // c ?>after"
        assert (COMMENT, "// c ") in kinds(text)
        assert (HTML, "after") in kinds(text)

    def test_quotes_inside_comment_do_not_open_strings(self):
        text = "<?php /* it's */ $a = 1;"
        assert [k for k, _ in kinds(text)] == [OPEN_TAG, CODE, COMMENT, CODE]

    def test_heredoc_is_one_string(self):
        text = "<?php\n$a = <<<EOT\nit's $b\nEOT;\n"
        strings = [chunk for kind, chunk in kinds(text) if kind == STRING]
        assert strings == ["<<<EOT\nit's $b\nEOT"]

    def test_unterminated_comment_runs_to_end(self):
        text = "<?php /* open"
        assert kinds(text)[-1] == (COMMENT, "/* open")


class TestSourceMap:
    """Masking and expression scanning."""

    def test_mask_keeps_length_and_newlines(self):
        text = "<?php\n// comment\n$a = 1;\n"
        source = SourceMap(text)
        assert len(source.masked) == len(text)
        assert source.masked.count("\n") == text.count("\n")
        assert "comment" not in source.masked
        assert source.masked.startswith(";")

    def test_previous_significant_skips_comments(self):
        text = "<?php $a = 1; /* x */ $b = 2;"
        source = SourceMap(text)
        assert source.previous_significant(text.index("$b")) == ";"

    def test_scan_expression_respects_brackets_and_strings(self):
        text = "<?php $a = array( 'x;', f(1) ); $b;"
        source = SourceMap(text)
        end = source.scan_expression(text.index("array"), ";")
        assert text[end - 1] == ")"
        assert text[end:] == "; $b;"

    def test_scan_expression_unbalanced(self):
        text = "<?php $a = 1 ); "
        source = SourceMap(text)
        with pytest.raises(PHPScanError):
            source.scan_expression(text.index("1"), ";")

    def test_scan_expression_stops_at_close_tag(self):
        text = "<?php $a = 1 ?>"
        source = SourceMap(text)
        with pytest.raises(PHPScanError):
            source.scan_expression(text.index("1"), ";")


class TestStringLiterals:
    """Decoding and quoting."""

    def test_single_quoted(self):
        assert decode_php_string(r"'it\'s a \\ path \n'") == "it's a \\ path \\n"

    def test_double_quoted_escapes(self):
        assert decode_php_string(r'"tab\there \x41\101 \$x"') == "tab\there AA $x"

    def test_double_quoted_interpolation(self):
        assert decode_php_string('"hello $name"') is None
        assert decode_php_string('"hello {$name}"') is None

    def test_not_a_literal(self):
        assert decode_php_string("true") is None
        assert decode_php_string("'open") is None

    def test_quote(self):
        assert quote_php_string("it's") == "'it\\'s'"
        assert quote_php_string("C:\\path") == "'C:\\\\path'"

    @pytest.mark.parametrize("value", ["plain", "it's", "back\\slash\\", "\\'", "", "$notavar"])
    def test_quote_then_decode(self, value):
        assert decode_php_string(quote_php_string(value)) == value
