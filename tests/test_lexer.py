"""Tests for the protocol-language lexer.

WHY: Statement separators are inserted by the lexer, not written by
users. The fallback scaffolding relies on exactly where they appear
(a line comment must not swallow the closing brace, an explicit ';'
must join scaffold and fragment on one line).

HOW: Tokenizes short strings and compares (type, value) pairs.
"""

import pytest

from protocol_compiler.errors import ParseError, ParseErrorKind
from protocol_compiler.lang.lexer import tokenize
from protocol_compiler.lang.tokens import Token, TokenType

T = TokenType


def kinds(text):
    return [(t.type, t.value) for t in tokenize(text)]


class TestSemicolonInsertion:
    """Newlines end statements after identifiers, literals and closers."""

    def test_after_literal(self):
        assert kinds("x := 1\n") == [
            (T.IDENT, "x"),
            (T.OP, ":="),
            (T.INT, "1"),
            (T.SEMICOLON, "\n"),
            (T.EOF, ""),
        ]

    def test_at_end_of_input(self):
        assert kinds("f()") == [
            (T.IDENT, "f"),
            (T.OP, "("),
            (T.OP, ")"),
            (T.SEMICOLON, "\n"),
            (T.EOF, ""),
        ]

    def test_not_after_operator(self):
        assert kinds("x +\ny") == [
            (T.IDENT, "x"),
            (T.OP, "+"),
            (T.IDENT, "y"),
            (T.SEMICOLON, "\n"),
            (T.EOF, ""),
        ]

    def test_not_after_open_brace(self):
        assert kinds("{\n}") == [
            (T.OP, "{"),
            (T.OP, "}"),
            (T.SEMICOLON, "\n"),
            (T.EOF, ""),
        ]

    def test_after_return_and_increment(self):
        assert [v for _, v in kinds("return\nx++\n")] == ["return", "\n", "x", "++", "\n", ""]

    def test_explicit_semicolon(self):
        assert kinds("protocol p;") == [
            (T.KEYWORD, "protocol"),
            (T.IDENT, "p"),
            (T.SEMICOLON, ";"),
            (T.EOF, ""),
        ]

    def test_blank_lines_insert_once(self):
        assert kinds("a\n\n\nb") == [
            (T.IDENT, "a"),
            (T.SEMICOLON, "\n"),
            (T.IDENT, "b"),
            (T.SEMICOLON, "\n"),
            (T.EOF, ""),
        ]


class TestComments:
    """Comments are dropped but still end lines."""

    def test_line_comment(self):
        tokens = tokenize("a // note\nb")
        assert [(t.type, t.value, t.offset) for t in tokens] == [
            (T.IDENT, "a", 0),
            (T.SEMICOLON, "\n", 9),
            (T.IDENT, "b", 10),
            (T.SEMICOLON, "\n", 11),
            (T.EOF, "", 11),
        ]

    def test_single_line_block_comment(self):
        assert kinds("a /* x */ b") == [
            (T.IDENT, "a"),
            (T.IDENT, "b"),
            (T.SEMICOLON, "\n"),
            (T.EOF, ""),
        ]

    def test_multi_line_block_comment_acts_as_newline(self):
        assert kinds("a /* x\ny */ b") == [
            (T.IDENT, "a"),
            (T.SEMICOLON, "\n"),
            (T.IDENT, "b"),
            (T.SEMICOLON, "\n"),
            (T.EOF, ""),
        ]

    def test_unterminated_block_comment(self):
        with pytest.raises(ParseError, match="comment not terminated"):
            tokenize("a /* x")


class TestLiterals:
    """Numbers, strings and runes."""

    @pytest.mark.parametrize("text,kind", [
        ("10", T.INT),
        ("0x1F", T.INT),
        ("1_000", T.INT),
        ("1.5", T.FLOAT),
        (".5", T.FLOAT),
        ("1e3", T.FLOAT),
        ("2.5e-3", T.FLOAT),
    ])
    def test_numbers(self, text, kind):
        assert kinds(text)[0] == (kind, text)

    def test_string_with_escape(self):
        assert kinds(r'"a\"b"')[0] == (T.STRING, r'"a\"b"')

    def test_raw_string_spans_lines(self):
        assert kinds("`a\nb`")[0] == (T.STRING, "`a\nb`")

    def test_rune(self):
        assert kinds("'x'")[0] == (T.CHAR, "'x'")

    def test_unterminated_string(self):
        with pytest.raises(ParseError) as exc:
            tokenize('x := "abc\n')
        assert exc.value.message == "string literal not terminated"
        assert exc.value.kind is ParseErrorKind.OTHER

    def test_unterminated_raw_string(self):
        with pytest.raises(ParseError, match="raw string literal not terminated"):
            tokenize("`abc")


class TestIdentifiers:
    """Keywords, section names and unicode identifiers."""

    def test_keywords(self):
        assert kinds("func var")[:2] == [(T.KEYWORD, "func"), (T.KEYWORD, "var")]

    def test_section_names_are_identifiers(self):
        assert kinds("Steps Parameters")[:2] == [(T.IDENT, "Steps"), (T.IDENT, "Parameters")]

    def test_unicode_identifier(self):
        assert kinds("été := 1")[0] == (T.IDENT, "été")

    def test_invalid_character(self):
        with pytest.raises(ParseError, match="invalid character '@'"):
            tokenize("x := @")


class TestDescribe:
    """Token.describe() is how tokens are quoted in error messages."""

    def test_eof(self):
        assert Token(T.EOF, "", 0).describe() == "EOF"

    def test_newline(self):
        assert Token(T.SEMICOLON, "\n", 0).describe() == "newline"

    def test_ident(self):
        assert Token(T.IDENT, "x", 0).describe() == "'x'"

    def test_literal(self):
        assert Token(T.INT, "1", 0).describe() == "int literal 1"
