"""Lexical analyzer for the protocol language.

Converts source text into a flat token list, inserting statement
separators at line ends the way Go does, so the parser never sees raw
newlines.
"""

from __future__ import annotations

import re
from typing import List, Optional

from protocol_compiler.core.source import RegisteredFile
from protocol_compiler.errors import ParseError
from protocol_compiler.lang.tokens import KEYWORDS, OPERATORS, Token, TokenType, ends_statement

_IDENT_RE = re.compile(r"[^\W\d]\w*")
_DIGITS = "0123456789"
_NUMBER_RE = re.compile(
    r"0[xX][0-9a-fA-F_]+"
    r"|(?:[0-9][0-9_]*\.[0-9_]*|\.[0-9][0-9_]*)(?:[eE][+-]?[0-9]+)?"
    r"|[0-9][0-9_]*[eE][+-]?[0-9]+"
    r"|[0-9][0-9_]*"
)


class Lexer:
    """Tokenizer for protocol-language source."""

    def __init__(self, text: str, source: Optional[RegisteredFile] = None):
        self.text = text
        self.source = source
        self.pos = 0
        self.tokens: List[Token] = []

    def error(self, message: str, offset: Optional[int] = None) -> ParseError:
        position = None
        if self.source is not None:
            position = self.source.position(self.pos if offset is None else offset)
        return ParseError(message, position)

    def tokenize(self) -> List[Token]:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\n":
                self._newline(self.pos)
                self.pos += 1
            elif ch in " \t\r":
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = len(text) if end < 0 else end
            elif text.startswith("/*", self.pos):
                self._block_comment()
            elif ch.isalpha() or ch == "_":
                self._identifier()
            elif ch in _DIGITS or (ch == "." and self._peek_char() in _DIGITS):
                self._number()
            elif ch == '"':
                self._string()
            elif ch == "`":
                self._raw_string()
            elif ch == "'":
                self._char()
            else:
                self._operator()
        self._newline(len(text))
        self.tokens.append(Token(TokenType.EOF, "", len(text)))
        return self.tokens

    def _peek_char(self) -> str:
        if self.pos + 1 < len(self.text):
            return self.text[self.pos + 1]
        return " "

    def _newline(self, offset: int) -> None:
        if self.tokens and ends_statement(self.tokens[-1]):
            self.tokens.append(Token(TokenType.SEMICOLON, "\n", offset))

    def _block_comment(self) -> None:
        start = self.pos
        end = self.text.find("*/", self.pos + 2)
        if end < 0:
            raise self.error("comment not terminated", start)
        if "\n" in self.text[start:end]:
            self._newline(start)
        self.pos = end + 2

    def _identifier(self) -> None:
        match = _IDENT_RE.match(self.text, self.pos)
        value = match.group()
        kind = TokenType.KEYWORD if value in KEYWORDS else TokenType.IDENT
        self.tokens.append(Token(kind, value, self.pos))
        self.pos = match.end()

    def _number(self) -> None:
        match = _NUMBER_RE.match(self.text, self.pos)
        value = match.group()
        is_float = not value.lower().startswith("0x") and any(c in value for c in ".eE")
        kind = TokenType.FLOAT if is_float else TokenType.INT
        self.tokens.append(Token(kind, value, self.pos))
        self.pos = match.end()

    def _quoted(self, quote: str, kind: TokenType, what: str) -> None:
        start = self.pos
        i = self.pos + 1
        while True:
            if i >= len(self.text) or self.text[i] == "\n":
                raise self.error(f"{what} literal not terminated", start)
            ch = self.text[i]
            if ch == "\\":
                i += 2
                continue
            i += 1
            if ch == quote:
                break
        self.tokens.append(Token(kind, self.text[start:i], start))
        self.pos = i

    def _string(self) -> None:
        self._quoted('"', TokenType.STRING, "string")

    def _char(self) -> None:
        self._quoted("'", TokenType.CHAR, "rune")

    def _raw_string(self) -> None:
        start = self.pos
        end = self.text.find("`", start + 1)
        if end < 0:
            raise self.error("raw string literal not terminated", start)
        self.tokens.append(Token(TokenType.STRING, self.text[start:end + 1], start))
        self.pos = end + 1

    def _operator(self) -> None:
        for op in OPERATORS:
            if self.text.startswith(op, self.pos):
                kind = TokenType.SEMICOLON if op == ";" else TokenType.OP
                self.tokens.append(Token(kind, op, self.pos))
                self.pos += len(op)
                return
        raise self.error(f"invalid character {self.text[self.pos]!r}")


def tokenize(text: str, source: Optional[RegisteredFile] = None) -> List[Token]:
    """Tokenize ``text``; positions in errors resolve through ``source``."""
    return Lexer(text, source).tokenize()
