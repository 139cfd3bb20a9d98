"""Token kinds, keyword tables and operator tables for the protocol language."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenType(str, enum.Enum):
    IDENT = "identifier"
    INT = "int literal"
    FLOAT = "float literal"
    STRING = "string literal"
    CHAR = "rune literal"
    KEYWORD = "keyword"
    OP = "operator"
    SEMICOLON = "semicolon"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A single token; ``offset`` is relative to the lexed text."""

    type: TokenType
    value: str
    offset: int

    def describe(self) -> str:
        """Render the token the way error messages quote it."""
        if self.type is TokenType.EOF:
            return "EOF"
        if self.type is TokenType.SEMICOLON and self.value == "\n":
            return "newline"
        if self.type in (TokenType.IDENT, TokenType.KEYWORD, TokenType.OP, TokenType.SEMICOLON):
            return f"'{self.value}'"
        return f"{self.type.value} {self.value}"


HEADER_KEYWORDS = frozenset({"protocol", "package"})

KEYWORDS = frozenset({
    "protocol",
    "package",
    "import",
    "func",
    "var",
    "const",
    "type",
    "struct",
    "map",
    "return",
    "if",
    "else",
    "for",
    "range",
    "break",
    "continue",
})

DECLARATION_KEYWORDS = frozenset({"func", "var", "const", "type"})

# Protocol sections. These stay identifiers in the lexer and are only
# recognised at top level when followed by their opening bracket.
FIELD_BLOCKS = ("Parameters", "Data", "Inputs", "Outputs")
CODE_BLOCKS = ("Requirements", "Setup", "Steps", "Analysis", "Validation")

# Longest first so the lexer can match greedily.
OPERATORS = (
    "<<=", ">>=", "&^=", "...",
    "&&", "||", "++", "--", "==", "!=", "<=", ">=", ":=",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<", ">>", "&^",
    "+", "-", "*", "/", "%", "&", "|", "^", "<", ">", "=", "!",
    "(", ")", "[", "]", "{", "}", ",", ".", ":", ";",
)

ASSIGN_OPERATORS = frozenset({
    "=", ":=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", ">>=", "&^=",
})

BINARY_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "==": 3, "!=": 3, "<": 3, "<=": 3, ">": 3, ">=": 3,
    "+": 4, "-": 4, "|": 4, "^": 4,
    "*": 5, "/": 5, "%": 5, "<<": 5, ">>": 5, "&": 5, "&^": 5,
}

UNARY_OPERATORS = frozenset({"+", "-", "!", "^", "*", "&"})

# A newline directly after one of these ends the statement.
_TERMINATING_KEYWORDS = frozenset({"return", "break", "continue"})
_TERMINATING_OPERATORS = frozenset({")", "]", "}", "++", "--"})


def ends_statement(token: Token) -> bool:
    """Whether a newline after ``token`` inserts a statement separator."""
    if token.type in (TokenType.IDENT, TokenType.INT, TokenType.FLOAT,
                      TokenType.STRING, TokenType.CHAR):
        return True
    if token.type is TokenType.KEYWORD:
        return token.value in _TERMINATING_KEYWORDS
    if token.type is TokenType.OP:
        return token.value in _TERMINATING_OPERATORS
    return False
