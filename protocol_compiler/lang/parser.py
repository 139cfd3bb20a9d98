"""Recursive-descent parser for protocol-language source units.

WHY: The compiler pipeline needs a parser that accepts exactly one
grammar level, a complete source unit, and that reports *why* it
rejected an input in a form the fallback logic can branch on.

HOW: The lexer produces a complete token list with statement
separators already inserted. Parser walks it with one token of
lookahead (two at top level, to recognise protocol sections). Every
error is a ParseError with a resolved position and a ParseErrorKind.

RULES:
- The first token must be 'protocol' or 'package', else MISSING_HEADER
- After the header and imports, every top-level item must be a
  declaration, else MISSING_DECLARATION
- Every other syntax error is OTHER
- Each parse registers its text in the PositionRegistry it is given
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple, Union

from protocol_compiler.core.source import PositionRegistry, RegisteredFile
from protocol_compiler.errors import ParseError, ParseErrorKind
from protocol_compiler.lang import nodes
from protocol_compiler.lang.lexer import tokenize
from protocol_compiler.lang.tokens import (
    ASSIGN_OPERATORS,
    BINARY_PRECEDENCE,
    CODE_BLOCKS,
    DECLARATION_KEYWORDS,
    FIELD_BLOCKS,
    HEADER_KEYWORDS,
    UNARY_OPERATORS,
    Token,
    TokenType,
)

logger = logging.getLogger(__name__)


class Parser:
    """Parser over a pre-lexed token list."""

    def __init__(self, tokens: List[Token], source: RegisteredFile):
        self.tokens = tokens
        self.source = source
        self.index = 0
        self.prev: Optional[Token] = None

    # -- token helpers ------------------------------------------------------

    @property
    def tok(self) -> Token:
        return self.tokens[self.index]

    def peek(self) -> Token:
        return self.tokens[min(self.index + 1, len(self.tokens) - 1)]

    def next(self) -> Token:
        token = self.tok
        if token.type is not TokenType.EOF:
            self.index += 1
        self.prev = token
        return token

    def at(self, type_: TokenType, value: Optional[str] = None) -> bool:
        return self.tok.type is type_ and (value is None or self.tok.value == value)

    def at_op(self, value: str) -> bool:
        return self.at(TokenType.OP, value)

    def accept_op(self, value: str) -> bool:
        if self.at_op(value):
            self.next()
            return True
        return False

    def error(
        self,
        message: str,
        token: Optional[Token] = None,
        kind: ParseErrorKind = ParseErrorKind.OTHER,
    ) -> ParseError:
        token = token or self.tok
        return ParseError(message, self.source.position(token.offset), kind)

    def expected(self, what: str, kind: ParseErrorKind = ParseErrorKind.OTHER) -> ParseError:
        return self.error(f"expected {what}, found {self.tok.describe()}", kind=kind)

    def expect(self, type_: TokenType, value: Optional[str] = None) -> Token:
        if not self.at(type_, value):
            raise self.expected(f"'{value}'" if value else type_.value)
        return self.next()

    def expect_op(self, value: str) -> Token:
        return self.expect(TokenType.OP, value)

    def expect_ident(self) -> str:
        return self.expect(TokenType.IDENT).value

    def expect_separator(self, closing: str) -> None:
        """Require ';' unless the enclosing list closes right here."""
        if self.at(TokenType.SEMICOLON):
            self.next()
        elif not self.at_op(closing):
            raise self.expected(f"';' or '{closing}'")

    def line_of(self, offset: int) -> int:
        return self.source.position(offset).line

    # -- source unit --------------------------------------------------------

    def parse_unit(self, filename: str) -> nodes.ParsedUnit:
        if not (self.at(TokenType.KEYWORD) and self.tok.value in HEADER_KEYWORDS):
            raise self.expected("'protocol'", ParseErrorKind.MISSING_HEADER)
        kind = nodes.UnitKind(self.next().value)
        name = self.expect_ident()
        self.end_top_level()
        unit = nodes.ParsedUnit(filename=filename, kind=kind, name=name)

        while self.at(TokenType.KEYWORD, "import"):
            unit.imports.append(self.parse_gen_decl())
            self.end_top_level()

        while not self.at(TokenType.EOF):
            unit.decls.append(self.parse_decl())
            self.end_top_level()
        return unit

    def end_top_level(self) -> None:
        if self.at(TokenType.SEMICOLON):
            self.next()
        elif not self.at(TokenType.EOF):
            raise self.expected("';'")

    def parse_decl(self) -> nodes.Decl:
        tok = self.tok
        if tok.type is TokenType.KEYWORD:
            if tok.value == "func":
                return self.parse_func()
            if tok.value in DECLARATION_KEYWORDS:
                return self.parse_gen_decl()
            if tok.value == "import":
                raise self.error("imports must appear before other declarations")
        if tok.type is TokenType.IDENT:
            follower = self.peek()
            if tok.value in FIELD_BLOCKS and follower.type is TokenType.OP and follower.value == "(":
                return self.parse_field_block()
            if tok.value in CODE_BLOCKS and follower.type is TokenType.OP and follower.value == "{":
                self.next()
                return nodes.CodeBlock(keyword=tok.value, body=self.parse_block())
        raise self.expected("declaration", ParseErrorKind.MISSING_DECLARATION)

    # -- declarations -------------------------------------------------------

    def parse_gen_decl(self) -> nodes.GenDecl:
        keyword = self.next().value
        decl = nodes.GenDecl(keyword=keyword)
        if self.accept_op("("):
            decl.grouped = True
            while not self.at_op(")"):
                decl.specs.append(self.parse_spec(keyword))
                self.expect_separator(")")
            self.expect_op(")")
        else:
            decl.specs.append(self.parse_spec(keyword))
        return decl

    def parse_spec(self, keyword: str) -> nodes.Spec:
        if keyword == "import":
            name = None
            if self.at(TokenType.IDENT):
                name = self.next().value
            elif self.accept_op("."):
                name = "."
            return nodes.ImportSpec(path=self.expect(TokenType.STRING).value, name=name)
        if keyword == "type":
            name = self.expect_ident()
            return nodes.TypeSpec(name=name, type=self.parse_type())
        spec = nodes.ValueSpec(names=self.parse_ident_list())
        if not (self.at_op("=") or self.at(TokenType.SEMICOLON) or self.at_op(")")):
            spec.type = self.parse_type()
        if self.accept_op("="):
            spec.values = self.parse_expr_list()
        elif keyword == "const" and spec.type is not None:
            raise self.expected("'='")
        return spec

    def parse_ident_list(self) -> List[str]:
        names = [self.expect_ident()]
        while self.accept_op(","):
            names.append(self.expect_ident())
        return names

    def parse_func(self) -> nodes.FuncDecl:
        self.next()
        name = self.expect_ident()
        params = self.parse_params()
        results: List[nodes.Field] = []
        if self.at_op("("):
            results = self.parse_params()
        elif not self.at_op("{"):
            results = [nodes.Field(names=[], type=self.parse_type())]
        return nodes.FuncDecl(name=name, params=params, results=results, body=self.parse_block())

    def parse_params(self) -> List[nodes.Field]:
        self.expect_op("(")
        entries: List[Tuple[Token, nodes.Expr, Optional[nodes.Expr]]] = []
        while not self.at_op(")"):
            start = self.tok
            first = self.parse_type()
            second = None
            if not (self.at_op(",") or self.at_op(")")):
                second = self.parse_type()
            entries.append((start, first, second))
            if not self.accept_op(","):
                break
        self.expect_op(")")

        if all(second is None for _, _, second in entries):
            return [nodes.Field(names=[], type=first) for _, first, _ in entries]

        fields: List[nodes.Field] = []
        pending: List[str] = []
        for start, first, second in entries:
            if not isinstance(first, nodes.Ident):
                raise self.error("mixed named and unnamed parameters", start)
            pending.append(first.name)
            if second is not None:
                fields.append(nodes.Field(names=pending, type=second))
                pending = []
        if pending:
            raise self.error("mixed named and unnamed parameters", entries[-1][0])
        return fields

    def parse_field_list(self, closing: str) -> List[nodes.Field]:
        fields: List[nodes.Field] = []
        while not self.at_op(closing):
            names = self.parse_ident_list()
            fields.append(nodes.Field(names=names, type=self.parse_type()))
            self.expect_separator(closing)
        self.expect_op(closing)
        return fields

    def parse_field_block(self) -> nodes.FieldBlock:
        keyword = self.next().value
        self.expect_op("(")
        return nodes.FieldBlock(keyword=keyword, fields=self.parse_field_list(")"))

    # -- types --------------------------------------------------------------

    def parse_type(self) -> nodes.Expr:
        tok = self.tok
        if tok.type is TokenType.IDENT:
            self.next()
            typ: nodes.Expr = nodes.Ident(tok.value)
            if self.accept_op("."):
                typ = nodes.Selector(typ, self.expect_ident())
            return typ
        if self.accept_op("*"):
            return nodes.Star(self.parse_type())
        if self.accept_op("("):
            typ = self.parse_type()
            self.expect_op(")")
            return nodes.Paren(typ)
        if self.accept_op("["):
            length = None
            if not self.at_op("]"):
                length = self.parse_expr()
            self.expect_op("]")
            return nodes.ArrayType(elt=self.parse_type(), length=length)
        if self.at(TokenType.KEYWORD, "map"):
            self.next()
            self.expect_op("[")
            key = self.parse_type()
            self.expect_op("]")
            return nodes.MapType(key=key, value=self.parse_type())
        if self.at(TokenType.KEYWORD, "struct"):
            self.next()
            self.expect_op("{")
            return nodes.StructType(fields=self.parse_field_list("}"))
        raise self.expected("type")

    # -- statements ---------------------------------------------------------

    def parse_block(self) -> nodes.Block:
        self.expect_op("{")
        block = nodes.Block()
        prev_end: Optional[int] = None
        while not self.at_op("}") and not self.at(TokenType.EOF):
            if self.at(TokenType.SEMICOLON):
                self.next()
                continue
            start_line = self.line_of(self.tok.offset)
            block.stmts.append(self.parse_stmt())
            block.blank_before.append(prev_end is not None and start_line > prev_end + 1)
            prev_end = self.line_of(self.prev.offset + len(self.prev.value))
            if not self.at_op("}"):
                self.expect(TokenType.SEMICOLON)
        self.expect_op("}")
        return block

    def parse_stmt(self) -> nodes.Stmt:
        tok = self.tok
        if tok.type is TokenType.KEYWORD:
            if tok.value == "return":
                self.next()
                results: List[nodes.Expr] = []
                if not (self.at(TokenType.SEMICOLON) or self.at_op("}")):
                    results = self.parse_expr_list()
                return nodes.Return(results=results)
            if tok.value in ("break", "continue"):
                self.next()
                return nodes.Branch(keyword=tok.value)
            if tok.value == "if":
                return self.parse_if()
            if tok.value == "for":
                return self.parse_for()
            if tok.value in ("var", "const", "type"):
                return nodes.DeclStmt(decl=self.parse_gen_decl())
            if tok.value not in ("map", "struct"):
                raise self.expected("statement")
        if self.at_op("{"):
            return self.parse_block()
        return self.parse_simple_stmt()

    def parse_simple_stmt(self, range_ok: bool = False) -> nodes.Stmt:
        if range_ok and self.at(TokenType.KEYWORD, "range"):
            self.next()
            return nodes.Range(x=self.parse_expr(), body=nodes.Block())

        start = self.tok
        lhs = self.parse_expr_list()

        if self.at(TokenType.OP) and self.tok.value in ASSIGN_OPERATORS:
            op = self.next().value
            if range_ok and op in ("=", ":=") and self.at(TokenType.KEYWORD, "range"):
                self.next()
                if len(lhs) > 2:
                    raise self.error("range clause permits at most two iteration variables", start)
                return nodes.Range(
                    x=self.parse_expr(),
                    body=nodes.Block(),
                    key=lhs[0],
                    value=lhs[1] if len(lhs) > 1 else None,
                    define=op == ":=",
                )
            rhs = self.parse_expr_list()
            if op == ":=" and not all(isinstance(x, nodes.Ident) for x in lhs):
                raise self.error("non-name on left side of :=", start)
            if op not in ("=", ":=") and (len(lhs) != 1 or len(rhs) != 1):
                raise self.error(f"assignment operation {op} requires single-valued expressions", start)
            return nodes.Assign(lhs=lhs, op=op, rhs=rhs)

        if self.at_op("++") or self.at_op("--"):
            if len(lhs) != 1:
                raise self.expected("1 expression")
            return nodes.IncDec(x=lhs[0], op=self.next().value)

        if len(lhs) != 1:
            raise self.expected("':=' or '='")
        return nodes.ExprStmt(x=lhs[0])

    def as_condition(self, stmt: Optional[nodes.Stmt], keyword: str) -> nodes.Expr:
        if isinstance(stmt, nodes.ExprStmt):
            return stmt.x
        raise self.error(f"expected boolean expression as {keyword} condition", self.prev)

    def parse_if(self) -> nodes.If:
        self.next()
        if self.at_op("{"):
            raise self.error("missing condition in if statement")
        init: Optional[nodes.Stmt] = None
        stmt = self.parse_simple_stmt()
        if self.at(TokenType.SEMICOLON, ";"):
            self.next()
            init = stmt
            cond = self.parse_expr()
        else:
            cond = self.as_condition(stmt, "if")
        node = nodes.If(cond=cond, body=self.parse_block(), init=init)
        if self.at(TokenType.KEYWORD, "else"):
            self.next()
            if self.at(TokenType.KEYWORD, "if"):
                node.else_ = self.parse_if()
            elif self.at_op("{"):
                node.else_ = self.parse_block()
            else:
                raise self.expected("if statement or block")
        return node

    def parse_for(self) -> Union[nodes.For, nodes.Range]:
        self.next()
        node = nodes.For(body=nodes.Block())
        if not self.at_op("{"):
            stmt: Optional[nodes.Stmt] = None
            if not self.at(TokenType.SEMICOLON):
                stmt = self.parse_simple_stmt(range_ok=True)
                if isinstance(stmt, nodes.Range):
                    stmt.body = self.parse_block()
                    return stmt
            if self.at(TokenType.SEMICOLON):
                self.next()
                node.init = stmt
                if not self.at(TokenType.SEMICOLON):
                    node.cond = self.parse_expr()
                self.expect(TokenType.SEMICOLON)
                if not self.at_op("{"):
                    node.post = self.parse_simple_stmt()
            else:
                node.cond = self.as_condition(stmt, "for")
        node.body = self.parse_block()
        return node

    # -- expressions --------------------------------------------------------

    def parse_expr_list(self) -> List[nodes.Expr]:
        exprs = [self.parse_expr()]
        while self.accept_op(","):
            exprs.append(self.parse_expr())
        return exprs

    def parse_expr(self, min_prec: int = 1) -> nodes.Expr:
        x = self.parse_unary()
        while self.at(TokenType.OP) and BINARY_PRECEDENCE.get(self.tok.value, 0) >= min_prec:
            op = self.next().value
            y = self.parse_expr(BINARY_PRECEDENCE[op] + 1)
            x = nodes.Binary(x, op, y)
        return x

    def parse_unary(self) -> nodes.Expr:
        if self.at(TokenType.OP) and self.tok.value in UNARY_OPERATORS:
            op = self.next().value
            x = self.parse_unary()
            if op == "*":
                return nodes.Star(x)
            return nodes.Unary(op, x)
        return self.parse_primary()

    def parse_primary(self) -> nodes.Expr:
        x = self.parse_operand()
        while True:
            if self.accept_op("."):
                x = nodes.Selector(x, self.expect_ident())
            elif self.at_op("("):
                x = self.parse_call(x)
            elif self.at_op("["):
                x = self.parse_index(x)
            else:
                return x

    def parse_operand(self) -> nodes.Expr:
        tok = self.tok
        if tok.type is TokenType.IDENT:
            self.next()
            return nodes.Ident(tok.value)
        if tok.type in _LITERAL_KINDS:
            self.next()
            return nodes.BasicLit(_LITERAL_KINDS[tok.type], tok.value)
        if self.accept_op("("):
            x = self.parse_expr()
            self.expect_op(")")
            return nodes.Paren(x)
        if self.at_op("[") or self.at(TokenType.KEYWORD, "map") or self.at(TokenType.KEYWORD, "struct"):
            return self.parse_type()
        raise self.expected("operand")

    def parse_call(self, fun: nodes.Expr) -> nodes.Call:
        self.expect_op("(")
        call = nodes.Call(fun=fun)
        while not self.at_op(")"):
            call.args.append(self.parse_expr())
            if self.accept_op("..."):
                call.ellipsis = True
            if not self.accept_op(","):
                break
        self.expect_op(")")
        return call

    def parse_index(self, x: nodes.Expr) -> nodes.Expr:
        self.expect_op("[")
        low = None
        if not self.at_op(":"):
            low = self.parse_expr()
        if self.accept_op(":"):
            high = None
            if not self.at_op("]"):
                high = self.parse_expr()
            self.expect_op("]")
            return nodes.Slice(x, low, high)
        self.expect_op("]")
        return nodes.Index(x, low)


_LITERAL_KINDS = {
    TokenType.INT: "int",
    TokenType.FLOAT: "float",
    TokenType.STRING: "string",
    TokenType.CHAR: "char",
}


def parse_unit(
    filename: str,
    src: Union[bytes, str],
    registry: Optional[PositionRegistry] = None,
) -> nodes.ParsedUnit:
    """Parse ``src`` as a complete source unit.

    Raises:
        ParseError: with ``kind`` set to why the unit was rejected.
    """
    if isinstance(src, bytes):
        try:
            text = src.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"{filename}: invalid UTF-8 encoding at byte {e.start}") from None
    else:
        text = src
    if registry is None:
        registry = PositionRegistry()
    source = registry.add_file(filename, text)
    tokens = tokenize(text, source)
    logger.debug("Parsing %s (%d tokens)", filename, len(tokens))
    return Parser(tokens, source).parse_unit(filename)
