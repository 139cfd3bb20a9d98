"""Syntax tree dataclasses for the protocol language.

WHY: The parser and the printer need a shared, typed description of a
source unit. Keeping the node set small and plain (no behaviour beyond
trivial properties) lets the printer be a straightforward tree walk.

HOW: Expressions, statements and declarations are separate dataclass
families. ParsedUnit is the root and carries the discriminant the
compilation driver checks: whether the header was a protocol clause,
and the declared name.

RULES:
- Names are plain strings; positions live only on errors
- Block.blank_before[i] is True when the source had a blank line
  before statement i (the printer keeps at most one)
- Type expressions reuse Ident, Selector and Star where Go does
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Union


class Expr:
    """Marker base for expression and type nodes."""


class Stmt:
    """Marker base for statement nodes."""


class Decl:
    """Marker base for top-level declarations."""


# ---------------------------------------------------------------------------
# Expressions and types
# ---------------------------------------------------------------------------


@dataclass
class Ident(Expr):
    name: str


@dataclass
class BasicLit(Expr):
    kind: str  # "int", "float", "string" or "char"
    value: str


@dataclass
class Paren(Expr):
    x: Expr


@dataclass
class Selector(Expr):
    x: Expr
    sel: str


@dataclass
class Index(Expr):
    x: Expr
    index: Expr


@dataclass
class Slice(Expr):
    x: Expr
    low: Optional[Expr] = None
    high: Optional[Expr] = None


@dataclass
class Call(Expr):
    fun: Expr
    args: List[Expr] = field(default_factory=list)
    ellipsis: bool = False


@dataclass
class Unary(Expr):
    op: str
    x: Expr


@dataclass
class Star(Expr):
    """Pointer type or dereference."""

    x: Expr


@dataclass
class Binary(Expr):
    x: Expr
    op: str
    y: Expr


@dataclass
class ArrayType(Expr):
    elt: Expr
    length: Optional[Expr] = None  # None for slices


@dataclass
class MapType(Expr):
    key: Expr
    value: Expr


@dataclass
class Field:
    names: List[str]
    type: Expr


@dataclass
class StructType(Expr):
    fields: List[Field] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass
class Block(Stmt):
    stmts: List[Stmt] = field(default_factory=list)
    blank_before: List[bool] = field(default_factory=list)


@dataclass
class ExprStmt(Stmt):
    x: Expr


@dataclass
class Assign(Stmt):
    lhs: List[Expr]
    op: str
    rhs: List[Expr]


@dataclass
class IncDec(Stmt):
    x: Expr
    op: str


@dataclass
class Return(Stmt):
    results: List[Expr] = field(default_factory=list)


@dataclass
class Branch(Stmt):
    keyword: str


@dataclass
class DeclStmt(Stmt):
    decl: GenDecl


@dataclass
class If(Stmt):
    cond: Expr
    body: Block
    init: Optional[Stmt] = None
    else_: Union[If, Block, None] = None


@dataclass
class For(Stmt):
    body: Block
    init: Optional[Stmt] = None
    cond: Optional[Expr] = None
    post: Optional[Stmt] = None


@dataclass
class Range(Stmt):
    x: Expr
    body: Block
    key: Optional[Expr] = None
    value: Optional[Expr] = None
    define: bool = False


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass
class ImportSpec:
    path: str
    name: Optional[str] = None


@dataclass
class ValueSpec:
    names: List[str]
    type: Optional[Expr] = None
    values: List[Expr] = field(default_factory=list)


@dataclass
class TypeSpec:
    name: str
    type: Expr


Spec = Union[ImportSpec, ValueSpec, TypeSpec]


@dataclass
class GenDecl(Decl):
    keyword: str  # "import", "var", "const" or "type"
    specs: List[Spec] = field(default_factory=list)
    grouped: bool = False


@dataclass
class FuncDecl(Decl):
    name: str
    params: List[Field] = field(default_factory=list)
    results: List[Field] = field(default_factory=list)
    body: Block = field(default_factory=Block)


@dataclass
class FieldBlock(Decl):
    """A protocol section declaring typed fields, e.g. ``Parameters (...)``."""

    keyword: str
    fields: List[Field] = field(default_factory=list)


@dataclass
class CodeBlock(Decl):
    """A protocol section holding statements, e.g. ``Steps { ... }``."""

    keyword: str
    body: Block = field(default_factory=Block)


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class UnitKind(str, enum.Enum):
    PROTOCOL = "protocol"
    PACKAGE = "package"


@dataclass
class ParsedUnit:
    """A parsed source unit.

    RULES:
    - kind: which header clause opened the unit
    - name: the declared protocol or package name
    - imports: import declarations, in source order
    - decls: every other top-level declaration, in source order
    """

    filename: str
    kind: UnitKind
    name: str
    imports: List[GenDecl] = field(default_factory=list)
    decls: List[Decl] = field(default_factory=list)

    @property
    def is_protocol(self) -> bool:
        return self.kind is UnitKind.PROTOCOL
