"""Go source printer for parsed protocol units.

WHY: The compiler's output is host-language source that can be built
alongside other generated protocols. Every generated file must be
independently loadable, so the package clause is always overridden
with a fixed name regardless of what the source declared.

HOW: A recursive walk renders expressions to strings and statements to
indented multi-line strings. Protocol sections become Go declarations:
field blocks render as structs named ``_<Section>``, code blocks as
functions named ``_<Section>``.

RULES:
- Header is always ``package <package_name>``
- One blank line between the header, each import and each declaration
- tab_indent: one level is a tab, otherwise tab_width spaces
- use_spaces: field alignment is padded with spaces, otherwise a tab
- At most one blank line is kept between statements
- Output ends with exactly one newline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from protocol_compiler.lang import nodes

STATEMENT_WRAPPER_OPEN = "func _() {"
STATEMENT_WRAPPER_CLOSE = "}\n"

# Unary operator pairs that would lex as a different token if printed
# without a space between them ("- -x" must not become "--x").
_FUSING_PAIRS = frozenset({"--", "++", "&^", "&&"})


@dataclass(frozen=True)
class PrinterConfig:
    """Layout settings for emitted source.

    RULES:
    - use_spaces: pad alignment with spaces
    - tab_indent: indent with tabs regardless of use_spaces
    - tab_width: columns per indentation level when not tab_indent
    - package_name: emitted package clause, overriding the source name
    """

    use_spaces: bool = True
    tab_indent: bool = True
    tab_width: int = 8
    package_name: str = "main"

    @property
    def indent_unit(self) -> str:
        if self.tab_indent:
            return "\t"
        return " " * self.tab_width


def header_text(config: PrinterConfig) -> str:
    """The printed form of a unit's header clause."""
    return f"package {config.package_name}\n"


def statement_wrapper(config: PrinterConfig) -> Tuple[str, str]:
    """The printed (prefix, suffix) around a wrapped statement list."""
    return header_text(config) + "\n" + STATEMENT_WRAPPER_OPEN, STATEMENT_WRAPPER_CLOSE


class _Printer:
    def __init__(self, config: PrinterConfig):
        self.config = config
        self.indent = config.indent_unit

    def ind(self, depth: int) -> str:
        return self.indent * depth

    # -- expressions --------------------------------------------------------

    def expr(self, e: nodes.Expr, depth: int = 0) -> str:
        if isinstance(e, nodes.Ident):
            return e.name
        if isinstance(e, nodes.BasicLit):
            return e.value
        if isinstance(e, nodes.Paren):
            return f"({self.expr(e.x, depth)})"
        if isinstance(e, nodes.Selector):
            return f"{self.expr(e.x, depth)}.{e.sel}"
        if isinstance(e, nodes.Index):
            return f"{self.expr(e.x, depth)}[{self.expr(e.index, depth)}]"
        if isinstance(e, nodes.Slice):
            low = self.expr(e.low, depth) if e.low is not None else ""
            high = self.expr(e.high, depth) if e.high is not None else ""
            return f"{self.expr(e.x, depth)}[{low}:{high}]"
        if isinstance(e, nodes.Call):
            args = ", ".join(self.expr(a, depth) for a in e.args)
            return f"{self.expr(e.fun, depth)}({args}{'...' if e.ellipsis else ''})"
        if isinstance(e, nodes.Unary):
            return self.prefixed(e.op, self.expr(e.x, depth))
        if isinstance(e, nodes.Star):
            return self.prefixed("*", self.expr(e.x, depth))
        if isinstance(e, nodes.Binary):
            return f"{self.expr(e.x, depth)} {e.op} {self.expr(e.y, depth)}"
        if isinstance(e, nodes.ArrayType):
            length = self.expr(e.length, depth) if e.length is not None else ""
            return f"[{length}]{self.expr(e.elt, depth)}"
        if isinstance(e, nodes.MapType):
            return f"map[{self.expr(e.key, depth)}]{self.expr(e.value, depth)}"
        if isinstance(e, nodes.StructType):
            if not e.fields:
                return "struct{}"
            return "struct {\n" + self.fields(e.fields, depth) + self.ind(depth) + "}"
        raise TypeError(f"cannot print expression node {type(e).__name__}")

    @staticmethod
    def prefixed(op: str, operand: str) -> str:
        if operand and op + operand[0] in _FUSING_PAIRS:
            return f"{op} {operand}"
        return op + operand

    def fields(self, fields: List[nodes.Field], depth: int) -> str:
        """Render one field per line, types aligned in a column."""
        names = [", ".join(f.names) for f in fields]
        width = max(len(n) for n in names)
        out = []
        for name, f in zip(names, fields):
            typ = self.expr(f.type, depth + 1)
            if not name:
                out.append(f"{self.ind(depth + 1)}{typ}\n")
            elif self.config.use_spaces:
                out.append(f"{self.ind(depth + 1)}{name}{' ' * (width - len(name) + 1)}{typ}\n")
            else:
                out.append(f"{self.ind(depth + 1)}{name}\t{typ}\n")
        return "".join(out)

    def params(self, fields: List[nodes.Field]) -> str:
        parts = []
        for f in fields:
            typ = self.expr(f.type)
            parts.append(f"{', '.join(f.names)} {typ}" if f.names else typ)
        return ", ".join(parts)

    # -- statements ---------------------------------------------------------

    def block(self, b: nodes.Block, depth: int) -> str:
        if not b.stmts:
            return "{\n" + self.ind(depth) + "}"
        lines = ["{"]
        for stmt, blank in zip(b.stmts, b.blank_before):
            if blank:
                lines.append("")
            lines.append(self.ind(depth + 1) + self.stmt(stmt, depth + 1))
        lines.append(self.ind(depth) + "}")
        return "\n".join(lines)

    def stmt(self, s: nodes.Stmt, depth: int) -> str:
        if isinstance(s, nodes.ExprStmt):
            return self.expr(s.x, depth)
        if isinstance(s, nodes.Assign):
            lhs = ", ".join(self.expr(x, depth) for x in s.lhs)
            rhs = ", ".join(self.expr(x, depth) for x in s.rhs)
            return f"{lhs} {s.op} {rhs}"
        if isinstance(s, nodes.IncDec):
            return f"{self.expr(s.x, depth)}{s.op}"
        if isinstance(s, nodes.Return):
            if not s.results:
                return "return"
            return "return " + ", ".join(self.expr(x, depth) for x in s.results)
        if isinstance(s, nodes.Branch):
            return s.keyword
        if isinstance(s, nodes.DeclStmt):
            return self.gen_decl(s.decl, depth)
        if isinstance(s, nodes.Block):
            return self.block(s, depth)
        if isinstance(s, nodes.If):
            return self.if_stmt(s, depth)
        if isinstance(s, nodes.For):
            return self.for_stmt(s, depth)
        if isinstance(s, nodes.Range):
            head = ""
            if s.key is not None:
                keys = self.expr(s.key, depth)
                if s.value is not None:
                    keys += ", " + self.expr(s.value, depth)
                head = f"{keys} {':=' if s.define else '='} "
            return f"for {head}range {self.expr(s.x, depth)} {self.block(s.body, depth)}"
        raise TypeError(f"cannot print statement node {type(s).__name__}")

    def simple(self, s: Optional[nodes.Stmt], depth: int) -> str:
        return self.stmt(s, depth) if s is not None else ""

    def if_stmt(self, s: nodes.If, depth: int) -> str:
        head = "if "
        if s.init is not None:
            head += self.stmt(s.init, depth) + "; "
        out = f"{head}{self.expr(s.cond, depth)} {self.block(s.body, depth)}"
        if isinstance(s.else_, nodes.If):
            out += " else " + self.if_stmt(s.else_, depth)
        elif s.else_ is not None:
            out += " else " + self.block(s.else_, depth)
        return out

    def for_stmt(self, s: nodes.For, depth: int) -> str:
        body = self.block(s.body, depth)
        if s.init is None and s.post is None:
            if s.cond is None:
                return f"for {body}"
            return f"for {self.expr(s.cond, depth)} {body}"
        cond = self.expr(s.cond, depth) if s.cond is not None else ""
        head = f"{self.simple(s.init, depth)}; {cond}; {self.simple(s.post, depth)}".rstrip()
        return f"for {head} {body}"

    # -- declarations -------------------------------------------------------

    def spec(self, spec: nodes.Spec, depth: int) -> str:
        if isinstance(spec, nodes.ImportSpec):
            return f"{spec.name} {spec.path}" if spec.name else spec.path
        if isinstance(spec, nodes.TypeSpec):
            return f"{spec.name} {self.expr(spec.type, depth)}"
        out = ", ".join(spec.names)
        if spec.type is not None:
            out += " " + self.expr(spec.type, depth)
        if spec.values:
            out += " = " + ", ".join(self.expr(v, depth) for v in spec.values)
        return out

    def gen_decl(self, d: nodes.GenDecl, depth: int) -> str:
        if not d.grouped:
            return f"{d.keyword} {self.spec(d.specs[0], depth)}"
        if not d.specs:
            return f"{d.keyword} ()"
        lines = [f"{d.keyword} ("]
        lines.extend(self.ind(depth + 1) + self.spec(spec, depth + 1) for spec in d.specs)
        lines.append(self.ind(depth) + ")")
        return "\n".join(lines)

    def decl(self, d: nodes.Decl) -> str:
        if isinstance(d, nodes.GenDecl):
            return self.gen_decl(d, 0)
        if isinstance(d, nodes.FuncDecl):
            results = ""
            if len(d.results) == 1 and not d.results[0].names:
                results = " " + self.expr(d.results[0].type)
            elif d.results:
                results = f" ({self.params(d.results)})"
            return f"func {d.name}({self.params(d.params)}){results} {self.block(d.body, 0)}"
        if isinstance(d, nodes.FieldBlock):
            if not d.fields:
                return f"type _{d.keyword} struct {{\n}}"
            return f"type _{d.keyword} struct {{\n{self.fields(d.fields, 0)}}}"
        if isinstance(d, nodes.CodeBlock):
            return f"func _{d.keyword}() {self.block(d.body, 0)}"
        raise TypeError(f"cannot print declaration node {type(d).__name__}")

    def unit(self, u: nodes.ParsedUnit) -> str:
        out = [header_text(self.config)]
        for d in list(u.imports) + list(u.decls):
            out.append("\n" + self.decl(d) + "\n")
        return "".join(out)


def print_unit(unit: nodes.ParsedUnit, config: Optional[PrinterConfig] = None) -> bytes:
    """Render ``unit`` as Go source bytes."""
    return _Printer(config or PrinterConfig()).unit(unit).encode("utf-8")
