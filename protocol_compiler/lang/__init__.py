"""The protocol language: tokens, lexer, syntax tree, parser, Go printer."""

from protocol_compiler.lang.nodes import ParsedUnit, UnitKind
from protocol_compiler.lang.parser import parse_unit
from protocol_compiler.lang.printer import PrinterConfig, print_unit

__all__ = [
    "ParsedUnit",
    "PrinterConfig",
    "UnitKind",
    "parse_unit",
    "print_unit",
]
