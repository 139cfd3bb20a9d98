"""Fallback parsing of protocol fragments at three grammar levels.

WHY: Interactive input (an editor piping a selection, a user typing at
a terminal) is often a fragment: a few declarations, or just a few
statements, with no protocol header. The parser only understands whole
source units, so fragments are wrapped in synthetic scaffolding until
one parse succeeds. The scaffolding must then be removed from the
printed output so the caller gets back only what it sent in.

HOW: parse() tries FullUnit, then DeclarationList (header prepended),
then StatementList (header plus a function wrapper). Each transition
is gated on the typed ParseErrorKind of the previous attempt. When a
wrapped level succeeds, an Adjustment records how many printed bytes
of scaffold to strip, whether to remove one indentation level, and
finishes with whitespace reconciliation.

RULES:
- Non-interactive input gets exactly one attempt, at FullUnit
- DeclarationList is tried only after a MISSING_HEADER failure
- StatementList is tried only after a MISSING_DECLARATION failure
- Scaffolding is joined with ';', never a newline, so line numbers
  inside the wrapped text match the original input
- An Adjustment is returned if and only if a wrapped level succeeded
- The error from the deepest level attempted is the one raised
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from protocol_compiler.core.source import PositionRegistry
from protocol_compiler.core.whitespace import reconcile
from protocol_compiler.errors import ParseError, ParseErrorKind
from protocol_compiler.lang.nodes import ParsedUnit
from protocol_compiler.lang.parser import parse_unit
from protocol_compiler.lang.printer import PrinterConfig, header_text, statement_wrapper

logger = logging.getLogger(__name__)

HEADER_SCAFFOLD = b"protocol p;"
FUNCTION_SCAFFOLD = b" func _() {"
CLOSING_SCAFFOLD = b"\n}"


class GrammarLevel(str, enum.Enum):
    """Grammar levels, least to most permissive."""

    FULL_UNIT = "full_unit"
    DECLARATION_LIST = "declaration_list"
    STATEMENT_LIST = "statement_list"


class AdjustmentKind(str, enum.Enum):
    STRIP_PREFIX = "strip_prefix"
    STRIP_PREFIX_AND_SUFFIX_DEDENT = "strip_prefix_and_suffix_dedent"


@dataclass(frozen=True)
class Adjustment:
    """How to turn printed scaffolded output back into a fragment.

    RULES:
    - prefix: bytes of printed scaffold to drop from the front
    - suffix: bytes of printed scaffold to drop from the end
    - indent: one indentation level, removed after every newline
      (STRIP_PREFIX_AND_SUFFIX_DEDENT only)
    """

    kind: AdjustmentKind
    prefix: int
    suffix: int = 0
    indent: bytes = b""

    def apply(self, original: bytes, generated: bytes) -> bytes:
        body = generated[self.prefix:]
        if self.kind is AdjustmentKind.STRIP_PREFIX_AND_SUFFIX_DEDENT:
            if self.suffix:
                body = body[:len(body) - self.suffix]
            # The printer indented the wrapper function's body once.
            body = body.replace(b"\n" + self.indent, b"\n")
        return reconcile(original, body)


def declaration_adjustment(config: PrinterConfig) -> Adjustment:
    return Adjustment(
        kind=AdjustmentKind.STRIP_PREFIX,
        prefix=len(header_text(config).encode("utf-8")),
    )


def statement_adjustment(config: PrinterConfig) -> Adjustment:
    prefix, suffix = statement_wrapper(config)
    return Adjustment(
        kind=AdjustmentKind.STRIP_PREFIX_AND_SUFFIX_DEDENT,
        prefix=len(prefix.encode("utf-8")),
        suffix=len(suffix.encode("utf-8")),
        indent=config.indent_unit.encode("utf-8"),
    )


@dataclass(frozen=True)
class FallbackResult:
    unit: ParsedUnit
    level: GrammarLevel
    adjustment: Optional[Adjustment] = None


def parse(
    filename: str,
    src: bytes,
    interactive: bool,
    registry: Optional[PositionRegistry] = None,
    config: Optional[PrinterConfig] = None,
) -> FallbackResult:
    """Parse ``src`` at the least permissive grammar level that accepts it.

    Args:
        filename: Name used in error positions.
        src: The raw input bytes.
        interactive: Whether ``src`` came from an interactive stream.
            Only interactive input is retried as a fragment.
        registry: Position registry shared across the run.
        config: The printer config the output will be rendered with;
            Adjustment byte counts are derived from it.

    Raises:
        ParseError: from the deepest grammar level attempted.
    """
    if registry is None:
        registry = PositionRegistry()
    if config is None:
        config = PrinterConfig()

    logger.debug("%s: trying %s", filename, GrammarLevel.FULL_UNIT.value)
    try:
        return FallbackResult(parse_unit(filename, src, registry), GrammarLevel.FULL_UNIT)
    except ParseError as e:
        if not interactive or e.kind is not ParseErrorKind.MISSING_HEADER:
            raise

    logger.debug("%s: trying %s", filename, GrammarLevel.DECLARATION_LIST.value)
    psrc = HEADER_SCAFFOLD + src
    try:
        unit = parse_unit(filename, psrc, registry)
        return FallbackResult(unit, GrammarLevel.DECLARATION_LIST, declaration_adjustment(config))
    except ParseError as e:
        if e.kind is not ParseErrorKind.MISSING_DECLARATION:
            raise

    logger.debug("%s: trying %s", filename, GrammarLevel.STATEMENT_LIST.value)
    fsrc = HEADER_SCAFFOLD + FUNCTION_SCAFFOLD + src + CLOSING_SCAFFOLD
    unit = parse_unit(filename, fsrc, registry)
    return FallbackResult(unit, GrammarLevel.STATEMENT_LIST, statement_adjustment(config))


def parse_with_adjustment(
    filename: str,
    src: bytes,
    interactive: bool,
    registry: Optional[PositionRegistry] = None,
    config: Optional[PrinterConfig] = None,
) -> Tuple[ParsedUnit, Optional[Adjustment]]:
    """Tuple form of :func:`parse`: (unit, adjustment or None)."""
    result = parse(filename, src, interactive, registry, config)
    return result.unit, result.adjustment
