"""Compilation driver: one protocol source unit in, one Go file out.

WHY: This is the orchestration point the CLI and tests call. It strings
together fallback parsing, the protocol check, printing, scaffold
adjustment and the write, and it owns the rule that a generated file
never replaces an existing one.

HOW: compile_source() runs the pipeline fully in memory, derives the
destination from the declared protocol name, then creates the file
with exclusive-create semantics and writes the finished bytes. A
failed write removes the half-written file.

RULES:
- Only a unit whose header is a protocol clause is compiled
- Output is the printer's bytes unchanged unless a fragment level
  succeeded, in which case the Adjustment is applied
- Destination: <outdir or input dir>/<ProtocolName><OUTPUT_SUFFIX>
- Missing directories are created; an existing destination is an
  error (DestinationExists), detected atomically at create time
- Nothing is written until the output is fully assembled
"""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from protocol_compiler.config import OUTPUT_SUFFIX, STDIN_FILENAME
from protocol_compiler.core import fallback
from protocol_compiler.core.source import PositionRegistry, SourceSpan
from protocol_compiler.errors import DestinationExists, NotAProtocolFile, ParseError, ParseFailure
from protocol_compiler.lang.printer import PrinterConfig, print_unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileResult:
    """The outcome of compiling one unit.

    RULES:
    - content: the exact bytes written to destination
    - grammar_level: which level accepted the input
    - source_sha256: hex digest of the input bytes
    """

    source: str
    protocol_name: str
    destination: Path
    content: bytes
    grammar_level: fallback.GrammarLevel
    source_sha256: str


def destination_path(
    protocol_name: str,
    filename: str,
    outdir: Union[str, Path, None] = None,
) -> Path:
    """Derive the output path for ``protocol_name``.

    An empty ``outdir`` means the directory of the input file (the
    current directory for standard input).
    """
    if outdir:
        directory = Path(outdir)
    elif filename and filename != STDIN_FILENAME:
        directory = Path(filename).parent
    else:
        directory = Path(".")
    return directory / f"{protocol_name}{OUTPUT_SUFFIX}"


def write_exclusive(path: Path, content: bytes, filename: str = "") -> None:
    """Create ``path`` and write ``content``, refusing to replace a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
    except FileExistsError:
        raise DestinationExists(path, filename) from None
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
    except BaseException:
        path.unlink()
        raise


def generate(
    span: SourceSpan,
    registry: Optional[PositionRegistry] = None,
    config: Optional[PrinterConfig] = None,
) -> fallback.FallbackResult:
    """Parse ``span`` and check it is a protocol, without printing."""
    try:
        result = fallback.parse(span.filename, span.data, span.interactive, registry, config)
    except ParseError as e:
        raise ParseFailure(e, span.filename) from e
    if not result.unit.is_protocol:
        raise NotAProtocolFile(span.filename, result.unit.kind.value, result.unit.name)
    return result


def render(
    span: SourceSpan,
    registry: Optional[PositionRegistry] = None,
    config: Optional[PrinterConfig] = None,
) -> Tuple[fallback.FallbackResult, bytes]:
    """Run the in-memory part of the pipeline: parse, check, print, adjust."""
    config = config or PrinterConfig()
    result = generate(span, registry, config)
    output = print_unit(result.unit, config)
    if result.adjustment is not None:
        output = result.adjustment.apply(span.data, output)
    return result, output


def compile_source(
    filename: str,
    data: bytes,
    interactive: bool = False,
    outdir: Union[str, Path, None] = None,
    registry: Optional[PositionRegistry] = None,
    config: Optional[PrinterConfig] = None,
) -> CompileResult:
    """Compile one source unit and write the generated file.

    Raises:
        ParseFailure: no grammar level accepted the input.
        NotAProtocolFile: the input parsed but is not a protocol.
        DestinationExists: the derived output file already exists.
        OSError: any other filesystem failure.
    """
    span = SourceSpan(filename=filename, data=data, interactive=interactive)
    result, output = render(span, registry, config)

    name = result.unit.name
    destination = destination_path(name, filename, outdir)
    write_exclusive(destination, output, filename)
    logger.info("Compiled %s -> %s (%s)", filename, destination, result.level.value)

    return CompileResult(
        source=filename,
        protocol_name=name,
        destination=destination,
        content=output,
        grammar_level=result.level,
        source_sha256=hashlib.sha256(data).hexdigest(),
    )


def compile_file(
    path: Union[str, Path],
    outdir: Union[str, Path, None] = None,
    registry: Optional[PositionRegistry] = None,
    config: Optional[PrinterConfig] = None,
) -> CompileResult:
    """Read ``path`` from disk and compile it as a non-interactive unit."""
    path = Path(path)
    return compile_source(str(path), path.read_bytes(), False, outdir, registry, config)
