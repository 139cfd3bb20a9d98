"""Error taxonomy for the protocol compiler.

WHY: Every failure must be attributed to the input unit that caused it
and must be distinguishable by the caller: a unit that does not parse,
a unit that parses but is not a protocol, and a destination that is
already taken are handled differently by the CLI and by tests.

HOW: ParseError is the typed error raised by the parser capability.
Its ``kind`` tells the fallback parser whether a more permissive grammar
level is worth trying. CompileError is the base of everything the
compilation driver raises; each subclass carries the filename.

RULES:
- ParseErrorKind is keyed on structure, never on message wording
- ParseFailure wraps the error from the deepest grammar level attempted
- DestinationExists is also a FileExistsError so generic OSError
  handlers still see it
- Nothing in the pipeline swallows these; the CLI reports them per unit
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from protocol_compiler.core.source import Position


class ParseErrorKind(str, enum.Enum):
    """Why a parse attempt stopped.

    RULES:
    - missing_header: the first token is not a protocol/package clause
    - missing_declaration: a top-level slot holds a non-declaration
    - other: any other syntax error
    """

    MISSING_HEADER = "missing_header"
    MISSING_DECLARATION = "missing_declaration"
    OTHER = "other"


class ParseError(Exception):
    """A syntax error reported by the parser capability."""

    def __init__(
        self,
        message: str,
        position: Optional[Position] = None,
        kind: ParseErrorKind = ParseErrorKind.OTHER,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.position = position
        self.kind = kind

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.position}: {self.message}"


class CompileError(Exception):
    """Base class for failures of a single compilation unit."""

    def __init__(self, message: str, filename: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}: {self.message}"
        return self.message


class ParseFailure(CompileError):
    """No grammar level accepted the input."""

    def __init__(self, error: ParseError, filename: str = "") -> None:
        super().__init__(str(error), filename)
        self.error = error
        self.kind = error.kind

    def __str__(self) -> str:
        # The position already names the file.
        if self.error.position is not None:
            return self.message
        return super().__str__()


class NotAProtocolFile(CompileError):
    """The input parsed, but its top-level construct is not a protocol."""

    def __init__(self, filename: str, kind: str, name: str) -> None:
        super().__init__(
            f"not a protocol file: top-level {kind} clause {name!r}",
            filename,
        )
        self.kind = kind
        self.name = name


class DestinationExists(CompileError, FileExistsError):
    """The derived output path is already taken."""

    def __init__(self, path: Path, filename: str = "") -> None:
        CompileError.__init__(self, f"destination already exists: {path}", filename)
        self.path = path
