"""Source spans and the shared position registry.

WHY: A compilation unit is a byte span plus the facts the pipeline needs
about where it came from: a filename for error messages and whether it
was fed interactively (which is the only case where fragments are
accepted). Error positions must stay meaningful across every unit in a
run, including the scaffolded re-parses of a single unit.

HOW: SourceSpan is a frozen dataclass. PositionRegistry hands out
non-overlapping offset ranges, one per registered text, and resolves a
global offset back to (filename, line, column). Registration and lookup
hold a lock, so one registry can be shared by concurrent workers.

RULES:
- SourceSpan is immutable and consumed once by the pipeline
- Registry ranges are append-only; a registered file never moves
- Each range is one longer than its text so EOF has its own offset
- Lines and columns are 1-based; columns count characters
"""

from __future__ import annotations

import bisect
import threading
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class SourceSpan:
    """One compilation unit's input bytes.

    RULES:
    - filename: path on disk, or "<standard input>" for streams
    - data: full content, read to completion before processing
    - interactive: True only for stdin; gates fallback parsing
    """

    filename: str
    data: bytes
    interactive: bool = False


@dataclass(frozen=True)
class Position:
    filename: str
    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass
class RegisteredFile:
    """A text registered in a PositionRegistry."""

    filename: str
    base: int
    size: int
    line_starts: List[int] = field(default_factory=lambda: [0])

    def position(self, offset: int) -> Position:
        """Resolve a file-local offset to a Position."""
        if offset < 0 or offset > self.size:
            raise ValueError(f"offset {offset} outside {self.filename} (size {self.size})")
        line_index = bisect.bisect_right(self.line_starts, offset) - 1
        column = offset - self.line_starts[line_index] + 1
        return Position(self.filename, self.base + offset, line_index + 1, column)


class PositionRegistry:
    """Append-only registry mapping global offsets to file positions.

    WHY: Error messages produced while compiling many units in one run
    must remain addressable after the fact, without process-wide state.
    The registry is an explicit handle passed to every parse.

    HOW: Each registered text gets a base offset one past the end of the
    previous file. Lookups bisect the sorted bases.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._files: List[RegisteredFile] = []
        self._bases: List[int] = []
        self._next_base = 1

    def add_file(self, filename: str, text: str) -> RegisteredFile:
        line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                line_starts.append(i + 1)
        with self._lock:
            registered = RegisteredFile(
                filename=filename,
                base=self._next_base,
                size=len(text),
                line_starts=line_starts,
            )
            self._files.append(registered)
            self._bases.append(registered.base)
            self._next_base += len(text) + 1
        return registered

    def file_at(self, offset: int) -> Optional[RegisteredFile]:
        with self._lock:
            index = bisect.bisect_right(self._bases, offset) - 1
            if index < 0:
                return None
            registered = self._files[index]
        if offset > registered.base + registered.size:
            return None
        return registered

    def position(self, offset: int) -> Optional[Position]:
        """Resolve a global offset, or None if no file covers it."""
        registered = self.file_at(offset)
        if registered is None:
            return None
        return registered.position(offset - registered.base)

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)
