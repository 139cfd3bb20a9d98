"""Whitespace splitting and reconciliation for regenerated fragments.

WHY: When a fragment is compiled through synthetic scaffolding, the
printer lays the result out as if it were a standalone file. The output
must still drop in where the fragment came from: same blank lines
before it, same indentation, same trailing whitespace. The semantic
re-layout belongs to the printer; the positional context belongs to
the original bytes.

HOW: split() cuts a span into (leading, core, trailing) whitespace.
reconcile() takes the blank-line prefix, indent and trailing whitespace
of the original and wraps them around the core of the generated text.

RULES:
- Whitespace here means space, tab and newline only
- An all-whitespace span is reported entirely as trailing, never leading
- reconcile() indents non-blank lines only
- reconcile() emits the original trailing whitespace verbatim
"""

from __future__ import annotations

from typing import Tuple

_SPACE = frozenset(b" \t\n")


def split(b: bytes) -> Tuple[bytes, bytes, bytes]:
    """Split ``b`` into (leading whitespace, core, trailing whitespace).

    When the forward and backward scans cross (the span is all
    whitespace) the whole span is returned as trailing.
    """
    i = 0
    while i < len(b) and b[i] in _SPACE:
        i += 1
    j = len(b)
    while j > 0 and b[j - 1] in _SPACE:
        j -= 1
    if i <= j:
        return b[:i], b[i:j], b[j:]
    return b"", b"", b[j:]


def reconcile(original: bytes, generated: bytes) -> bytes:
    """Reformat ``generated`` to use the whitespace context of ``original``.

    1. Blank lines at the start of ``original`` are emitted first.
    2. The indentation of the first non-blank line of ``original`` is
       copied onto every non-blank line of ``generated``.
    3. The trailing whitespace of ``original`` replaces that of
       ``generated``.
    """
    lead, _, trail = split(original)
    cut = lead.rfind(b"\n")
    prefix, indent = lead[:cut + 1], lead[cut + 1:]

    _, core, _ = split(generated)

    out = bytearray(prefix)
    rest = core
    while rest:
        nl = rest.find(b"\n")
        if nl >= 0:
            line, rest = rest[:nl + 1], rest[nl + 1:]
        else:
            line, rest = rest, b""
        if not line.startswith(b"\n"):  # not blank
            out += indent
        out += line
    out += trail
    return bytes(out)
