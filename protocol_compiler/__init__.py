"""Protocol compiler: fragment-tolerant protocol-to-Go source pipeline.

WHY: Protocol sources are edited both as whole files and as fragments
(a selection piped from an editor). Both must compile to Go source, and
a compiled fragment must drop back into place with its surrounding
whitespace untouched.

HOW: Four-stage pipeline: fallback parse (whole unit, declaration list,
statement list), protocol check, print, scaffold adjustment with
whitespace reconciliation. Each stage is a pure function over bytes
except the final exclusive-create write.

RULES:
- Only interactive input (stdin) is retried as a fragment
- Only protocol units are compiled; package units are rejected
- Generated files never replace existing files
"""

__version__ = "0.1.0"
