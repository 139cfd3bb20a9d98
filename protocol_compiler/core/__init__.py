"""Core pipeline modules: sources, whitespace, fallback parsing, driver.

WHY: The core package contains the compilation pipeline proper. The
language itself (lexer, parser, printer) lives in ``protocol_compiler.lang``
and is consumed here as a capability.

HOW: source.py defines input spans and the position registry,
whitespace.py splits and reconciles whitespace context, fallback.py
tries the grammar levels, driver.py orchestrates and writes output.

RULES:
- Everything except driver.write_exclusive is free of side effects
- No module here holds state between compilation units
"""
