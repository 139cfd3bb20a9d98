"""Configuration constants, file naming conventions, and .env loading.

WHY: Centralizes the values that shape compiler output (source and
output suffixes, emitted package name, indentation width, worker count)
so they are easy to find and override without touching pipeline logic.

HOW: python-dotenv loads the .env file on import. Constants are defined
at module level from environment variables with plain defaults. The
load_*() helpers validate numeric settings and fail with a clear error.

RULES:
- SOURCE_SUFFIX selects protocol files when walking directories (".an")
- OUTPUT_SUFFIX is appended to the declared protocol name ("_.go")
- OUTPUT_PACKAGE overrides the emitted package clause ("main")
- TAB_WIDTH and JOBS must be positive integers
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# File naming
# ---------------------------------------------------------------------------

SOURCE_SUFFIX = os.getenv("PROTOCOL_SOURCE_SUFFIX", ".an")
"""Suffix of protocol source files picked up by directory walks."""

OUTPUT_SUFFIX = os.getenv("PROTOCOL_OUTPUT_SUFFIX", "_.go")
"""Suffix appended to the protocol name to form the destination filename."""

STDIN_FILENAME = "<standard input>"

# ---------------------------------------------------------------------------
# Printer defaults
# ---------------------------------------------------------------------------

OUTPUT_PACKAGE = os.getenv("PROTOCOL_OUTPUT_PACKAGE", "main")
DEFAULT_TAB_WIDTH = 8
DEFAULT_JOBS = 1


def _positive_int(env_name: str, default: int) -> int:
    raw = os.getenv(env_name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"{env_name} must be an integer, got {raw!r}. "
            f"Fix the value in the environment or the .env file."
        ) from None
    if value < 1:
        raise ValueError(f"{env_name} must be at least 1, got {value}.")
    return value


def load_tab_width() -> int:
    """Load the printer tab width from PROTOCOL_TAB_WIDTH.

    RULES:
    - Missing or empty value falls back to DEFAULT_TAB_WIDTH (8)
    - Non-integer or non-positive values raise ValueError
    """
    return _positive_int("PROTOCOL_TAB_WIDTH", DEFAULT_TAB_WIDTH)


def load_jobs() -> int:
    """Load the default worker count from PROTOCOL_JOBS."""
    return _positive_int("PROTOCOL_JOBS", DEFAULT_JOBS)
