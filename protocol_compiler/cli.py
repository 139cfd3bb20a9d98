"""Command-line interface for the protocol compiler.

WHY: Protocol authors compile whole element trees from the terminal,
and editors pipe a selection through the compiler on standard input.
The CLI wires both cases to the compilation driver behind one command.

HOW: Uses argparse to accept files, directories or "-" (standard
input). Directories are walked for SOURCE_SUFFIX files. Each unit is
compiled independently, on a thread pool when --jobs > 1, with one
PositionRegistry shared by the whole run. Status messages go to
stderr; generated files go to disk. An optional JSON manifest lists
every generated file.

RULES:
- No paths (or "-") means: read stdin to completion, compile it as an
  interactive unit so fragments are accepted
- Directory walks are recursive and sorted; only SOURCE_SUFFIX files
- A failing unit is reported and does not stop the others
- Exit status 1 if any unit failed, 0 otherwise
- --outdir empty means "next to each input file"
"""

from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import jsonschema

from protocol_compiler.config import (
    OUTPUT_PACKAGE,
    SOURCE_SUFFIX,
    STDIN_FILENAME,
    load_jobs,
    load_tab_width,
)
from protocol_compiler.core.driver import CompileResult, compile_file, compile_source
from protocol_compiler.core.source import PositionRegistry
from protocol_compiler.errors import CompileError
from protocol_compiler.lang.printer import PrinterConfig
from protocol_compiler.manifest import write_manifest

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


@dataclass
class UnitOutcome:
    """Result of one unit: exactly one of result or error is set."""

    source: str
    result: Optional[CompileResult] = None
    error: Optional[str] = None


def collect_sources(paths: List[str]) -> List[Union[Path, str]]:
    """Expand CLI paths into compilation units.

    RULES:
    - "-" stands for standard input and is kept as-is
    - Directories expand to their SOURCE_SUFFIX files, recursively, sorted
    - Plain file paths are kept regardless of suffix
    - A path that does not exist raises FileNotFoundError
    """
    units: List[Union[Path, str]] = []
    for raw in paths:
        if raw == "-":
            units.append(raw)
            continue
        path = Path(raw)
        if path.is_dir():
            units.extend(
                p for p in sorted(path.rglob(f"*{SOURCE_SUFFIX}")) if p.is_file()
            )
        elif path.is_file():
            units.append(path)
        else:
            raise FileNotFoundError(f"No such file or directory: {raw}")
    return units


def _compile_unit(
    unit: Union[Path, str],
    outdir: Optional[str],
    registry: PositionRegistry,
    config: PrinterConfig,
    stdin_data: Optional[bytes],
) -> UnitOutcome:
    source = STDIN_FILENAME if unit == "-" else str(unit)
    try:
        if unit == "-":
            result = compile_source(STDIN_FILENAME, stdin_data or b"", True, outdir, registry, config)
        else:
            result = compile_file(unit, outdir, registry, config)
    except (CompileError, OSError) as e:
        return UnitOutcome(source=source, error=str(e))
    return UnitOutcome(source=source, result=result)


def run(args: argparse.Namespace) -> int:
    """Compile every unit named by ``args``; return the exit status."""
    paths = args.paths or ["-"]
    try:
        units = collect_sources(paths)
    except FileNotFoundError as e:
        _status("Error: {}".format(e))
        return 1

    if not units:
        _status("No {} files found.".format(SOURCE_SUFFIX))
        return 0

    config = PrinterConfig(
        tab_width=args.tab_width,
        package_name=args.output_package,
    )
    registry = PositionRegistry()

    # Standard input is read to completion once, before any work starts.
    stdin_data = sys.stdin.buffer.read() if "-" in units else None

    def work(unit: Union[Path, str]) -> UnitOutcome:
        return _compile_unit(unit, args.outdir, registry, config, stdin_data)

    if args.jobs > 1 and len(units) > 1:
        with ThreadPoolExecutor(max_workers=args.jobs) as pool:
            outcomes = list(pool.map(work, units))
    else:
        outcomes = [work(unit) for unit in units]

    results: List[CompileResult] = []
    failed = 0
    for outcome in outcomes:
        if outcome.error is not None:
            failed += 1
            _status("error processing file: {}: {}".format(outcome.source, outcome.error))
        else:
            results.append(outcome.result)
            _status("  Compiled: {} -> {}".format(outcome.source, outcome.result.destination))

    if args.manifest:
        try:
            manifest_path = write_manifest(results, args.manifest)
        except (OSError, jsonschema.ValidationError) as e:
            _status("Error: could not write manifest: {}".format(e))
            return 1
        _status("  Manifest: {}".format(manifest_path))

    _status("Done! {} compiled, {} failed.".format(len(results), failed))
    return 1 if failed else 0


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError("expected an integer, got {!r}".format(raw)) from None
    if value < 1:
        raise argparse.ArgumentTypeError("must be at least 1, got {}".format(value))
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Positional: paths (files, directories or "-"), optional
    - Optional: --outdir, --output-package, --tab-width, --jobs,
      --manifest, --verbose
    """
    parser = argparse.ArgumentParser(
        prog="protocol-compiler",
        description="Compile protocol source files (or a fragment on standard input) "
                    "into Go source files.",
    )

    parser.add_argument(
        "paths",
        nargs="*",
        help="Protocol files or directories to compile. Use '-' or nothing "
             "to read a single unit from standard input.",
    )

    parser.add_argument(
        "--outdir",
        default="",
        help="Directory for generated files (default: next to each input file).",
    )

    parser.add_argument(
        "--output-package",
        default=OUTPUT_PACKAGE,
        help="Package name written into generated files (default: %(default)s).",
    )

    parser.add_argument(
        "--tab-width",
        type=_positive_int,
        default=None,
        help="Printer tab width (default: PROTOCOL_TAB_WIDTH or 8).",
    )

    parser.add_argument(
        "--jobs",
        type=_positive_int,
        default=None,
        help="Number of units to compile in parallel (default: PROTOCOL_JOBS or 1).",
    )

    parser.add_argument(
        "--manifest",
        default=None,
        help="Write a JSON report of generated files to this path.",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log pipeline progress.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Exits with the status returned by run()
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        if args.tab_width is None:
            args.tab_width = load_tab_width()
        if args.jobs is None:
            args.jobs = load_jobs()
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    sys.exit(run(args))


if __name__ == "__main__":
    main()
