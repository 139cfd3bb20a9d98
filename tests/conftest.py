"""Shared test fixtures for the protocol_compiler test suite.

WHY: Several test modules compile the same protocol source and compare
against the same expected Go output. Centralizing them here keeps the
expected bytes in one place.

HOW: Module-level constants hold the sample source and its printed
form; fixtures hand out fresh registries, default printer configs and
a sample file written into tmp_path.

RULES:
- SAMPLE_PROTOCOL parses at FullUnit level
- SAMPLE_PROTOCOL_GO is the exact printer output for it under the
  default PrinterConfig
- Every fixture that touches the filesystem uses tmp_path
"""

import pytest

from protocol_compiler.core.source import PositionRegistry
from protocol_compiler.lang.printer import PrinterConfig


SAMPLE_PROTOCOL = b"""protocol Aliquot

import (
\t"fmt"
\twunit "units"
)

// Parameters set by the user.
Parameters (
\tSolutionVolume Volume
\tNumberOfAliquots int
)

Inputs (
\tSolution LHComponent
)

Steps {
\tcount := 0
\tfor i := 0; i < NumberOfAliquots; i++ {
\t\tcount += 1
\t}


\tfmt.Println(count)
}
"""

SAMPLE_PROTOCOL_GO = b"""package main

import (
\t"fmt"
\twunit "units"
)

type _Parameters struct {
\tSolutionVolume   Volume
\tNumberOfAliquots int
}

type _Inputs struct {
\tSolution LHComponent
}

func _Steps() {
\tcount := 0
\tfor i := 0; i < NumberOfAliquots; i++ {
\t\tcount += 1
\t}

\tfmt.Println(count)
}
"""

SAMPLE_PACKAGE = b"""package util

func Double(x int) int {
\treturn x * 2
}
"""


@pytest.fixture
def registry():
    """A fresh position registry."""
    return PositionRegistry()


@pytest.fixture
def printer_config():
    """The default printer configuration."""
    return PrinterConfig()


@pytest.fixture
def sample_protocol_file(tmp_path):
    """SAMPLE_PROTOCOL written to <tmp>/src/aliquot.an."""
    src_dir = tmp_path / "src"
    src_dir.mkdir()
    path = src_dir / "aliquot.an"
    path.write_bytes(SAMPLE_PROTOCOL)
    return path


@pytest.fixture
def sample_protocol():
    return SAMPLE_PROTOCOL


@pytest.fixture
def sample_protocol_go():
    return SAMPLE_PROTOCOL_GO


@pytest.fixture
def sample_package():
    return SAMPLE_PACKAGE
