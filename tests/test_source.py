"""Tests for source spans and the position registry.

WHY: Every parse attempt, including scaffolded retries, registers its
text. Positions must resolve to the right file, line and column even
when many files share one registry across worker threads.

HOW: Registers short texts and resolves offsets directly; one test adds
files from a thread pool and checks no ranges overlap.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from protocol_compiler.core.source import PositionRegistry, SourceSpan


class TestSourceSpan:

    def test_defaults_to_non_interactive(self):
        span = SourceSpan(filename="a.an", data=b"protocol A\n")
        assert span.interactive is False

    def test_is_frozen(self):
        span = SourceSpan(filename="a.an", data=b"")
        with pytest.raises(AttributeError):
            span.data = b"x"


class TestPositionRegistry:
    """Global offsets resolve to (file, line, column)."""

    def test_bases_do_not_overlap(self, registry):
        a = registry.add_file("a.an", "abc")
        b = registry.add_file("b.an", "de\nf")
        assert a.base == 1
        assert b.base == a.base + len("abc") + 1
        assert len(registry) == 2

    def test_resolves_line_and_column(self, registry):
        registry.add_file("a.an", "abc")
        b = registry.add_file("b.an", "de\nfg")
        position = registry.position(b.base + 4)
        assert position.filename == "b.an"
        assert (position.line, position.column) == (2, 2)
        assert str(position) == "b.an:2:2"

    def test_end_of_file_has_a_position(self, registry):
        a = registry.add_file("a.an", "ab")
        assert registry.position(a.base + 2).column == 3

    def test_columns_count_characters(self, registry):
        a = registry.add_file("a.an", "é = 1\nx")
        assert registry.position(a.base + 2).column == 3
        assert registry.position(a.base + 6).line == 2

    def test_uncovered_offsets(self, registry):
        registry.add_file("a.an", "ab")
        assert registry.position(0) is None
        assert registry.position(100) is None

    def test_file_local_out_of_range(self, registry):
        a = registry.add_file("a.an", "ab")
        with pytest.raises(ValueError):
            a.position(3)

    def test_concurrent_registration(self, registry):
        texts = ["protocol P{}\n".format(i) for i in range(200)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            files = list(pool.map(lambda t: registry.add_file("x.an", t), texts))
        assert len(registry) == 200
        ranges = sorted((f.base, f.base + f.size) for f in files)
        for (_, end), (start, _) in zip(ranges, ranges[1:]):
            assert start > end
