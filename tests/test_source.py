"""Tests for locations, spans and position bookkeeping."""

from __future__ import annotations

from kestrel.source import Location, Span, advance


def walk(text: str) -> Location:
    loc = Location.zero()
    for ch in text:
        loc = advance(loc, ch)
    return loc


class TestAdvance:
    def test_zero(self):
        loc = Location.zero()
        assert (loc.line, loc.column, loc.index, loc.offset) == (0, 0, 0, 0)

    def test_ascii(self):
        loc = walk("abc")
        assert (loc.line, loc.column, loc.index) == (0, 3, 3)

    def test_newline_resets_column(self):
        loc = walk("ab\ncd")
        assert (loc.line, loc.column, loc.index) == (1, 2, 5)

    def test_multibyte_index_counts_bytes(self):
        loc = walk("é")
        assert loc.index == 2
        assert loc.column == 1
        assert loc.offset == 1

    def test_astral_character(self):
        loc = walk("a😀b")
        assert loc.index == 6
        assert loc.column == 3
        assert loc.offset == 3

    def test_does_not_mutate(self):
        start = Location.zero()
        advance(start, "x")
        assert start == Location.zero()


class TestLocation:
    def test_ordering_by_index(self):
        assert walk("a") < walk("ab")
        assert walk("\n") < walk("\nx")

    def test_str_is_one_based(self):
        assert str(walk("ab\nc")) == "2:2"


class TestSpan:
    def test_len_is_byte_length(self):
        start = walk("x")
        end = walk("xéé")
        assert len(Span(start, end)) == 4

    def test_zero_length(self):
        loc = walk("abc")
        assert len(Span(loc, loc)) == 0
