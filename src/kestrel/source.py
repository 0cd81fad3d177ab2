"""Source positions and span tracking for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Location:
    """A point within a source text.

    ``index`` is the UTF-8 byte offset and orders locations. ``offset`` is
    the code-point offset of the same point, used to slice the Python
    string. Both are only ever moved together by :func:`advance`.
    """

    index: int = 0
    line: int = 0
    column: int = 0
    offset: int = 0

    @classmethod
    def zero(cls) -> Location:
        return cls()

    def __str__(self) -> str:
        return f"{self.line + 1}:{self.column + 1}"


@dataclass(frozen=True)
class Span:
    """A half-open range ``[start, end)`` within a source text."""

    start: Location
    end: Location

    def __len__(self) -> int:
        return self.end.index - self.start.index

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def advance(location: Location, ch: str) -> Location:
    """Return the location just past ``ch``."""
    index = location.index + len(ch.encode("utf-8", "surrogatepass"))
    if ch == "\n":
        line, column = location.line + 1, 0
    else:
        line, column = location.line, location.column + 1
    return Location(index=index, line=line, column=column, offset=location.offset + 1)
