"""Token representation for the Kestrel tokenizer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from kestrel.source import Span


@dataclass(frozen=True)
class Borrowed:
    """Token text that still lives in the source, sliced on demand."""

    source: str
    start: int
    stop: int

    @property
    def text(self) -> str:
        return self.source[self.start:self.stop]

    def __repr__(self) -> str:
        return f"Borrowed({self.text!r})"


@dataclass(frozen=True)
class Owned:
    """Token text decoded into its own string (escapes were processed)."""

    text: str


Content = Union[Borrowed, Owned]


class Token:
    """A lexeme: its span in the source plus its textual content.

    Undecoded content is normally the source slice of ``span``. String
    literals are the exception: the span includes both quotes while the
    content is only the text between them.
    """

    __slots__ = ("span", "_content")

    def __init__(self, span: Span, content: Content) -> None:
        self.span = span
        self._content = content

    @property
    def content(self) -> str:
        return self._content.text

    @property
    def is_decoded(self) -> bool:
        return isinstance(self._content, Owned)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            return self.content == other
        if isinstance(other, Token):
            return self.span == other.span and self.content == other.content
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.span, self.content))

    def __str__(self) -> str:
        return self.content

    def __repr__(self) -> str:
        return f"Token({self.content!r} @ {self.span.start})"
