"""Tokenizer for the Kestrel language.

A single mutable cursor over an immutable source text. Every public
scanning operation first skips whitespace, so all reported locations
are post-whitespace. Operations that find nothing return ``None``;
only :meth:`Tokenizer.expect` turns an absence into an :class:`Error`.
"""

from __future__ import annotations

from collections.abc import Callable

from kestrel.errors import Error
from kestrel.result import Failed, Matched, Outcome
from kestrel.source import Location, Span, advance
from kestrel.tokens import Borrowed, Token


class Tokenizer:
    """Scans Kestrel source text on demand."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._location = Location.zero()

    @property
    def source(self) -> str:
        return self._source

    # ── Helpers ───────────────────────────────────────────────────

    def _shimmy(self) -> None:
        """Move the cursor past any run of whitespace."""
        loc = self._location
        source = self._source
        while loc.offset < len(source) and source[loc.offset].isspace():
            loc = advance(loc, source[loc.offset])
        self._location = loc

    def _token(self, span: Span) -> Token:
        return Token(span, Borrowed(self._source, span.start.offset, span.end.offset))

    def _word_span(self, word: str) -> Span | None:
        span = self.peek_str(word)
        if span is None:
            return None
        following = self.char_at(span.end)
        if following is not None and not following.isspace():
            return None
        return span

    # ── Inspection ────────────────────────────────────────────────

    def location(self) -> Location:
        self._shimmy()
        return self._location

    def cursor(self) -> str:
        """Return the remaining unconsumed text."""
        self._shimmy()
        return self._source[self._location.offset:]

    def has_more_tokens(self) -> bool:
        self._shimmy()
        return self._location.offset < len(self._source)

    def char_at(self, location: Location) -> str | None:
        if 0 <= location.offset < len(self._source):
            return self._source[location.offset]
        return None

    def cursor_for(self, location: Location) -> str | None:
        if location.offset < len(self._source):
            return self._source[location.offset:]
        return None

    def lex_for(self, span: Span) -> str | None:
        """Return the source text covered by ``span``, if it is in bounds."""
        if self.cursor_for(span.start) is None or span.end.offset > len(self._source):
            return None
        return self._source[span.start.offset:span.end.offset]

    # ── Single characters ─────────────────────────────────────────

    def peek(self) -> str | None:
        return self.char_at(self.location())

    def advance(self) -> str | None:
        ch = self.peek()
        if ch is not None:
            self._location = advance(self._location, ch)
        return ch

    def commit(self, location: Location) -> None:
        """Move the cursor forward to a location computed by the caller."""
        if location.index < self._location.index:
            raise ValueError(f"cannot move cursor back from {self._location} to {location}")
        self._location = location

    # ── Runs and literals ─────────────────────────────────────────

    def peek_while(self, predicate: Callable[[str], bool]) -> Span | None:
        start = self.location()
        end = start
        source = self._source
        while end.offset < len(source) and predicate(source[end.offset]):
            end = advance(end, source[end.offset])
        if end == start:
            return None
        return Span(start, end)

    def peek_word(self) -> Span | None:
        return self.peek_while(lambda ch: not ch.isspace())

    def consume_while(self, predicate: Callable[[str], bool]) -> Token | None:
        span = self.peek_while(predicate)
        if span is None:
            return None
        self._location = span.end
        return self._token(span)

    def peek_str(self, literal: str) -> Span | None:
        start = self.location()
        if not literal or not self._source.startswith(literal, start.offset):
            return None
        end = start
        for ch in literal:
            end = advance(end, ch)
        return Span(start, end)

    def consume(self, literal: str) -> Token | None:
        span = self.peek_str(literal)
        if span is None:
            return None
        self._location = span.end
        return self._token(span)

    def match_word(self, word: str) -> bool:
        return self._word_span(word) is not None

    def consume_word(self, word: str) -> Token | None:
        span = self._word_span(word)
        if span is None:
            return None
        self._location = span.end
        return self._token(span)

    def expect(self, literal: str) -> Outcome[Token]:
        start = self.location()
        token = self.consume(literal)
        if token is None:
            return Failed(Error(start, f"expected `{literal}`"))
        return Matched(token)
