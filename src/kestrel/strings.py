"""Decoding of quoted string literals.

Escape-free literals keep borrowing the source; the decoded buffer is
only created on the first backslash.
"""

from __future__ import annotations

import string

from kestrel.errors import Error
from kestrel.result import NO_MATCH, Failed, Matched, Outcome
from kestrel.source import Location, Span, advance
from kestrel.tokenizer import Tokenizer
from kestrel.tokens import Borrowed, Owned, Token

_SIMPLE_ESCAPES: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
}

# escape letter -> number of hex digits inside the braces
_RADIX_ESCAPES: dict[str, int] = {
    "u": 4,
    "x": 2,
}


def _lex_error(location: Location, message: str) -> Failed:
    return Failed(Error(location, message, code="E100"))


def _radix_escape(tok: Tokenizer, loc: Location, digits: int) -> Outcome[tuple[str, Location]]:
    """Decode ``{XXXX}`` starting at ``loc``; yield the char and the end location."""
    if tok.char_at(loc) != "{":
        return _lex_error(loc, "expected `{`")
    loc = advance(loc, "{")

    start = loc
    for _ in range(digits):
        ch = tok.char_at(loc)
        if ch is None or ch not in string.hexdigits:
            return _lex_error(loc, "expected hexadecimal digit")
        loc = advance(loc, ch)
    value = int(tok.lex_for(Span(start, loc)), 16)

    if tok.char_at(loc) != "}":
        return _lex_error(loc, "expected `}`")
    loc = advance(loc, "}")

    if 0xD800 <= value <= 0xDFFF:
        return _lex_error(start, f"invalid unicode scalar value {value:#06x}")
    return Matched((chr(value), loc))


def parse_string(tok: Tokenizer) -> Outcome[Token]:
    """Scan a string literal at the cursor.

    The token's span covers both quotes; its content is the text between
    them, borrowed from the source unless an escape had to be decoded.
    """
    if tok.peek_str('"') is None:
        return NO_MATCH

    start = tok.location()
    end = advance(start, '"')
    flushed = end
    decoded: list[str] | None = None

    while True:
        ch = tok.char_at(end)
        if ch is None:
            return _lex_error(end, 'expected closing quote `"`')
        if ch in "\r\n":
            return _lex_error(end, "unterminated string")
        if ch == '"':
            break
        if ch != "\\":
            end = advance(end, ch)
            continue

        if decoded is None:
            decoded = []
        decoded.append(tok.lex_for(Span(flushed, end)))
        end = advance(end, ch)

        escape = tok.char_at(end)
        if escape is None:
            return _lex_error(end, 'expected closing quote `"`')
        if escape in "\r\n":
            return _lex_error(end, "unterminated string")
        escape_at = end
        end = advance(end, escape)

        if escape in _SIMPLE_ESCAPES:
            decoded.append(_SIMPLE_ESCAPES[escape])
        elif escape in _RADIX_ESCAPES:
            outcome = _radix_escape(tok, end, _RADIX_ESCAPES[escape])
            if isinstance(outcome, Failed):
                return outcome
            value, end = outcome.value
            decoded.append(value)
        else:
            return _lex_error(escape_at, f"unknown escape sequence `\\{escape}`")
        flushed = end

    closing = advance(end, '"')
    tok.commit(closing)
    span = Span(start, closing)

    if decoded is None:
        content = Borrowed(tok.source, flushed.offset, end.offset)
        return Matched(Token(span, content))
    decoded.append(tok.lex_for(Span(flushed, end)))
    return Matched(Token(span, Owned("".join(decoded))))
