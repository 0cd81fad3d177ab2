"""Three-outcome results returned by grammar rules.

A rule either matched (:class:`Matched`), did not apply at all
(:data:`NO_MATCH`, the cursor is untouched and a sibling alternative may
be tried) or committed and then hit malformed input (:class:`Failed`).
A failure must never be turned back into a no-match.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from kestrel.errors import Error

T = TypeVar("T")


@dataclass(frozen=True)
class Matched(Generic[T]):
    value: T


class _NoMatch:
    _instance: _NoMatch | None = None

    def __new__(cls) -> _NoMatch:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH = _NoMatch()


@dataclass(frozen=True)
class Failed:
    error: Error


Outcome = Union[Matched[T], _NoMatch, Failed]
