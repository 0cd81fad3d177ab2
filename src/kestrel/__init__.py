"""Kestrel: a position-tracking tokenizer and recursive-descent parser."""

from __future__ import annotations

from kestrel.errors import CompileError, Error
from kestrel.parser import Parser, parse_source
from kestrel.source import Location, Span
from kestrel.tokenizer import Tokenizer
from kestrel.tokens import Token

__version__ = "0.1.0"

__all__ = [
    "CompileError",
    "Error",
    "Location",
    "Parser",
    "Span",
    "Token",
    "Tokenizer",
    "parse_source",
]
