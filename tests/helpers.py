"""Shared test helpers for the Kestrel test suite."""

from __future__ import annotations

import pytest

from kestrel.errors import Error
from kestrel.result import NO_MATCH, Failed
from kestrel.tokenizer import Tokenizer


def parse(source: str, rule):
    """Run one grammar rule over source. Returns None on no-match, fails on error."""
    outcome = rule(Tokenizer(source))
    if isinstance(outcome, Failed):
        pytest.fail(f"error at {outcome.error.location}: {outcome.error.message}")
    if outcome is NO_MATCH:
        return None
    return outcome.value


def parse_error(source: str, rule) -> Error:
    """Run one grammar rule over source, asserting it fails hard."""
    outcome = rule(Tokenizer(source))
    assert isinstance(outcome, Failed), f"expected a hard failure, got {outcome!r}"
    return outcome.error
