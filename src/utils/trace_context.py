"""
Trace context for correlating logs across one processed market event.

Every event applied to an engine runs inside a cycle. Log formatters stamp
the current cycle ID on each record, so all lines about one event (bar
appends, indicator warm-up, emitted signals) can be grepped together.

Replays pass the event sequence number, which keeps cycle IDs stable
between runs over the same file; other callers get a random ID.

Usage:
    with new_cycle(sequence=42) as cycle_id:   # "000042"
        signals = engine.generate(event)
"""

from __future__ import annotations

import secrets
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional, Generator

NO_CYCLE = "------"

_cycle_id: ContextVar[Optional[str]] = ContextVar("cycle_id", default=None)


def generate_cycle_id(sequence: Optional[int] = None) -> str:
    """6-character cycle ID: zero-padded sequence (last 6 digits) or random hex."""
    if sequence is None:
        return secrets.token_hex(3)
    return f"{sequence % 1_000_000:06d}"


def get_cycle_id() -> str:
    """Current cycle ID, or "------" outside a cycle."""
    return _cycle_id.get() or NO_CYCLE


@contextmanager
def new_cycle(sequence: Optional[int] = None) -> Generator[str, None, None]:
    """Scope a cycle ID for the duration of the block (nesting restores the outer one)."""
    token = _cycle_id.set(generate_cycle_id(sequence))
    try:
        yield _cycle_id.get()
    finally:
        _cycle_id.reset(token)
