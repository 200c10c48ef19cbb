"""
Fresh Identifier sources.

An identifier replaces every sentinel occurrence in one template
instantiation, so each call to ``next_id()`` must return a value never
returned before by the same source.
"""

import itertools
import time
from typing import Callable, Optional, Protocol


class IdentifierSource(Protocol):
    """Anything that can mint a fresh index for a new field block."""

    def next_id(self) -> int:
        ...


class ClockIdentifierSource:
    """
    Millisecond wall-clock identifiers.

    Strictly increasing: two calls within the same millisecond (or after
    the clock steps backwards) return ``previous + 1``.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last: Optional[int] = None

    def next_id(self) -> int:
        candidate = int(self._clock() * 1000)
        if self._last is not None and candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return candidate


class CounterIdentifierSource:
    """Monotonic counter; the first identifier is ``start + 1``."""

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start + 1)

    def next_id(self) -> int:
        return next(self._counter)


def create_identifier_source(kind: str, start: int = 0) -> IdentifierSource:
    """Build the identifier source named by ``Settings.identifier_source``."""
    if kind == "clock":
        return ClockIdentifierSource()
    if kind == "counter":
        return CounterIdentifierSource(start)
    raise ValueError(f"Unknown identifier source: '{kind}'")
