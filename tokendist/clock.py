from __future__ import annotations

"""
Time sources for the distribution engine.

Every state-changing operation reads the clock exactly once (see
``tokendist.state.AtomicStore.transaction``) so all computations inside one
call observe the same ``now``. Timestamps are integer UNIX seconds.

- SystemClock: wall clock, for embedding in a live service.
- ManualClock: deterministic, caller-driven; used by tests and simulations.
"""


import time
from typing import Protocol, runtime_checkable

SECONDS_PER_DAY = 86_400
DAYS_PER_YEAR = 365


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time in whole seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    A clock that only moves when told to.

    >>> c = ManualClock(1_700_000_000)
    >>> c.advance_days(2)
    1700172800
    """

    def __init__(self, start: int = 1_700_000_000) -> None:
        if start < 0:
            raise ValueError("start must be non-negative")
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, ts: int) -> int:
        ts = int(ts)
        if ts < self._now:
            raise ValueError(f"clock cannot move backwards ({ts} < {self._now})")
        self._now = ts
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        self._now += int(seconds)
        return self._now

    def advance_days(self, days: int) -> int:
        return self.advance(int(days) * SECONDS_PER_DAY)


def days_to_seconds(days: int) -> int:
    return int(days) * SECONDS_PER_DAY


def days_between(start: int, end: int) -> int:
    """Whole days elapsed from ``start`` to ``end`` (floor, never negative)."""
    if end <= start:
        return 0
    return (end - start) // SECONDS_PER_DAY


__all__ = [
    "SECONDS_PER_DAY",
    "DAYS_PER_YEAR",
    "Clock",
    "SystemClock",
    "ManualClock",
    "days_to_seconds",
    "days_between",
]
