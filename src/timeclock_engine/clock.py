"""Time sources.

Every "now" the engine needs (clock-in, clock-out, approval date, the
effective end of an open entry, audit timestamps) comes from a Clock so
tests can pin time.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable


def to_utc(value: datetime) -> datetime:
    """Normalize to aware UTC. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@runtime_checkable
class Clock(Protocol):
    """Protocol for time sources."""

    def now(self) -> datetime:
        """Return the current instant as an aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, current: datetime):
        self._current = to_utc(current)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = to_utc(current)

    def advance(self, **kwargs: float) -> datetime:
        """Move forward by a timedelta built from kwargs (hours=1, minutes=5...)."""
        self._current = self._current + timedelta(**kwargs)
        return self._current
