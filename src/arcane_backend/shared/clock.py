"""Time sources and countdown helpers shared by the timer engines."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol

_MILLISECOND = timedelta(milliseconds=1)
_MS_PER_MINUTE = 60_000
_MS_PER_SECOND = 1_000


class Clock(Protocol):
    """Anything able to report the current UTC instant."""

    def now(self) -> datetime:
        """Return the current timezone-aware UTC datetime."""


class SystemClock:
    """Wall-clock implementation of :class:`Clock`."""

    def now(self) -> datetime:
        return datetime.now(tz=UTC)


class FrozenClock:
    """Manually driven clock used by tests and simulations."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        """Move the clock forward by *delta* or by ``timedelta(**kwargs)``."""
        step = delta if delta is not None else timedelta(**kwargs)
        if step < timedelta(0):
            msg = "FrozenClock cannot move backwards."
            raise ValueError(msg)
        self._now = self._now + step
        return self._now

    def set(self, instant: datetime) -> None:
        """Jump to *instant*."""
        self._now = instant


def _remaining_ms(now: datetime, deadline: datetime) -> int:
    """Return milliseconds until *deadline* rounded up, never negative."""
    remaining = deadline - now
    if remaining <= timedelta(0):
        return 0
    return -(-remaining // _MILLISECOND)


def remaining_whole_minutes(now: datetime, deadline: datetime) -> int:
    """Return the ceiling of the remaining minutes until *deadline*.

    Any unfinished remainder counts as a whole minute, so a timer that has
    not reached its deadline never reports zero minutes left.
    """
    return -(-_remaining_ms(now, deadline) // _MS_PER_MINUTE)


def remaining_whole_seconds(now: datetime, deadline: datetime) -> int:
    """Return the ceiling of the remaining seconds until *deadline*."""
    return -(-_remaining_ms(now, deadline) // _MS_PER_SECOND)


def format_remaining(seconds: int) -> str:
    """Render a countdown as ``M:SS``."""
    minutes, rest = divmod(max(seconds, 0), 60)
    return f"{minutes}:{rest:02d}"


def timed_progress(
    *, elapsed: timedelta, wait: timedelta, initial_progress: int
) -> int:
    """Return the percentage reached after *elapsed* of a *wait*-long timer.

    Progress starts at *initial_progress* and grows linearly to 100, clamped.
    """
    if wait <= timedelta(0) or elapsed >= wait:
        return 100
    if elapsed <= timedelta(0):
        return initial_progress
    span = 100 - initial_progress
    gained = (elapsed // _MILLISECOND) * span // (wait // _MILLISECOND)
    return min(100, initial_progress + gained)


__all__ = [
    "Clock",
    "FrozenClock",
    "SystemClock",
    "format_remaining",
    "remaining_whole_minutes",
    "remaining_whole_seconds",
    "timed_progress",
]
