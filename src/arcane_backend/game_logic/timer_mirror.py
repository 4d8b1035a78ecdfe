"""Client-side countdown that mirrors server merge timers.

The mirror only predicts when the server will accept a merge so that clients
can skip calls that would certainly come back pending. It is never
authoritative: it cannot complete a merge, it forgets a timer as soon as the
server reports success, and once its local countdown runs out every call goes
back to the server, which re-validates the wait itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter

from arcane_backend.shared.clock import (
    Clock,
    SystemClock,
    format_remaining,
    remaining_whole_seconds,
    timed_progress,
)

DEFAULT_INITIAL_PROGRESS = 50


class MirrorTimer(BaseModel):
    """Locally stored countdown for one creature pair."""

    user_id: str
    creature1_id: str
    creature2_id: str
    start_time: datetime
    finish_time: datetime
    wait_time_minutes: int = Field(ge=0)
    initial_progress: int = Field(default=DEFAULT_INITIAL_PROGRESS, ge=0, le=100)
    click_count: int = Field(default=1, ge=1)


_TIMERS_ADAPTER = TypeAdapter(dict[str, MirrorTimer])


class UpgradeTimerMirror:
    """Predict server-side merge readiness to avoid needless requests."""

    def __init__(
        self,
        clock: Clock | None = None,
        timers: Mapping[str, MirrorTimer] | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._timers: dict[str, MirrorTimer] = dict(timers or {})

    @staticmethod
    def key(user_id: str, creature1_id: str, creature2_id: str) -> str:
        """Storage key for a pair; the two creatures may be listed in any order."""
        first, second = sorted((creature1_id, creature2_id))
        return f"{user_id}_{first}_{second}"

    def timer(
        self, user_id: str, creature1_id: str, creature2_id: str
    ) -> MirrorTimer | None:
        return self._timers.get(self.key(user_id, creature1_id, creature2_id))

    def process_response(
        self,
        user_id: str,
        creature1_id: str,
        creature2_id: str,
        response: Mapping[str, Any],
    ) -> Mapping[str, Any]:
        """Update local timers from a server response and return it unchanged."""
        key = self.key(user_id, creature1_id, creature2_id)
        if response.get("success"):
            self._timers.pop(key, None)
            return response
        timing = response.get("timing") or {}
        wait_minutes = timing.get("wait_time_minutes")
        if wait_minutes:
            progress = response.get("progress") or {}
            self.start_timer(
                user_id,
                creature1_id,
                creature2_id,
                wait_minutes=int(wait_minutes),
                initial_progress=int(
                    progress.get("current", DEFAULT_INITIAL_PROGRESS)
                ),
            )
        return response

    def start_timer(
        self,
        user_id: str,
        creature1_id: str,
        creature2_id: str,
        *,
        wait_minutes: int,
        initial_progress: int = DEFAULT_INITIAL_PROGRESS,
    ) -> MirrorTimer:
        """Start a countdown, or count another click on an existing one."""
        key = self.key(user_id, creature1_id, creature2_id)
        existing = self._timers.get(key)
        if existing is not None:
            bumped = existing.model_copy(
                update={"click_count": existing.click_count + 1}
            )
            self._timers[key] = bumped
            return bumped
        now = self._clock.now()
        timer = MirrorTimer(
            user_id=user_id,
            creature1_id=creature1_id,
            creature2_id=creature2_id,
            start_time=now,
            finish_time=now + timedelta(minutes=wait_minutes),
            wait_time_minutes=wait_minutes,
            initial_progress=initial_progress,
        )
        self._timers[key] = timer
        return timer

    def is_complete(self, user_id: str, creature1_id: str, creature2_id: str) -> bool:
        timer = self.timer(user_id, creature1_id, creature2_id)
        if timer is None:
            return True
        return self._clock.now() >= timer.finish_time

    def remaining_seconds(
        self, user_id: str, creature1_id: str, creature2_id: str
    ) -> int:
        timer = self.timer(user_id, creature1_id, creature2_id)
        if timer is None:
            return 0
        return remaining_whole_seconds(self._clock.now(), timer.finish_time)

    def formatted_remaining(
        self, user_id: str, creature1_id: str, creature2_id: str
    ) -> str:
        return format_remaining(
            self.remaining_seconds(user_id, creature1_id, creature2_id)
        )

    def progress(self, user_id: str, creature1_id: str, creature2_id: str) -> int:
        """Return the predicted completion percentage using the server formula."""
        timer = self.timer(user_id, creature1_id, creature2_id)
        if timer is None:
            return 100
        return timed_progress(
            elapsed=self._clock.now() - timer.start_time,
            wait=timer.finish_time - timer.start_time,
            initial_progress=timer.initial_progress,
        )

    def should_call_server(
        self, user_id: str, creature1_id: str, creature2_id: str
    ) -> bool:
        """Return ``False`` only while a local countdown is still running."""
        return self.is_complete(user_id, creature1_id, creature2_id)

    def local_pending_response(
        self, user_id: str, creature1_id: str, creature2_id: str
    ) -> dict[str, Any] | None:
        """Return the pending payload to display instead of calling the server.

        ``None`` means the caller must ask the server. The mirror never
        fabricates a successful response.
        """
        if self.should_call_server(user_id, creature1_id, creature2_id):
            return None
        remaining = self.formatted_remaining(user_id, creature1_id, creature2_id)
        current = self.progress(user_id, creature1_id, creature2_id)
        return {
            "success": False,
            "message": f"Upgrade in progress. Please wait {remaining} before "
            "clicking again.",
            "remaining_time": remaining,
            "progress": {"current": current, "total": 100, "percentage": f"{current}%"},
        }

    def prune(self) -> list[str]:
        """Drop expired countdowns and return their keys."""
        expired = [
            key
            for key, timer in self._timers.items()
            if self._clock.now() >= timer.finish_time
        ]
        for key in expired:
            del self._timers[key]
        return expired

    def dump_json(self) -> str:
        """Serialise all timers, e.g. for client-side storage."""
        return _TIMERS_ADAPTER.dump_json(self._timers).decode("utf-8")

    @classmethod
    def load_json(cls, payload: str, clock: Clock | None = None) -> UpgradeTimerMirror:
        """Restore a mirror from :meth:`dump_json` output."""
        return cls(clock=clock, timers=_TIMERS_ADAPTER.validate_json(payload))


__all__ = ["MirrorTimer", "UpgradeTimerMirror"]
