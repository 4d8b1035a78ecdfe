"""Persistence abstractions for player aggregates.

Engines never talk to a database directly. They hand a pure state transition
to :class:`PlayerTransactionRunner`, which serialises access per player, loads
the aggregate from a :class:`PlayerAggregateStore`, and saves the result with
an optimistic version check. Concrete stores (in-memory, SQL) comply with the
protocol below.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import NamedTuple, Protocol

from arcane_backend.game_logic.state import PlayerAggregate
from arcane_backend.shared.results import FailureReason, OperationResult

logger = logging.getLogger(__name__)


class ConcurrentUpdateError(Exception):
    """Raised when a save is attempted against a stale aggregate version."""

    def __init__(self, player_id: str, expected_version: int) -> None:
        super().__init__(
            f"Player {player_id} changed since version {expected_version} was loaded"
        )
        self.player_id = player_id
        self.expected_version = expected_version


class PlayerAggregateStore(Protocol):
    """Protocol describing how player aggregates are persisted."""

    def load(self, player_id: str) -> PlayerAggregate | None:
        """Return the stored aggregate for *player_id* or ``None``."""

    def save(self, aggregate: PlayerAggregate) -> PlayerAggregate:
        """Persist *aggregate* if its version is current; return the bumped copy.

        Raises :class:`ConcurrentUpdateError` when the stored version differs
        from ``aggregate.version``.
        """

    def commit(self) -> None:
        """Make the last successful :meth:`save` durable.

        Called while the player lock is still held; any error propagates to
        the caller as an infrastructure failure.
        """


class InMemoryPlayerAggregateStore:
    """Thread-safe in-memory implementation of :class:`PlayerAggregateStore`."""

    def __init__(self) -> None:
        self._aggregates: dict[str, PlayerAggregate] = {}
        self._guard = threading.Lock()

    def load(self, player_id: str) -> PlayerAggregate | None:
        with self._guard:
            return self._aggregates.get(player_id)

    def save(self, aggregate: PlayerAggregate) -> PlayerAggregate:
        with self._guard:
            current = self._aggregates.get(aggregate.player_id)
            current_version = current.version if current is not None else 0
            if current_version != aggregate.version:
                raise ConcurrentUpdateError(aggregate.player_id, aggregate.version)
            stored = aggregate.model_copy(update={"version": aggregate.version + 1})
            self._aggregates[aggregate.player_id] = stored
            return stored

    def commit(self) -> None:
        """Saves are visible immediately; nothing to flush."""


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class PlayerLockRegistry:
    """Hands out one exclusive lock per player id.

    An entry lives only while some request holds or waits for it, so ids of
    unknown players never accumulate.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, player_id: str) -> Iterator[None]:
        """Hold the lock for *player_id* for the duration of the block."""
        with self._guard:
            entry = self._entries.setdefault(player_id, _LockEntry())
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[player_id]


class Transition(NamedTuple):
    """Outcome of a state transition: the state to persist and the result."""

    aggregate: PlayerAggregate | None
    result: OperationResult


def unchanged(result: OperationResult) -> Transition:
    """Return a transition that persists nothing."""
    return Transition(None, result)


TransitionFn = Callable[[PlayerAggregate], Transition]


class PlayerTransactionRunner:
    """Run one read-modify-write per call against a player's aggregate."""

    def __init__(
        self,
        store: PlayerAggregateStore,
        locks: PlayerLockRegistry,
        *,
        max_attempts: int = 3,
    ) -> None:
        if max_attempts < 1:
            msg = "max_attempts must be at least 1."
            raise ValueError(msg)
        self._store = store
        self._locks = locks
        self._max_attempts = max_attempts

    def read(self, player_id: str) -> PlayerAggregate | None:
        """Return the current aggregate without taking the player lock."""
        return self._store.load(player_id)

    def execute(self, player_id: str, transition: TransitionFn) -> OperationResult:
        """Apply *transition* to the player's aggregate and persist its output."""
        last_version = 0
        with self._locks.hold(player_id):
            for attempt in range(1, self._max_attempts + 1):
                aggregate = self._store.load(player_id)
                if aggregate is None:
                    return OperationResult.fail(
                        FailureReason.PLAYER_NOT_FOUND, "User not found"
                    )
                last_version = aggregate.version
                outcome = transition(aggregate)
                if outcome.aggregate is None:
                    return outcome.result
                try:
                    self._store.save(
                        outcome.aggregate.model_copy(update={"version": last_version})
                    )
                except ConcurrentUpdateError:
                    logger.warning(
                        "Version conflict saving player %s (attempt %d of %d)",
                        player_id,
                        attempt,
                        self._max_attempts,
                    )
                    continue
                self._store.commit()
                return outcome.result
        raise ConcurrentUpdateError(player_id, last_version)


__all__ = [
    "ConcurrentUpdateError",
    "InMemoryPlayerAggregateStore",
    "PlayerAggregateStore",
    "PlayerLockRegistry",
    "PlayerTransactionRunner",
    "Transition",
    "TransitionFn",
    "unchanged",
]
