"""Upgrade-merge engine for creature milestone upgrades.

Merging consumes ``creature2`` to promote ``creature1`` by one level. The
same advance call both starts a session and completes it: the first call
answers with ``success=false`` plus timing so the client can run a local
countdown, later calls complete the merge once the rarity's wait has elapsed.
Common merges have no wait, so their second call always completes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from arcane_backend.game_logic.ledger import InsufficientFundsError
from arcane_backend.game_logic.persistence import Transition, unchanged
from arcane_backend.game_logic.state import MergeSession
from arcane_backend.shared.clock import (
    format_remaining,
    remaining_whole_minutes,
    remaining_whole_seconds,
)
from arcane_backend.shared.enums import Currency, Rarity
from arcane_backend.shared.results import FailureReason, OperationResult

if TYPE_CHECKING:
    from datetime import datetime

    from arcane_backend.game_logic.configuration import MergeRules
    from arcane_backend.game_logic.persistence import PlayerTransactionRunner
    from arcane_backend.game_logic.state import CreatureInstance, PlayerAggregate
    from arcane_backend.shared.clock import Clock

logger = logging.getLogger(__name__)

SPEED_UP_CURRENCY = Currency.GEMS


def progress_block(current: int) -> dict[str, Any]:
    return {"current": current, "total": 100, "percentage": f"{current}%"}


def _timing_block(session: MergeSession) -> dict[str, Any]:
    return {
        "wait_time_minutes": session.wait_minutes,
        "start_time": session.started_at.isoformat(),
        "estimated_finish_time": session.ready_at.isoformat(),
    }


def _session_view(session: MergeSession, now: datetime) -> dict[str, Any]:
    """Fields shared by every response describing a merge in flight."""
    return {
        "remaining_time": format_remaining(
            remaining_whole_seconds(now, session.ready_at)
        ),
        "progress": progress_block(session.progress(now)),
        "timing": _timing_block(session),
        "rarity": session.rarity.value,
        "target_level": session.target_level,
    }


def _no_session() -> OperationResult:
    return OperationResult.fail(
        FailureReason.NO_SESSION, "No upgrade in progress for these creatures"
    )


class UpgradeMergeEngine:
    """Own the creature pair merge protocol for a single player aggregate."""

    def __init__(
        self,
        runner: PlayerTransactionRunner,
        rules: MergeRules,
        clock: Clock,
    ) -> None:
        self._runner = runner
        self._rules = rules
        self._clock = clock

    def start_or_advance(
        self, player_id: str, creature1_id: str, creature2_id: str
    ) -> OperationResult:
        """Start a merge, or try to complete the one already running."""
        return self._runner.execute(
            player_id,
            lambda aggregate: self._advance(aggregate, creature1_id, creature2_id),
        )

    def check_progress(
        self, player_id: str, creature1_id: str, creature2_id: str
    ) -> OperationResult:
        """Report merge progress; never completes or mutates the session."""
        aggregate = self._runner.read(player_id)
        if aggregate is None:
            return OperationResult.fail(FailureReason.PLAYER_NOT_FOUND, "User not found")
        session = aggregate.find_session(creature1_id, creature2_id)
        if session is None:
            return _no_session()
        now = self._clock.now()
        ready = session.is_ready(now) or session.rarity is Rarity.COMMON
        message = (
            "Upgrade is ready to collect"
            if ready
            else "Upgrade in progress. "
            f"{remaining_whole_minutes(now, session.ready_at)} minutes remaining."
        )
        return OperationResult.ok(message, ready=ready, **_session_view(session, now))

    def collect_upgrade(
        self, player_id: str, creature1_id: str, creature2_id: str
    ) -> OperationResult:
        """Complete a ready merge exactly once."""

        def transition(aggregate: PlayerAggregate) -> Transition:
            session = aggregate.find_session(creature1_id, creature2_id)
            if session is None:
                return unchanged(_no_session())
            now = self._clock.now()
            if not session.is_ready(now):
                return unchanged(
                    OperationResult.fail(
                        FailureReason.NOT_READY,
                        "Upgrade is not ready yet",
                        **_session_view(session, now),
                    )
                )
            return self._complete(aggregate, session)

        return self._runner.execute(player_id, transition)

    def speed_up(
        self, player_id: str, creature1_id: str, creature2_id: str
    ) -> OperationResult:
        """Pay gems to finish the wait immediately."""
        return self._runner.execute(
            player_id,
            lambda aggregate: self._speed_up(aggregate, creature1_id, creature2_id),
        )

    def speed_up_cost(self, session: MergeSession, now: datetime) -> int:
        """Return the gem price of skipping the rest of *session*'s wait."""
        minutes = max(1, remaining_whole_minutes(now, session.ready_at))
        return minutes * self._rules.speed_up_gems_per_minute

    def _advance(
        self, aggregate: PlayerAggregate, creature1_id: str, creature2_id: str
    ) -> Transition:
        if creature1_id == creature2_id:
            return unchanged(
                OperationResult.fail(
                    FailureReason.INVALID_PARAMETER,
                    "A creature cannot be merged with itself",
                )
            )
        session = aggregate.find_session(creature1_id, creature2_id)
        if session is None:
            return self._start(aggregate, creature1_id, creature2_id)
        now = self._clock.now()
        if session.rarity is Rarity.COMMON or session.is_ready(now):
            return self._complete(aggregate, session)

        progress = session.progress(now)
        touched = session.touch(now)
        updated = tuple(
            creature.engage(partner, progress, now)
            for creature, partner in self._pair(aggregate, touched)
        )
        view = _session_view(touched, now)
        return Transition(
            aggregate.with_merge(touched, updated),
            OperationResult.fail(
                FailureReason.UPGRADE_PENDING,
                "Upgrade in progress. Please wait "
                f"{view['remaining_time']} before clicking again.",
                **view,
            ),
        )

    def _start(
        self, aggregate: PlayerAggregate, creature1_id: str, creature2_id: str
    ) -> Transition:
        survivor = aggregate.creature(creature1_id)
        consumed = aggregate.creature(creature2_id)
        if survivor is None or consumed is None:
            missing = creature1_id if survivor is None else creature2_id
            return unchanged(
                OperationResult.fail(
                    FailureReason.CREATURE_NOT_FOUND,
                    f"Creature {missing} not found",
                    creature_id=missing,
                )
            )
        for creature in (survivor, consumed):
            if aggregate.session_for(creature.id) is not None:
                return unchanged(
                    OperationResult.fail(
                        FailureReason.CREATURE_BUSY,
                        f"Creature {creature.id} is already part of another upgrade",
                        creature_id=creature.id,
                    )
                )
        problem = self._eligibility_problem(survivor, consumed)
        if problem is not None:
            logger.debug(
                "Merge %s <- %s rejected for %s: %s",
                survivor.id,
                consumed.id,
                aggregate.player_id,
                problem,
            )
            return unchanged(OperationResult.fail(FailureReason.INELIGIBLE, problem))

        now = self._clock.now()
        timing = self._rules.timing(survivor.rarity)
        session = MergeSession(
            creature1_id=survivor.id,
            creature2_id=consumed.id,
            rarity=survivor.rarity,
            started_at=now,
            wait_minutes=timing.wait_minutes,
            initial_progress=timing.initial_progress,
            target_level=survivor.level + 1,
            last_update=now,
        )
        updated = (
            survivor.engage(consumed.id, timing.initial_progress, now),
            consumed.engage(survivor.id, timing.initial_progress, now),
        )
        logger.info(
            "Player %s started %s merge %s <- %s",
            aggregate.player_id,
            session.rarity.value,
            survivor.id,
            consumed.id,
        )
        view = _session_view(session, now)
        view["progress"] = progress_block(timing.initial_progress)
        return Transition(
            aggregate.with_merge(session, updated),
            OperationResult.fail(
                FailureReason.UPGRADE_PENDING,
                "Starting upgrade process. Please wait "
                f"{view['remaining_time']} before clicking again.",
                **view,
            ),
        )

    def _eligibility_problem(
        self, survivor: CreatureInstance, consumed: CreatureInstance
    ) -> str | None:
        if survivor.template_id != consumed.template_id:
            return "Only creatures of the same kind can be merged"
        if survivor.rarity is not consumed.rarity:
            return "Creatures must share the same rarity"
        if survivor.level != consumed.level:
            return "Creatures must be at the same level to merge"
        if survivor.level >= self._rules.max_creature_level:
            return "Creature is already at maximum level"
        return None

    def _complete(
        self, aggregate: PlayerAggregate, session: MergeSession
    ) -> Transition:
        survivor = aggregate.creature(session.creature1_id)
        promoted = survivor.level_up(session.target_level)
        logger.info(
            "Player %s completed merge %s -> level %d (consumed %s)",
            aggregate.player_id,
            promoted.id,
            promoted.level,
            session.creature2_id,
        )
        return Transition(
            aggregate.complete_merge(session, promoted),
            OperationResult.ok(
                "Upgrade completed successfully!",
                creature=promoted.model_dump(mode="json"),
                consumed_creature_id=session.creature2_id,
                new_level=promoted.level,
                rarity=session.rarity.value,
                progress=progress_block(100),
            ),
        )

    def _speed_up(
        self, aggregate: PlayerAggregate, creature1_id: str, creature2_id: str
    ) -> Transition:
        session = aggregate.find_session(creature1_id, creature2_id)
        if session is None:
            return unchanged(_no_session())
        now = self._clock.now()
        if session.is_ready(now):
            return unchanged(
                OperationResult.fail(
                    FailureReason.ALREADY_READY, "Upgrade is already ready to collect"
                )
            )
        cost = self.speed_up_cost(session, now)
        try:
            balance = aggregate.balance.debit(SPEED_UP_CURRENCY, cost)
        except InsufficientFundsError as exc:
            return unchanged(
                OperationResult.fail(
                    FailureReason.INSUFFICIENT_FUNDS,
                    f"Not enough gems. Required: {exc.required}, "
                    f"Available: {exc.available}",
                    **exc.as_data(),
                )
            )
        skipped = session.skip_wait(now)
        updated = tuple(
            creature.engage(partner, 100, now)
            for creature, partner in self._pair(aggregate, skipped)
        )
        logger.info(
            "Player %s sped up merge %s for %d gems",
            aggregate.player_id,
            session.creature1_id,
            cost,
        )
        return Transition(
            aggregate.with_balance(balance).with_merge(skipped, updated),
            OperationResult.ok(
                "Upgrade sped up successfully",
                gems_spent=cost,
                gems_remaining=balance.amount(SPEED_UP_CURRENCY),
                **_session_view(skipped, now),
            ),
        )

    @staticmethod
    def _pair(
        aggregate: PlayerAggregate, session: MergeSession
    ) -> tuple[tuple[CreatureInstance, str], ...]:
        """Return each merging creature paired with its partner's id."""
        return (
            (aggregate.creature(session.creature1_id), session.creature2_id),
            (aggregate.creature(session.creature2_id), session.creature1_id),
        )


__all__ = ["SPEED_UP_CURRENCY", "UpgradeMergeEngine", "progress_block"]
