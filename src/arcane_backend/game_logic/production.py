"""Production timer engine for the arcane energy building.

The building cycles through ``idle -> active -> ready -> idle``: activation
spends gold and opens a fixed production window, collection credits arcane
energy exactly once after the window closes. Upgrades are only allowed while
idle and are charged as one summed debit, no matter how many levels are
skipped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from arcane_backend.game_logic.catalog import InvalidCatalogLevelError
from arcane_backend.game_logic.ledger import InsufficientFundsError
from arcane_backend.game_logic.persistence import Transition, unchanged
from arcane_backend.game_logic.state import ProducerBuilding
from arcane_backend.shared.clock import remaining_whole_minutes
from arcane_backend.shared.enums import Currency, ProductionStatus
from arcane_backend.shared.results import FailureReason, OperationResult

if TYPE_CHECKING:
    from arcane_backend.game_logic.catalog import ProducerCatalog
    from arcane_backend.game_logic.persistence import PlayerTransactionRunner
    from arcane_backend.game_logic.state import PlayerAggregate
    from arcane_backend.shared.clock import Clock

logger = logging.getLogger(__name__)

ACTIVATION_CURRENCY = Currency.GOLD
YIELD_CURRENCY = Currency.ARCANE_ENERGY


def building_snapshot(building: ProducerBuilding) -> dict[str, Any]:
    """Return the JSON-ready representation of *building*."""
    return building.model_dump(mode="json")


def _missing_building() -> Transition:
    return unchanged(
        OperationResult.fail(
            FailureReason.BUILDING_NOT_FOUND,
            "User does not have an Arcane Energy building",
        )
    )


class ProductionTimerEngine:
    """Own the producer building state machine for a single player aggregate."""

    def __init__(
        self,
        runner: PlayerTransactionRunner,
        catalog: ProducerCatalog,
        clock: Clock,
    ) -> None:
        self._runner = runner
        self._catalog = catalog
        self._clock = clock

    def add(self, player_id: str) -> OperationResult:
        """Give the player a level-1 building if they have none yet."""
        return self._runner.execute(player_id, self._add)

    def activate(self, player_id: str) -> OperationResult:
        """Spend the activation cost and open a production window."""
        return self._runner.execute(player_id, self._activate)

    def collect(self, player_id: str) -> OperationResult:
        """Credit the production yield once the window has closed."""
        return self._runner.execute(player_id, self._collect)

    def upgrade_to_level(self, player_id: str, target_level: int) -> OperationResult:
        """Jump straight to *target_level*, paying every skipped level at once."""
        return self._runner.execute(
            player_id, lambda aggregate: self._upgrade(aggregate, target_level)
        )

    def upgrade(self, player_id: str) -> OperationResult:
        """Upgrade by exactly one level."""

        def transition(aggregate: PlayerAggregate) -> Transition:
            building = aggregate.producer
            if building is None:
                return _missing_building()
            if building.level >= self._catalog.max_level:
                return unchanged(
                    OperationResult.fail(
                        FailureReason.MAX_LEVEL,
                        "Building is already at maximum level",
                        level=building.level,
                    )
                )
            return self._upgrade(aggregate, building.level + 1)

        return self._runner.execute(player_id, transition)

    def status(self, player_id: str) -> OperationResult:
        """Report the building and its derived stage without mutating anything."""
        aggregate = self._runner.read(player_id)
        if aggregate is None:
            return OperationResult.fail(FailureReason.PLAYER_NOT_FOUND, "User not found")
        building = aggregate.producer
        if building is None:
            return _missing_building().result
        now = self._clock.now()
        stage = building.status(now)
        data: dict[str, Any] = {
            "arcaneEnergy": building_snapshot(building),
            "status": stage.value,
        }
        if stage is ProductionStatus.ACTIVE:
            data["remaining_minutes"] = remaining_whole_minutes(
                now, building.production_end_time
            )
        return OperationResult.ok("Arcane Energy building status", **data)

    def _add(self, aggregate: PlayerAggregate) -> Transition:
        if aggregate.producer is not None:
            return unchanged(
                OperationResult.fail(
                    FailureReason.ALREADY_EXISTS,
                    "User already has an Arcane Energy building",
                )
            )
        try:
            entry = self._catalog.entry(1)
        except InvalidCatalogLevelError:
            return unchanged(
                OperationResult.fail(
                    FailureReason.CATALOG_ENTRY_NOT_FOUND, "Building data not found"
                )
            )
        building = ProducerBuilding.from_catalog(entry, self._clock.now())
        logger.info("Added arcane energy building for player %s", aggregate.player_id)
        return Transition(
            aggregate.with_producer(building),
            OperationResult.ok(
                "Arcane Energy building added successfully",
                arcaneEnergy=building_snapshot(building),
            ),
        )

    def _activate(self, aggregate: PlayerAggregate) -> Transition:
        building = aggregate.producer
        if building is None:
            return _missing_building()
        if building.is_active:
            return unchanged(
                OperationResult.fail(
                    FailureReason.ALREADY_ACTIVE, "Production is already active"
                )
            )
        try:
            balance = aggregate.balance.debit(
                ACTIVATION_CURRENCY, building.activation_cost
            )
        except InsufficientFundsError as exc:
            logger.debug("Activation rejected for %s: %s", aggregate.player_id, exc)
            return unchanged(
                OperationResult.fail(
                    FailureReason.INSUFFICIENT_FUNDS,
                    f"Not enough gold coins. Required: {exc.required}, "
                    f"Available: {exc.available}",
                    **exc.as_data(),
                )
            )
        started = building.start(self._clock.now())
        logger.info(
            "Player %s started production until %s",
            aggregate.player_id,
            started.production_end_time.isoformat(),
        )
        return Transition(
            aggregate.with_balance(balance).with_producer(started),
            OperationResult.ok(
                "Production started successfully",
                arcaneEnergy=building_snapshot(started),
                production_start_time=started.production_start_time.isoformat(),
                production_end_time=started.production_end_time.isoformat(),
            ),
        )

    def _collect(self, aggregate: PlayerAggregate) -> Transition:
        building = aggregate.producer
        if building is None:
            return _missing_building()
        if not building.is_active:
            return unchanged(
                OperationResult.fail(
                    FailureReason.NO_ACTIVE_PRODUCTION, "No active production to collect"
                )
            )
        now = self._clock.now()
        if building.status(now) is not ProductionStatus.READY:
            remaining = remaining_whole_minutes(now, building.production_end_time)
            return unchanged(
                OperationResult.fail(
                    FailureReason.NOT_READY,
                    f"Production is not complete. {remaining} minutes remaining.",
                    remaining_minutes=remaining,
                )
            )
        balance = aggregate.balance.credit(YIELD_CURRENCY, building.yield_amount)
        logger.info(
            "Player %s collected %d arcane energy",
            aggregate.player_id,
            building.yield_amount,
        )
        return Transition(
            aggregate.with_balance(balance).with_producer(building.finish(now)),
            OperationResult.ok(
                "Energy collected successfully",
                arcane_energy_collected=building.yield_amount,
                arcane_energy_balance=balance.amount(YIELD_CURRENCY),
            ),
        )

    def _upgrade(self, aggregate: PlayerAggregate, target_level: int) -> Transition:
        building = aggregate.producer
        if building is None:
            return _missing_building()
        if building.is_active:
            return unchanged(
                OperationResult.fail(
                    FailureReason.UPGRADE_WHILE_ACTIVE,
                    "Cannot upgrade while production is active",
                )
            )
        if building.level >= target_level:
            return unchanged(
                OperationResult.fail(
                    FailureReason.ALREADY_AT_OR_ABOVE_LEVEL,
                    f"Building is already at or above level {target_level}",
                    level=building.level,
                )
            )
        try:
            costs = self._catalog.upgrade_costs(building.level, target_level)
            target = self._catalog.entry(target_level)
        except InvalidCatalogLevelError as exc:
            return unchanged(
                OperationResult.fail(
                    FailureReason.INVALID_LEVEL,
                    f"Invalid upgrade path to level {target_level}",
                    missing_level=exc.level,
                )
            )
        try:
            balance = aggregate.balance.debit_many(costs)
        except InsufficientFundsError as exc:
            logger.debug("Upgrade rejected for %s: %s", aggregate.player_id, exc)
            return unchanged(
                OperationResult.fail(
                    FailureReason.INSUFFICIENT_FUNDS,
                    f"Not enough {exc.currency.value} for upgrade. "
                    f"Required: {exc.required}, Available: {exc.available}",
                    **exc.as_data(),
                )
            )
        upgraded = building.apply_level(target)
        logger.info(
            "Player %s upgraded arcane energy building %d -> %d",
            aggregate.player_id,
            building.level,
            upgraded.level,
        )
        return Transition(
            aggregate.with_balance(balance).with_producer(upgraded),
            OperationResult.ok(
                f"Arcane Energy building upgraded to level {upgraded.level}",
                level=upgraded.level,
                is_active=upgraded.is_active,
                production_time_minutes=upgraded.production_time_minutes,
                arcane_energy_production=upgraded.yield_amount,
                activation_gold_cost=upgraded.activation_cost,
                level_transition={"from": building.level, "to": upgraded.level},
                upgrade_cost=costs.get(Currency.GOLD, 0),
                upgrade_costs={
                    currency.value: amount for currency, amount in costs.items()
                },
                remaining_gold=balance.amount(Currency.GOLD),
            ),
        )


__all__ = [
    "ACTIVATION_CURRENCY",
    "YIELD_CURRENCY",
    "ProductionTimerEngine",
    "building_snapshot",
]
