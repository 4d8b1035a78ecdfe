"""Tests for the invariants enforced by the player aggregate models."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from arcane_backend.game_logic import (
    CreatureInstance,
    MergeSession,
    PlayerAggregate,
    ProducerBuilding,
)
from arcane_backend.shared import ProductionStatus, Rarity

NOW = datetime(2024, 1, 1, tzinfo=UTC)


def _building(**overrides: object) -> ProducerBuilding:
    fields = {
        "level": 1,
        "production_time_minutes": 5,
        "yield_amount": 4_000,
        "activation_cost": 1_600,
        "last_collected": NOW,
    }
    fields.update(overrides)
    return ProducerBuilding(**fields)


def test_building_lifecycle_stages() -> None:
    idle = _building()
    active = idle.start(NOW)

    assert idle.status(NOW) is ProductionStatus.IDLE
    assert active.production_end_time == NOW + timedelta(minutes=5)
    assert active.status(NOW + timedelta(minutes=4)) is ProductionStatus.ACTIVE
    assert active.status(NOW + timedelta(minutes=5)) is ProductionStatus.READY
    assert active.finish(NOW).status(NOW) is ProductionStatus.IDLE


@pytest.mark.parametrize(
    "overrides",
    [
        {"is_active": True},
        {"production_start_time": NOW},
        {
            "is_active": True,
            "production_start_time": NOW,
            "production_end_time": NOW + timedelta(minutes=6),
        },
        {"level": 9},
    ],
)
def test_building_rejects_inconsistent_windows(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        _building(**overrides)


def test_merge_session_requires_two_creatures() -> None:
    with pytest.raises(ValidationError, match="distinct"):
        MergeSession(
            creature1_id="a",
            creature2_id="a",
            rarity=Rarity.RARE,
            started_at=NOW,
            wait_minutes=15,
            initial_progress=25,
            target_level=2,
            last_update=NOW,
        )


def test_partner_links_need_a_session(
    make_player: Callable[..., PlayerAggregate],
    make_creature: Callable[..., CreatureInstance],
) -> None:
    linked = make_creature("a").engage("b", 50, NOW)

    with pytest.raises(ValidationError, match="no merge session"):
        make_player(creatures=(linked, make_creature("b").engage("a", 50, NOW)))


def test_creature_ids_are_unique(
    make_player: Callable[..., PlayerAggregate],
    make_creature: Callable[..., CreatureInstance],
) -> None:
    with pytest.raises(ValidationError, match="unique"):
        make_player(creatures=(make_creature("a"), make_creature("a")))


def test_idle_creatures_carry_no_progress(
    make_creature: Callable[..., CreatureInstance],
) -> None:
    with pytest.raises(ValidationError, match="upgrade_progress"):
        CreatureInstance.model_validate(
            {**make_creature("a").model_dump(), "upgrade_progress": 10}
        )
