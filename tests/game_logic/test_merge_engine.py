"""Tests for the creature upgrade-merge protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from arcane_backend.shared import Currency, FailureKind, FailureReason, Rarity

if TYPE_CHECKING:
    from collections.abc import Callable

    from arcane_backend.game_logic import (
        CreatureInstance,
        InMemoryPlayerAggregateStore,
        PlayerAggregate,
        UpgradeMergeEngine,
    )
    from arcane_backend.shared import FrozenClock

PLAYER_ID = "player-1"


@pytest.fixture
def pair(
    make_player: Callable[..., PlayerAggregate],
    make_creature: Callable[..., CreatureInstance],
    seed: Callable[[PlayerAggregate], PlayerAggregate],
) -> Callable[..., PlayerAggregate]:
    """Seed a player owning creatures ``a`` and ``b`` of the given rarity."""

    def _seed(rarity: Rarity = Rarity.COMMON, *, gems: int = 0) -> PlayerAggregate:
        return seed(
            make_player(
                gems=gems,
                creatures=(
                    make_creature("a", rarity=rarity),
                    make_creature("b", rarity=rarity),
                ),
            )
        )

    return _seed


def test_common_merge_completes_on_second_call(
    merges: UpgradeMergeEngine,
    pair: Callable[..., PlayerAggregate],
    store: InMemoryPlayerAggregateStore,
) -> None:
    pair(Rarity.COMMON)

    first = merges.start_or_advance(PLAYER_ID, "a", "b")

    assert first.success is False
    assert first.reason is FailureReason.UPGRADE_PENDING
    assert first.kind is FailureKind.IN_PROGRESS
    assert first.data["progress"]["current"] == 50
    assert first.data["timing"]["wait_time_minutes"] == 0

    second = merges.start_or_advance(PLAYER_ID, "a", "b")

    assert second.success
    assert second.data["new_level"] == 11
    assert second.data["consumed_creature_id"] == "b"
    assert second.data["progress"]["current"] == 100

    player = store.load(PLAYER_ID)
    assert [creature.id for creature in player.creatures] == ["a"]
    assert player.creature("a").level == 11
    assert player.creature("a").upgrade_partner_id is None
    assert player.merge_sessions == ()


def test_starting_links_both_creatures(
    merges: UpgradeMergeEngine,
    pair: Callable[..., PlayerAggregate],
    store: InMemoryPlayerAggregateStore,
    clock: FrozenClock,
) -> None:
    pair(Rarity.EPIC)

    merges.start_or_advance(PLAYER_ID, "a", "b")

    player = store.load(PLAYER_ID)
    first, second = player.creature("a"), player.creature("b")
    assert first.upgrade_partner_id == "b"
    assert second.upgrade_partner_id == "a"
    assert first.upgrade_progress == second.upgrade_progress == 15
    assert first.last_upgrade_click_time == clock.now()
    (session,) = player.merge_sessions
    assert session.target_level == 11
    assert session.wait_minutes == 30


def test_rare_merge_progress_rises_until_completion(
    merges: UpgradeMergeEngine,
    pair: Callable[..., PlayerAggregate],
    store: InMemoryPlayerAggregateStore,
    clock: FrozenClock,
) -> None:
    pair(Rarity.RARE)

    started = merges.start_or_advance(PLAYER_ID, "a", "b")

    assert started.data["remaining_time"] == "15:00"
    assert started.data["timing"]["wait_time_minutes"] == 15
    seen = [started.data["progress"]["current"]]

    for _ in range(4):
        clock.advance(minutes=3)
        pending = merges.start_or_advance(PLAYER_ID, "a", "b")
        assert pending.reason is FailureReason.UPGRADE_PENDING
        seen.append(pending.data["progress"]["current"])

    assert seen == [25, 40, 55, 70, 85]
    assert store.load(PLAYER_ID).creature("b").upgrade_progress == 85

    clock.advance(minutes=3)
    done = merges.start_or_advance(PLAYER_ID, "a", "b")

    assert done.success
    assert done.data["rarity"] == "rare"
    assert store.load(PLAYER_ID).creature("b") is None


def test_reversed_pair_addresses_the_same_session(
    merges: UpgradeMergeEngine,
    pair: Callable[..., PlayerAggregate],
    store: InMemoryPlayerAggregateStore,
    clock: FrozenClock,
) -> None:
    pair(Rarity.RARE)
    merges.start_or_advance(PLAYER_ID, "a", "b")
    clock.advance(minutes=15)

    done = merges.start_or_advance(PLAYER_ID, "b", "a")

    assert done.success
    assert done.data["consumed_creature_id"] == "b"
    assert store.load(PLAYER_ID).creature("a").level == 11


def test_check_progress_never_mutates(
    merges: UpgradeMergeEngine,
    pair: Callable[..., PlayerAggregate],
    store: InMemoryPlayerAggregateStore,
    clock: FrozenClock,
) -> None:
    pair(Rarity.RARE)
    merges.start_or_advance(PLAYER_ID, "a", "b")
    clock.advance(minutes=6)
    before = store.load(PLAYER_ID)

    pending = merges.check_progress(PLAYER_ID, "a", "b")

    assert pending.success
    assert pending.data["ready"] is False
    assert pending.data["progress"]["current"] == 55
    assert pending.data["remaining_time"] == "9:00"

    clock.advance(minutes=20)
    ready = merges.check_progress(PLAYER_ID, "a", "b")

    assert ready.data["ready"] is True
    assert ready.data["progress"]["current"] == 100
    assert store.load(PLAYER_ID) == before


def test_check_progress_without_session(
    merges: UpgradeMergeEngine, pair: Callable[..., PlayerAggregate]
) -> None:
    pair()

    assert merges.check_progress(PLAYER_ID, "a", "b").reason is FailureReason.NO_SESSION
    assert (
        merges.check_progress("ghost", "a", "b").reason
        is FailureReason.PLAYER_NOT_FOUND
    )


def test_collect_upgrade_happens_once(
    merges: UpgradeMergeEngine,
    pair: Callable[..., PlayerAggregate],
    store: InMemoryPlayerAggregateStore,
    clock: FrozenClock,
) -> None:
    pair(Rarity.LEGENDARY)
    merges.start_or_advance(PLAYER_ID, "a", "b")
    clock.advance(minutes=30)

    early = merges.collect_upgrade(PLAYER_ID, "a", "b")

    assert early.reason is FailureReason.NOT_READY
    assert early.data["remaining_time"] == "30:00"

    clock.advance(minutes=30)
    collected = merges.collect_upgrade(PLAYER_ID, "a", "b")
    again = merges.collect_upgrade(PLAYER_ID, "a", "b")

    assert collected.success
    assert collected.data["creature"]["level"] == 11
    assert again.reason is FailureReason.NO_SESSION
    assert store.load(PLAYER_ID).creature("a").level == 11


def test_speed_up_charges_gems_per_remaining_minute(
    merges: UpgradeMergeEngine,
    pair: Callable[..., PlayerAggregate],
    store: InMemoryPlayerAggregateStore,
    clock: FrozenClock,
) -> None:
    pair(Rarity.RARE, gems=100)
    merges.start_or_advance(PLAYER_ID, "a", "b")
    clock.advance(minutes=5)

    result = merges.speed_up(PLAYER_ID, "a", "b")

    assert result.success
    assert result.data["gems_spent"] == 10
    assert result.data["gems_remaining"] == 90
    assert result.data["progress"]["current"] == 100
    assert store.load(PLAYER_ID).balance.amount(Currency.GEMS) == 90

    assert merges.speed_up(PLAYER_ID, "a", "b").reason is FailureReason.ALREADY_READY
    assert merges.collect_upgrade(PLAYER_ID, "a", "b").success


def test_speed_up_bills_at_least_one_minute(
    merges: UpgradeMergeEngine,
    pair: Callable[..., PlayerAggregate],
    clock: FrozenClock,
) -> None:
    pair(Rarity.RARE, gems=5)
    merges.start_or_advance(PLAYER_ID, "a", "b")
    clock.advance(minutes=14, seconds=59, milliseconds=999)

    assert merges.speed_up(PLAYER_ID, "a", "b").data["gems_spent"] == 1


def test_speed_up_without_enough_gems(
    merges: UpgradeMergeEngine,
    pair: Callable[..., PlayerAggregate],
    store: InMemoryPlayerAggregateStore,
) -> None:
    pair(Rarity.EPIC, gems=3)
    merges.start_or_advance(PLAYER_ID, "a", "b")
    before = store.load(PLAYER_ID)

    result = merges.speed_up(PLAYER_ID, "a", "b")

    assert result.reason is FailureReason.INSUFFICIENT_FUNDS
    assert result.data == {"currency": "gems", "required": 30, "available": 3}
    assert store.load(PLAYER_ID) == before


def test_speed_up_without_session(
    merges: UpgradeMergeEngine, pair: Callable[..., PlayerAggregate]
) -> None:
    pair(gems=10)

    assert merges.speed_up(PLAYER_ID, "a", "b").reason is FailureReason.NO_SESSION


@pytest.mark.parametrize(
    "second",
    [
        {"template_id": "frost-wyrm"},
        {"rarity": Rarity.RARE},
        {"level": 11},
    ],
)
def test_mismatched_creatures_are_ineligible(
    merges: UpgradeMergeEngine,
    make_player: Callable[..., PlayerAggregate],
    make_creature: Callable[..., CreatureInstance],
    seed: Callable[[PlayerAggregate], PlayerAggregate],
    store: InMemoryPlayerAggregateStore,
    second: dict[str, object],
) -> None:
    seed(make_player(creatures=(make_creature("a"), make_creature("b", **second))))

    result = merges.start_or_advance(PLAYER_ID, "a", "b")

    assert result.reason is FailureReason.INELIGIBLE
    assert result.kind is FailureKind.INVALID_PARAMETER
    assert store.load(PLAYER_ID).merge_sessions == ()


def test_creatures_at_max_level_are_ineligible(
    merges: UpgradeMergeEngine,
    make_player: Callable[..., PlayerAggregate],
    make_creature: Callable[..., CreatureInstance],
    seed: Callable[[PlayerAggregate], PlayerAggregate],
) -> None:
    seed(
        make_player(
            creatures=(make_creature("a", level=40), make_creature("b", level=40))
        )
    )

    assert (
        merges.start_or_advance(PLAYER_ID, "a", "b").reason is FailureReason.INELIGIBLE
    )


def test_busy_missing_and_self_merges_are_rejected(
    merges: UpgradeMergeEngine,
    make_player: Callable[..., PlayerAggregate],
    make_creature: Callable[..., CreatureInstance],
    seed: Callable[[PlayerAggregate], PlayerAggregate],
) -> None:
    seed(
        make_player(
            creatures=(
                make_creature("a", rarity=Rarity.RARE),
                make_creature("b", rarity=Rarity.RARE),
                make_creature("c", rarity=Rarity.RARE),
            )
        )
    )
    merges.start_or_advance(PLAYER_ID, "a", "b")

    busy = merges.start_or_advance(PLAYER_ID, "c", "a")
    missing = merges.start_or_advance(PLAYER_ID, "c", "zzz")
    same = merges.start_or_advance(PLAYER_ID, "c", "c")

    assert busy.reason is FailureReason.CREATURE_BUSY
    assert busy.data["creature_id"] == "a"
    assert missing.reason is FailureReason.CREATURE_NOT_FOUND
    assert missing.data["creature_id"] == "zzz"
    assert same.reason is FailureReason.INVALID_PARAMETER
    assert (
        merges.start_or_advance("ghost", "a", "b").reason
        is FailureReason.PLAYER_NOT_FOUND
    )
