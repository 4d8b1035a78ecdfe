"""Test configuration and fixtures for the backend test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from arcane_backend.api import create_api
from arcane_backend.api.dependencies import (
    get_clock,
    get_lock_registry,
    get_player_store,
)
from arcane_backend.game_logic import (
    BalanceLedger,
    CreatureInstance,
    InMemoryPlayerAggregateStore,
    MergeDefaults,
    MergeRules,
    PlayerAggregate,
    PlayerLockRegistry,
    PlayerTransactionRunner,
    ProducerCatalog,
    ProductionTimerEngine,
    UpgradeMergeEngine,
    get_merge_rules,
    get_producer_catalog,
    load_producer_catalog,
)
from arcane_backend.settings import get_settings
from arcane_backend.shared import Currency, FrozenClock, Rarity

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

PLAYER_ID = "player-1"


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Ensure settings are loaded with predictable values during tests."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    get_settings.cache_clear()
    get_merge_rules.cache_clear()
    get_producer_catalog.cache_clear()
    yield
    get_settings.cache_clear()
    get_merge_rules.cache_clear()
    get_producer_catalog.cache_clear()


def _build_player(
    *,
    player_id: str = PLAYER_ID,
    gold: int = 0,
    gems: int = 0,
    arcane_energy: int = 0,
    creatures: tuple[CreatureInstance, ...] = (),
) -> PlayerAggregate:
    """Build a fresh, never-saved player aggregate."""
    return PlayerAggregate(
        player_id=player_id,
        balance=BalanceLedger(
            amounts={
                Currency.GOLD: gold,
                Currency.GEMS: gems,
                Currency.ARCANE_ENERGY: arcane_energy,
            }
        ),
        creatures=creatures,
    )


def _build_creature(
    creature_id: str,
    *,
    rarity: Rarity = Rarity.COMMON,
    template_id: str = "ember-drake",
    level: int = 10,
) -> CreatureInstance:
    return CreatureInstance(
        id=creature_id,
        template_id=template_id,
        name=template_id.replace("-", " ").title(),
        rarity=rarity,
        level=level,
    )


@pytest.fixture
def make_player() -> Callable[..., PlayerAggregate]:
    return _build_player


@pytest.fixture
def make_creature() -> Callable[..., CreatureInstance]:
    return _build_creature


@pytest.fixture
def seed(
    store: InMemoryPlayerAggregateStore,
) -> Callable[[PlayerAggregate], PlayerAggregate]:
    """Persist an aggregate into the in-memory store."""
    return store.save


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> InMemoryPlayerAggregateStore:
    return InMemoryPlayerAggregateStore()


@pytest.fixture
def locks() -> PlayerLockRegistry:
    return PlayerLockRegistry()


@pytest.fixture
def runner(
    store: InMemoryPlayerAggregateStore, locks: PlayerLockRegistry
) -> PlayerTransactionRunner:
    return PlayerTransactionRunner(store, locks)


@pytest.fixture
def catalog() -> ProducerCatalog:
    return load_producer_catalog()


@pytest.fixture
def rules() -> MergeRules:
    return MergeDefaults().to_rules()


@pytest.fixture
def production(
    runner: PlayerTransactionRunner, catalog: ProducerCatalog, clock: FrozenClock
) -> ProductionTimerEngine:
    return ProductionTimerEngine(runner, catalog, clock)


@pytest.fixture
def merges(
    runner: PlayerTransactionRunner, rules: MergeRules, clock: FrozenClock
) -> UpgradeMergeEngine:
    return UpgradeMergeEngine(runner, rules, clock)


@pytest.fixture
def client(
    store: InMemoryPlayerAggregateStore,
    locks: PlayerLockRegistry,
    clock: FrozenClock,
) -> Iterator[TestClient]:
    """Return a test client whose engines share the in-memory fixtures."""
    app = create_api()
    app.dependency_overrides[get_player_store] = lambda: store
    app.dependency_overrides[get_lock_registry] = lambda: locks
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
