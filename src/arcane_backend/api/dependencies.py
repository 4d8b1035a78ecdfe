"""Dependency providers for FastAPI routers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from arcane_backend.database import PlayerAggregateRepository, get_session
from arcane_backend.game_logic import (
    MergeRules,
    PlayerAggregateStore,
    PlayerLockRegistry,
    PlayerTransactionRunner,
    ProducerCatalog,
    ProductionTimerEngine,
    UpgradeMergeEngine,
    get_merge_rules,
    get_producer_catalog,
)
from arcane_backend.settings import BackendSettings, get_settings
from arcane_backend.shared import Clock, SystemClock

_lock_registry = PlayerLockRegistry()
_system_clock = SystemClock()


def get_lock_registry() -> PlayerLockRegistry:
    """Return the process-wide per-player lock registry."""

    return _lock_registry


def get_clock() -> Clock:
    """Return the authoritative server clock."""

    return _system_clock


def get_player_store(
    session: Annotated[Session, Depends(get_session)],
) -> PlayerAggregateStore:
    """Return a SQL-backed aggregate store bound to the request session."""

    return PlayerAggregateRepository(session)


def get_transaction_runner(
    store: Annotated[PlayerAggregateStore, Depends(get_player_store)],
    locks: Annotated[PlayerLockRegistry, Depends(get_lock_registry)],
    settings: Annotated[BackendSettings, Depends(get_settings)],
) -> PlayerTransactionRunner:
    return PlayerTransactionRunner(
        store, locks, max_attempts=settings.max_write_attempts
    )


def get_production_engine(
    runner: Annotated[PlayerTransactionRunner, Depends(get_transaction_runner)],
    catalog: Annotated[ProducerCatalog, Depends(get_producer_catalog)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ProductionTimerEngine:
    return ProductionTimerEngine(runner, catalog, clock)


def get_merge_engine(
    runner: Annotated[PlayerTransactionRunner, Depends(get_transaction_runner)],
    rules: Annotated[MergeRules, Depends(get_merge_rules)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> UpgradeMergeEngine:
    return UpgradeMergeEngine(runner, rules, clock)


ProductionEngineDep = Annotated[ProductionTimerEngine, Depends(get_production_engine)]
MergeEngineDep = Annotated[UpgradeMergeEngine, Depends(get_merge_engine)]


__all__ = [
    "MergeEngineDep",
    "ProductionEngineDep",
    "get_clock",
    "get_lock_registry",
    "get_merge_engine",
    "get_player_store",
    "get_production_engine",
    "get_transaction_runner",
]
