"""Core rules and mechanics that drive the time-gated economy."""

from arcane_backend.game_logic.catalog import (
    DEFAULT_PRODUCER_LEVELS,
    CatalogLevelEntry,
    InvalidCatalogLevelError,
    ProducerCatalog,
)
from arcane_backend.game_logic.configuration import (
    MergeDefaults,
    MergeRules,
    RarityTiming,
    get_merge_rules,
    get_producer_catalog,
    load_producer_catalog,
)
from arcane_backend.game_logic.ledger import BalanceLedger, InsufficientFundsError
from arcane_backend.game_logic.merge import UpgradeMergeEngine
from arcane_backend.game_logic.persistence import (
    ConcurrentUpdateError,
    InMemoryPlayerAggregateStore,
    PlayerAggregateStore,
    PlayerLockRegistry,
    PlayerTransactionRunner,
    Transition,
)
from arcane_backend.game_logic.production import ProductionTimerEngine
from arcane_backend.game_logic.state import (
    CreatureInstance,
    MergeSession,
    PlayerAggregate,
    ProducerBuilding,
)
from arcane_backend.game_logic.timer_mirror import MirrorTimer, UpgradeTimerMirror

__all__ = [
    "DEFAULT_PRODUCER_LEVELS",
    "BalanceLedger",
    "CatalogLevelEntry",
    "ConcurrentUpdateError",
    "CreatureInstance",
    "InMemoryPlayerAggregateStore",
    "InsufficientFundsError",
    "InvalidCatalogLevelError",
    "MergeDefaults",
    "MergeRules",
    "MergeSession",
    "MirrorTimer",
    "PlayerAggregate",
    "PlayerAggregateStore",
    "PlayerLockRegistry",
    "PlayerTransactionRunner",
    "ProducerBuilding",
    "ProducerCatalog",
    "ProductionTimerEngine",
    "RarityTiming",
    "Transition",
    "UpgradeMergeEngine",
    "UpgradeTimerMirror",
    "get_merge_rules",
    "get_producer_catalog",
    "load_producer_catalog",
]
