"""Shared enumerations used across the backend."""

from enum import StrEnum


class Currency(StrEnum):
    """Currencies tracked in a player's balance ledger."""

    GOLD = "gold"
    GEMS = "gems"
    ARCANE_ENERGY = "arcane_energy"


class Rarity(StrEnum):
    """Creature rarity tiers, lowest first."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class ProductionStatus(StrEnum):
    """Derived lifecycle stage of a producer building."""

    IDLE = "idle"
    ACTIVE = "active"
    READY = "ready"
