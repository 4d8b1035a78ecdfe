"""Per-level production parameters for the producer building."""

from __future__ import annotations

from pydantic import BaseModel, Field, PositiveInt, model_validator
from pydantic.config import ConfigDict

from arcane_backend.shared.enums import Currency


class InvalidCatalogLevelError(LookupError):
    """Raised when a requested catalog level does not exist."""

    def __init__(self, level: int) -> None:
        super().__init__(f"No catalog entry for level {level}")
        self.level = level


class CatalogLevelEntry(BaseModel):
    """Parameters that apply to a producer building at one level."""

    model_config = ConfigDict(frozen=True)

    level: PositiveInt
    upgrade_cost: int = Field(ge=0)
    upgrade_currency: Currency = Currency.GOLD
    production_time_minutes: PositiveInt
    yield_amount: int = Field(ge=0)
    activation_cost: int = Field(ge=0)


class ProducerCatalog(BaseModel):
    """Ordered, immutable level table shared by every player."""

    model_config = ConfigDict(frozen=True)

    entries: tuple[CatalogLevelEntry, ...]

    @model_validator(mode="after")
    def _validate_ordering(self) -> ProducerCatalog:
        """Levels must be unique and strictly ascending."""
        levels = [entry.level for entry in self.entries]
        if any(later <= earlier for earlier, later in zip(levels, levels[1:])):
            msg = "Catalog levels must be unique and strictly ascending."
            raise ValueError(msg)
        return self

    @property
    def max_level(self) -> int:
        return self.entries[-1].level if self.entries else 0

    def entry(self, level: int) -> CatalogLevelEntry:
        """Return the entry for *level* or raise :class:`InvalidCatalogLevelError`."""
        for candidate in self.entries:
            if candidate.level == level:
                return candidate
        raise InvalidCatalogLevelError(level)

    def upgrade_path(self, current: int, target: int) -> tuple[CatalogLevelEntry, ...]:
        """Return every entry strictly above *current* up to *target* inclusive.

        Raises :class:`InvalidCatalogLevelError` for the first missing level so
        that callers can validate a whole path before charging for it.
        """
        return tuple(self.entry(level) for level in range(current + 1, target + 1))

    def upgrade_costs(self, current: int, target: int) -> dict[Currency, int]:
        """Return the summed upgrade cost per currency for ``current -> target``."""
        costs: dict[Currency, int] = {}
        for step in self.upgrade_path(current, target):
            costs[step.upgrade_currency] = (
                costs.get(step.upgrade_currency, 0) + step.upgrade_cost
            )
        return costs


DEFAULT_PRODUCER_LEVELS: tuple[CatalogLevelEntry, ...] = (
    CatalogLevelEntry(
        level=1,
        upgrade_cost=0,
        production_time_minutes=5,
        yield_amount=4_000,
        activation_cost=1_600,
    ),
    CatalogLevelEntry(
        level=2,
        upgrade_cost=1_000,
        production_time_minutes=10,
        yield_amount=44_000,
        activation_cost=22_000,
    ),
    CatalogLevelEntry(
        level=3,
        upgrade_cost=4_000,
        production_time_minutes=20,
        yield_amount=68_000,
        activation_cost=34_000,
    ),
    CatalogLevelEntry(
        level=4,
        upgrade_cost=10_000,
        production_time_minutes=30,
        yield_amount=142_000,
        activation_cost=71_000,
    ),
    CatalogLevelEntry(
        level=5,
        upgrade_cost=21_500,
        production_time_minutes=60,
        yield_amount=260_000,
        activation_cost=130_000,
    ),
    CatalogLevelEntry(
        level=6,
        upgrade_cost=55_000,
        production_time_minutes=120,
        yield_amount=400_000,
        activation_cost=200_000,
    ),
    CatalogLevelEntry(
        level=7,
        upgrade_cost=100_000,
        production_time_minutes=480,
        yield_amount=800_000,
        activation_cost=400_000,
    ),
    CatalogLevelEntry(
        level=8,
        upgrade_cost=2_000,
        upgrade_currency=Currency.GEMS,
        production_time_minutes=720,
        yield_amount=2_400_000,
        activation_cost=1_200_000,
    ),
)


__all__ = [
    "DEFAULT_PRODUCER_LEVELS",
    "CatalogLevelEntry",
    "InvalidCatalogLevelError",
    "ProducerCatalog",
]
