"""Economic configuration: the producer catalog and creature merge rules."""

from __future__ import annotations

from datetime import timedelta
from functools import cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from arcane_backend.game_logic.catalog import DEFAULT_PRODUCER_LEVELS, ProducerCatalog
from arcane_backend.settings import get_settings
from arcane_backend.shared.enums import Rarity


class RarityTiming(BaseModel):
    """Wait window and starting progress for merges of one rarity."""

    model_config = ConfigDict(frozen=True)

    wait_minutes: int = Field(ge=0)
    initial_progress: int = Field(ge=0, le=100)

    @property
    def wait(self) -> timedelta:
        return timedelta(minutes=self.wait_minutes)


class MergeRules(BaseModel):
    """Immutable rule set consumed by the upgrade-merge engine."""

    model_config = ConfigDict(frozen=True)

    timings: dict[Rarity, RarityTiming]
    speed_up_gems_per_minute: int = Field(ge=0)
    max_creature_level: int = Field(ge=1)

    def timing(self, rarity: Rarity) -> RarityTiming:
        """Return the timing for *rarity*."""
        return self.timings[rarity]


def _default_timings() -> dict[Rarity, RarityTiming]:
    return {
        Rarity.COMMON: RarityTiming(wait_minutes=0, initial_progress=50),
        Rarity.RARE: RarityTiming(wait_minutes=15, initial_progress=25),
        Rarity.EPIC: RarityTiming(wait_minutes=30, initial_progress=15),
        Rarity.LEGENDARY: RarityTiming(wait_minutes=60, initial_progress=10),
    }


class MergeDefaults(BaseSettings):
    """Load default merge parameters from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ARCANE_MERGE_",
        extra="ignore",
    )

    timings: dict[Rarity, RarityTiming] = Field(default_factory=_default_timings)
    speed_up_gems_per_minute: int = Field(default=1, ge=0)
    max_creature_level: int = Field(default=40, ge=1)

    def to_rules(self) -> MergeRules:
        """Convert defaults into an immutable rule set."""
        timings = _default_timings()
        timings.update(self.timings)
        return MergeRules(
            timings=timings,
            speed_up_gems_per_minute=self.speed_up_gems_per_minute,
            max_creature_level=self.max_creature_level,
        )


@cache
def get_merge_rules() -> MergeRules:
    """Return the cached default merge rules."""
    return MergeDefaults().to_rules()


def load_producer_catalog(path: Path | None = None) -> ProducerCatalog:
    """Read a catalog from a JSON file, or return the built-in level table."""
    if path is None:
        return ProducerCatalog(entries=DEFAULT_PRODUCER_LEVELS)
    return ProducerCatalog.model_validate_json(path.read_text(encoding="utf-8"))


@cache
def get_producer_catalog() -> ProducerCatalog:
    """Return the cached catalog named by the backend settings."""
    return load_producer_catalog(get_settings().catalog_path)


__all__ = [
    "MergeDefaults",
    "MergeRules",
    "RarityTiming",
    "get_merge_rules",
    "get_producer_catalog",
    "load_producer_catalog",
]
