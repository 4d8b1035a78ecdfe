"""Player-centric state containers used by the game logic layer."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, PositiveInt, model_validator
from pydantic.config import ConfigDict

from arcane_backend.game_logic.ledger import BalanceLedger
from arcane_backend.shared.clock import timed_progress
from arcane_backend.shared.enums import ProductionStatus, Rarity

if TYPE_CHECKING:
    from arcane_backend.game_logic.catalog import CatalogLevelEntry

MAX_PRODUCER_LEVEL = 8


class ProducerBuilding(BaseModel):
    """The single arcane energy producer owned by a player."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=1, le=MAX_PRODUCER_LEVEL)
    is_active: bool = False
    production_start_time: datetime | None = None
    production_end_time: datetime | None = None
    production_time_minutes: PositiveInt
    yield_amount: int = Field(ge=0)
    activation_cost: int = Field(ge=0)
    last_collected: datetime

    @model_validator(mode="after")
    def _validate_timing(self) -> ProducerBuilding:
        """Activity and the production window must agree."""
        has_window = (
            self.production_start_time is not None
            and self.production_end_time is not None
        )
        if self.is_active != has_window:
            msg = "is_active must be set exactly when both production timestamps are."
            raise ValueError(msg)
        if not self.is_active and (
            self.production_start_time is not None
            or self.production_end_time is not None
        ):
            msg = "Idle buildings cannot carry production timestamps."
            raise ValueError(msg)
        if has_window:
            expected_end = self.production_start_time + timedelta(
                minutes=self.production_time_minutes
            )
            if self.production_end_time != expected_end:
                msg = "production_end_time must equal start plus production time."
                raise ValueError(msg)
        return self

    @classmethod
    def from_catalog(cls, entry: CatalogLevelEntry, now: datetime) -> ProducerBuilding:
        """Build an idle building configured for *entry*."""
        return cls(
            level=entry.level,
            production_time_minutes=entry.production_time_minutes,
            yield_amount=entry.yield_amount,
            activation_cost=entry.activation_cost,
            last_collected=now,
        )

    def status(self, now: datetime) -> ProductionStatus:
        """Return the derived lifecycle stage at *now*."""
        if not self.is_active:
            return ProductionStatus.IDLE
        if now >= self.production_end_time:
            return ProductionStatus.READY
        return ProductionStatus.ACTIVE

    def start(self, now: datetime) -> ProducerBuilding:
        """Return an active copy whose production window opens at *now*."""
        return self.model_copy(
            update={
                "is_active": True,
                "production_start_time": now,
                "production_end_time": now
                + timedelta(minutes=self.production_time_minutes),
            }
        )

    def finish(self, now: datetime) -> ProducerBuilding:
        """Return an idle copy stamped as collected at *now*."""
        return self.model_copy(
            update={
                "is_active": False,
                "production_start_time": None,
                "production_end_time": None,
                "last_collected": now,
            }
        )

    def apply_level(self, entry: CatalogLevelEntry) -> ProducerBuilding:
        """Return a copy carrying the level-dependent fields of *entry*."""
        return self.model_copy(
            update={
                "level": entry.level,
                "production_time_minutes": entry.production_time_minutes,
                "yield_amount": entry.yield_amount,
                "activation_cost": entry.activation_cost,
            }
        )


class CreatureInstance(BaseModel):
    """A creature owned by a player."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    template_id: str = Field(min_length=1)
    name: str = ""
    rarity: Rarity
    level: PositiveInt = 1
    upgrade_progress: int = Field(default=0, ge=0, le=100)
    upgrade_partner_id: str | None = None
    last_upgrade_click_time: datetime | None = None

    @model_validator(mode="after")
    def _validate_merge_fields(self) -> CreatureInstance:
        """Creatures outside a merge carry no progress."""
        if self.upgrade_partner_id is None and self.upgrade_progress != 0:
            msg = "upgrade_progress must be zero when no merge is in flight."
            raise ValueError(msg)
        if self.upgrade_partner_id == self.id:
            msg = "A creature cannot be merged with itself."
            raise ValueError(msg)
        return self

    def engage(
        self, partner_id: str, progress: int, clicked_at: datetime
    ) -> CreatureInstance:
        """Return a copy linked to *partner_id* with the given merge progress."""
        return self.model_copy(
            update={
                "upgrade_partner_id": partner_id,
                "upgrade_progress": progress,
                "last_upgrade_click_time": clicked_at,
            }
        )

    def level_up(self, target_level: int) -> CreatureInstance:
        """Return a released copy promoted to *target_level*."""
        return self.model_copy(
            update={
                "level": target_level,
                "upgrade_partner_id": None,
                "upgrade_progress": 0,
                "last_upgrade_click_time": None,
            }
        )


class MergeSession(BaseModel):
    """A merge in flight between a surviving and a consumed creature."""

    model_config = ConfigDict(frozen=True)

    creature1_id: str
    creature2_id: str
    rarity: Rarity
    started_at: datetime
    wait_minutes: int = Field(ge=0)
    initial_progress: int = Field(ge=0, le=100)
    target_level: PositiveInt
    last_update: datetime

    @model_validator(mode="after")
    def _validate_pair(self) -> MergeSession:
        if self.creature1_id == self.creature2_id:
            msg = "A merge session needs two distinct creatures."
            raise ValueError(msg)
        return self

    @property
    def wait(self) -> timedelta:
        return timedelta(minutes=self.wait_minutes)

    @property
    def ready_at(self) -> datetime:
        return self.started_at + self.wait

    def matches(self, first_id: str, second_id: str) -> bool:
        """Return whether the session covers the unordered pair."""
        return {self.creature1_id, self.creature2_id} == {first_id, second_id}

    def involves(self, creature_id: str) -> bool:
        return creature_id in (self.creature1_id, self.creature2_id)

    def is_ready(self, now: datetime) -> bool:
        return now >= self.ready_at

    def progress(self, now: datetime) -> int:
        """Return the completion percentage at *now*."""
        return timed_progress(
            elapsed=now - self.started_at,
            wait=self.wait,
            initial_progress=self.initial_progress,
        )

    def touch(self, now: datetime) -> MergeSession:
        return self.model_copy(update={"last_update": now})

    def skip_wait(self, now: datetime) -> MergeSession:
        """Return a copy whose wait has already elapsed at *now*."""
        return self.model_copy(
            update={"started_at": now - self.wait, "last_update": now}
        )


class PlayerAggregate(BaseModel):
    """Everything the timer engines read and write for one player."""

    model_config = ConfigDict(frozen=True)

    player_id: str = Field(min_length=1)
    version: int = Field(default=0, ge=0)
    balance: BalanceLedger = Field(default_factory=BalanceLedger)
    producer: ProducerBuilding | None = None
    creatures: tuple[CreatureInstance, ...] = Field(default_factory=tuple)
    merge_sessions: tuple[MergeSession, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _validate_merges(self) -> PlayerAggregate:
        """Every session references owned creatures linked to each other."""
        by_id = {creature.id: creature for creature in self.creatures}
        if len(by_id) != len(self.creatures):
            msg = "Creature ids must be unique within a player."
            raise ValueError(msg)
        engaged: set[str] = set()
        for session in self.merge_sessions:
            pair = (session.creature1_id, session.creature2_id)
            if engaged.intersection(pair):
                msg = "A creature can take part in at most one merge session."
                raise ValueError(msg)
            engaged.update(pair)
            first = by_id.get(session.creature1_id)
            second = by_id.get(session.creature2_id)
            if first is None or second is None:
                msg = "Merge sessions must reference owned creatures."
                raise ValueError(msg)
            if (
                first.upgrade_partner_id != second.id
                or second.upgrade_partner_id != first.id
            ):
                msg = "Merging creatures must reference each other as partners."
                raise ValueError(msg)
        for creature in self.creatures:
            if creature.upgrade_partner_id is not None and creature.id not in engaged:
                msg = f"Creature {creature.id} has a partner but no merge session."
                raise ValueError(msg)
        return self

    def creature(self, creature_id: str) -> CreatureInstance | None:
        return next(
            (creature for creature in self.creatures if creature.id == creature_id),
            None,
        )

    def find_session(self, first_id: str, second_id: str) -> MergeSession | None:
        return next(
            (
                session
                for session in self.merge_sessions
                if session.matches(first_id, second_id)
            ),
            None,
        )

    def session_for(self, creature_id: str) -> MergeSession | None:
        return next(
            (
                session
                for session in self.merge_sessions
                if session.involves(creature_id)
            ),
            None,
        )

    def with_balance(self, balance: BalanceLedger) -> PlayerAggregate:
        return self.model_copy(update={"balance": balance})

    def with_producer(self, producer: ProducerBuilding) -> PlayerAggregate:
        return self.model_copy(update={"producer": producer})

    def with_merge(
        self,
        session: MergeSession,
        updated: tuple[CreatureInstance, ...],
    ) -> PlayerAggregate:
        """Return a state storing *session* and the *updated* creatures.

        Any previous session for the same pair is replaced.
        """
        replacements = {creature.id: creature for creature in updated}
        creatures = tuple(
            replacements.get(creature.id, creature) for creature in self.creatures
        )
        sessions = tuple(
            existing
            for existing in self.merge_sessions
            if not existing.matches(session.creature1_id, session.creature2_id)
        )
        return PlayerAggregate.model_validate(
            {
                **self.model_dump(),
                "creatures": creatures,
                "merge_sessions": (*sessions, session),
            }
        )

    def complete_merge(
        self, session: MergeSession, survivor: CreatureInstance
    ) -> PlayerAggregate:
        """Return a state with the consumed creature removed and the session closed."""
        creatures = tuple(
            survivor if creature.id == survivor.id else creature
            for creature in self.creatures
            if creature.id != session.creature2_id
        )
        sessions = tuple(
            existing
            for existing in self.merge_sessions
            if not existing.matches(session.creature1_id, session.creature2_id)
        )
        return PlayerAggregate.model_validate(
            {
                **self.model_dump(),
                "creatures": creatures,
                "merge_sessions": sessions,
            }
        )


__all__ = [
    "MAX_PRODUCER_LEVEL",
    "CreatureInstance",
    "MergeSession",
    "PlayerAggregate",
    "ProducerBuilding",
]
