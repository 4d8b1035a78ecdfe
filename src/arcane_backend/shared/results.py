"""Structured outcomes returned across the engine boundary."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict


class FailureKind(StrEnum):
    """Coarse failure taxonomy the HTTP layer maps onto status codes."""

    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_PARAMETER = "invalid_parameter"
    ALREADY_EXISTS = "already_exists"
    IN_PROGRESS = "in_progress"


class FailureReason(StrEnum):
    """Specific reason attached to an unsuccessful operation."""

    PLAYER_NOT_FOUND = "player_not_found"
    BUILDING_NOT_FOUND = "building_not_found"
    CREATURE_NOT_FOUND = "creature_not_found"
    CATALOG_ENTRY_NOT_FOUND = "catalog_entry_not_found"
    ALREADY_EXISTS = "already_exists"
    ALREADY_ACTIVE = "already_active"
    NO_ACTIVE_PRODUCTION = "no_active_production"
    NOT_READY = "not_ready"
    UPGRADE_WHILE_ACTIVE = "upgrade_while_active"
    ALREADY_AT_OR_ABOVE_LEVEL = "already_at_or_above_level"
    MAX_LEVEL = "max_level"
    INVALID_LEVEL = "invalid_level"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_PARAMETER = "invalid_parameter"
    INELIGIBLE = "ineligible"
    CREATURE_BUSY = "creature_busy"
    NO_SESSION = "no_session"
    ALREADY_READY = "already_ready"
    UPGRADE_PENDING = "upgrade_pending"

    @property
    def kind(self) -> FailureKind:
        """Return the taxonomy bucket for this reason."""
        return _REASON_KINDS[self]


_REASON_KINDS: dict[FailureReason, FailureKind] = {
    FailureReason.PLAYER_NOT_FOUND: FailureKind.NOT_FOUND,
    FailureReason.BUILDING_NOT_FOUND: FailureKind.NOT_FOUND,
    FailureReason.CREATURE_NOT_FOUND: FailureKind.NOT_FOUND,
    FailureReason.CATALOG_ENTRY_NOT_FOUND: FailureKind.NOT_FOUND,
    FailureReason.ALREADY_EXISTS: FailureKind.ALREADY_EXISTS,
    FailureReason.ALREADY_ACTIVE: FailureKind.INVALID_STATE,
    FailureReason.NO_ACTIVE_PRODUCTION: FailureKind.INVALID_STATE,
    FailureReason.NOT_READY: FailureKind.INVALID_STATE,
    FailureReason.UPGRADE_WHILE_ACTIVE: FailureKind.INVALID_STATE,
    FailureReason.ALREADY_AT_OR_ABOVE_LEVEL: FailureKind.INVALID_STATE,
    FailureReason.MAX_LEVEL: FailureKind.INVALID_STATE,
    FailureReason.INVALID_LEVEL: FailureKind.NOT_FOUND,
    FailureReason.INSUFFICIENT_FUNDS: FailureKind.INSUFFICIENT_FUNDS,
    FailureReason.INVALID_PARAMETER: FailureKind.INVALID_PARAMETER,
    FailureReason.INELIGIBLE: FailureKind.INVALID_PARAMETER,
    FailureReason.CREATURE_BUSY: FailureKind.INVALID_STATE,
    FailureReason.NO_SESSION: FailureKind.INVALID_STATE,
    FailureReason.ALREADY_READY: FailureKind.INVALID_STATE,
    FailureReason.UPGRADE_PENDING: FailureKind.IN_PROGRESS,
}


class OperationResult(BaseModel):
    """Immutable success/failure envelope produced by every engine operation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    reason: FailureReason | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_reason(self) -> OperationResult:
        """Failures must name a reason and successes must not."""
        if self.success and self.reason is not None:
            msg = "Successful results cannot carry a failure reason."
            raise ValueError(msg)
        if not self.success and self.reason is None:
            msg = "Failed results must carry a failure reason."
            raise ValueError(msg)
        return self

    @classmethod
    def ok(cls, message: str, **data: Any) -> OperationResult:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, reason: FailureReason, message: str, **data: Any) -> OperationResult:
        return cls(success=False, message=message, reason=reason, data=data)

    @property
    def kind(self) -> FailureKind | None:
        """Return the failure bucket, or ``None`` on success."""
        return self.reason.kind if self.reason is not None else None


__all__ = ["FailureKind", "FailureReason", "OperationResult"]
