"""Shared enums, time helpers and result envelopes for the backend."""

from arcane_backend.shared.clock import (
    Clock,
    FrozenClock,
    SystemClock,
    format_remaining,
    remaining_whole_minutes,
    remaining_whole_seconds,
    timed_progress,
)
from arcane_backend.shared.enums import Currency, ProductionStatus, Rarity
from arcane_backend.shared.results import FailureKind, FailureReason, OperationResult

__all__ = [
    "Clock",
    "Currency",
    "FailureKind",
    "FailureReason",
    "FrozenClock",
    "OperationResult",
    "ProductionStatus",
    "Rarity",
    "SystemClock",
    "format_remaining",
    "remaining_whole_minutes",
    "remaining_whole_seconds",
    "timed_progress",
]
