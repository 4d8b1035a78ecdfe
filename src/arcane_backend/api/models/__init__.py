"""Models used for API request and response payloads."""

from arcane_backend.api.models.common import ActionResponse, ProgressModel, TimingModel
from arcane_backend.api.models.creatures import CreaturePairRequest

__all__ = [
    "ActionResponse",
    "CreaturePairRequest",
    "ProgressModel",
    "TimingModel",
]
