"""Response envelope shared by every gameplay endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ProgressModel(BaseModel):
    """Progress bar payload."""

    current: int = Field(ge=0, le=100)
    total: int = 100
    percentage: str


class TimingModel(BaseModel):
    """Timer window the client mirror counts down against."""

    wait_time_minutes: int = Field(ge=0)
    start_time: str | None = None
    estimated_finish_time: str | None = None


class ActionResponse(BaseModel):
    """``success`` envelope returned by production and creature endpoints."""

    success: bool
    message: str
    reason: str | None = None
    data: dict[str, Any] | None = None
    remaining_time: str | None = None
    progress: ProgressModel | None = None
    timing: TimingModel | None = None
