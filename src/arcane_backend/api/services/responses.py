"""Translate engine results into HTTP responses."""

from __future__ import annotations

from fastapi import status
from fastapi.responses import JSONResponse

from arcane_backend.api.models import ActionResponse
from arcane_backend.shared.results import FailureKind, OperationResult

STATUS_BY_KIND: dict[FailureKind, int] = {
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    FailureKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    FailureKind.INSUFFICIENT_FUNDS: status.HTTP_400_BAD_REQUEST,
    FailureKind.INVALID_PARAMETER: status.HTTP_400_BAD_REQUEST,
    FailureKind.IN_PROGRESS: status.HTTP_200_OK,
}

_TOP_LEVEL_FIELDS = ("remaining_time", "progress", "timing")


def status_for(result: OperationResult) -> int:
    """Return the HTTP status code for *result*."""
    if result.kind is None:
        return status.HTTP_200_OK
    return STATUS_BY_KIND[result.kind]


def build_response(result: OperationResult) -> ActionResponse:
    """Lift timer fields to the top level, keep the rest under ``data``."""
    data = dict(result.data)
    extras = {key: data.pop(key) for key in _TOP_LEVEL_FIELDS if key in data}
    return ActionResponse(
        success=result.success,
        message=result.message,
        reason=result.reason.value if result.reason is not None else None,
        data=data or None,
        **extras,
    )


def render_result(result: OperationResult) -> JSONResponse:
    """Serialize *result* with the status code its failure kind maps to."""
    body = build_response(result)
    return JSONResponse(
        status_code=status_for(result),
        content=body.model_dump(mode="json", exclude_none=True),
    )


__all__ = ["STATUS_BY_KIND", "build_response", "render_result", "status_for"]
