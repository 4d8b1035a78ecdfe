"""Service layer for API-specific glue."""

from arcane_backend.api.services.responses import (
    STATUS_BY_KIND,
    build_response,
    render_result,
    status_for,
)

__all__ = ["STATUS_BY_KIND", "build_response", "render_result", "status_for"]
