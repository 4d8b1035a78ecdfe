"""Route definitions for public HTTP endpoints."""

from arcane_backend.api.routers.creatures import router as creatures_router
from arcane_backend.api.routers.production import router as production_router

__all__ = ["creatures_router", "production_router"]
