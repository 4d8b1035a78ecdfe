"""SQLAlchemy schemas."""

from arcane_backend.database.schemas.player import PlayerSchema

__all__ = ["PlayerSchema"]
