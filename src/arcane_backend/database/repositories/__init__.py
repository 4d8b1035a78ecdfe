"""Repositories bridging SQLAlchemy sessions and domain stores."""

from arcane_backend.database.repositories.player import PlayerAggregateRepository

__all__ = ["PlayerAggregateRepository"]
