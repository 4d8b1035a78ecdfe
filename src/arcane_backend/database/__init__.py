"""Database connectivity helpers and configuration objects."""

from arcane_backend.database.base import BaseSchema
from arcane_backend.database.dependencies import get_database, get_session
from arcane_backend.database.repositories import PlayerAggregateRepository
from arcane_backend.database.schemas import PlayerSchema
from arcane_backend.database.service import DatabaseService
from arcane_backend.settings import BackendSettings, get_settings

__all__ = [
    "BackendSettings",
    "BaseSchema",
    "DatabaseService",
    "PlayerAggregateRepository",
    "PlayerSchema",
    "get_database",
    "get_session",
    "get_settings",
]
