"""FastAPI dependencies that scope one database transaction per request."""

from collections.abc import Iterator
from functools import cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from arcane_backend.database.service import DatabaseService
from arcane_backend.settings import BackendSettings, get_settings


@cache
def _service_for(database_url: str) -> DatabaseService:
    service = DatabaseService(database_url)
    if service.engine.dialect.name == "sqlite":
        # Local SQLite databases are never migrated with Alembic.
        service.create_schema()
    return service


def get_database(
    settings: Annotated[BackendSettings, Depends(get_settings)],
) -> DatabaseService:
    """Return the process-wide service for the configured database URL."""
    return _service_for(settings.database_url)


DatabaseDep = Annotated[DatabaseService, Depends(get_database)]


def get_session(database: DatabaseDep) -> Iterator[Session]:
    """Yield the session that wraps every aggregate read and write of a request."""
    with database.session() as session:
        yield session
