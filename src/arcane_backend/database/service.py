"""Engine and session scope for the player aggregate database."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from arcane_backend.database.base import BaseSchema
from arcane_backend.settings import BackendSettings, get_settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict[str, Any]:
    """Return dialect-specific engine arguments for *url*."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        # Every connection to an in-memory database sees its own empty schema.
        options["poolclass"] = StaticPool
    return options


class DatabaseService:
    """Own the SQLAlchemy engine and hand out transactional sessions.

    Each request works inside one :meth:`session` scope. The aggregate
    repository commits its conditional write while the player lock is held;
    the scope commits whatever is left on a clean exit and rolls back when
    the request raised.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        settings: BackendSettings | None = None,
    ) -> None:
        config = settings or get_settings()
        database_url = url or config.database_url
        self._engine = create_engine(database_url, **_engine_options(database_url))
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.debug(
            "Database engine ready for %s", make_url(database_url).get_backend_name()
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        """Create every table known to :class:`BaseSchema` (tests and local runs)."""
        BaseSchema.metadata.create_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            logger.warning("Rolling back player aggregate transaction")
            session.rollback()
            raise
        finally:
            session.close()
