"""ASGI entrypoint and console scripts for the Arcane economy service."""

from __future__ import annotations

import logging

import uvicorn

from arcane_backend.api import create_api
from arcane_backend.settings import configure_logging, get_settings

configure_logging()
logger = logging.getLogger(__name__)

app = create_api()


def _serve(*, reload: bool) -> None:
    config = get_settings()
    logger.info(
        "Serving Arcane API on %s:%d (reload=%s)",
        config.api_host,
        config.api_port,
        reload,
    )
    uvicorn.run(
        "arcane_backend.main:app",
        host=config.api_host,
        port=config.api_port,
        reload=reload,
        log_level=config.log_level.lower(),
        proxy_headers=not reload,
    )


def run_dev() -> None:
    """Serve with auto-reload for local development."""
    _serve(reload=True)


def run_prod() -> None:
    """Serve without auto-reload."""
    _serve(reload=False)
