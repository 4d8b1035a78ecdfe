"""Factory for constructing the FastAPI application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from arcane_backend.api.routers import creatures_router, production_router
from arcane_backend.settings import get_settings
from arcane_backend.shared import FailureReason

logger = logging.getLogger(__name__)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed parameters as a 400 ``success`` envelope."""
    errors = [
        {"loc": [str(part) for part in error["loc"]], "msg": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Invalid request parameters",
            "reason": FailureReason.INVALID_PARAMETER.value,
            "data": {"errors": errors},
        },
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log infrastructure failures without echoing their text to clients."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )


def create_api() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    config = get_settings()
    app = FastAPI(title="Arcane API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
    app.include_router(production_router)
    app.include_router(creatures_router)
    return app
