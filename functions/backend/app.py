"""
FastAPI application entry point for the Remap backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.config import get_settings
from backend.routes import router
from backend.storage import StorageRequestError
from shared.signing import InvalidConfiguration

logger = logging.getLogger(__name__)


async def _invalid_configuration_handler(
    request: Request, exc: InvalidConfiguration
) -> JSONResponse:
    logger.error("Configuration error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage is not configured"})


async def _storage_error_handler(
    request: Request, exc: StorageRequestError
) -> JSONResponse:
    logger.error(
        "Storage error on %s: status=%s", request.url.path, exc.status_code
    )
    return JSONResponse(status_code=502, content={"detail": "Sync failed"})


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title="Remap Backend (FastAPI)", version="0.1.0")
    app.add_exception_handler(InvalidConfiguration, _invalid_configuration_handler)
    app.add_exception_handler(StorageRequestError, _storage_error_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
