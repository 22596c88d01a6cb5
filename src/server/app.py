# src/server/app.py - v1
"""FastAPI application factory.

Usage:
    from primedash.server.app import create_app
    app = create_app(load_settings())

The lifespan makes sure the logs directory exists and runs the directory
watcher (when enabled) for as long as the application serves requests.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from primedash.batch.service import LogDataService
from primedash.config.settings import Settings, load_settings
from primedash.logging.context import clear_context, set_request_context
from primedash.query.models import InvalidQueryError
from primedash.realtime.broadcaster import Broadcaster
from primedash.realtime.watcher import LogDirectoryWatcher
from primedash.server.routes import router
from primedash.server.schemas import error_envelope
from primedash.storage.uploads import (
    InvalidUploadError,
    UploadConflictError,
    UploadTooLargeError,
)
from primedash.version import __version__

logger = logging.getLogger(__name__)


def _install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidQueryError)
    async def invalid_query(request: Request, exc: InvalidQueryError) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_envelope("Invalid query", str(exc)))

    @app.exception_handler(UploadConflictError)
    async def upload_conflict(request: Request, exc: UploadConflictError) -> JSONResponse:
        return JSONResponse(
            status_code=409, content=error_envelope("File already exists", str(exc)),
        )

    @app.exception_handler(InvalidUploadError)
    async def invalid_upload(request: Request, exc: InvalidUploadError) -> JSONResponse:
        if isinstance(exc, UploadTooLargeError):
            return JSONResponse(
                status_code=413, content=error_envelope("File too large", str(exc)),
            )
        return JSONResponse(
            status_code=400, content=error_envelope("Invalid upload", str(exc)),
        )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope("Request failed", str(exc.detail)),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400, content=error_envelope("Invalid request", str(exc.errors())),
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its service, broadcaster and watcher."""
    settings = settings or load_settings()
    service = LogDataService.from_settings(settings)
    broadcaster = Broadcaster()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await service.scanner.ensure_directory()
        watcher: LogDirectoryWatcher | None = None
        if settings.watch_enabled:
            watcher = LogDirectoryWatcher(
                service, broadcaster, debounce_seconds=settings.watch_debounce_seconds,
            )
            await watcher.start()
        app.state.watcher = watcher
        logger.info(
            "primedash %s serving %s (%s)",
            __version__, service.logs_path, settings.environment,
        )
        try:
            yield
        finally:
            if watcher is not None:
                await watcher.stop()
            await broadcaster.close_all()

    app = FastAPI(title="Prime Cubes Dashboard", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.service = service
    app.state.broadcaster = broadcaster
    app.state.watcher = None

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        set_request_context(request_id, route=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    _install_exception_handlers(app)
    app.include_router(router)
    return app
