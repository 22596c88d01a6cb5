# src/server/routes.py - v1
"""HTTP routes of the dashboard backend.

All handlers reach shared state through ``request.app.state``: settings,
the LogDataService, the Broadcaster and (when enabled) the watcher.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import aiofiles.os
from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket
from fastapi.responses import JSONResponse, StreamingResponse

from primedash.batch.service import LogDataService
from primedash.core.models import Batch, Solution
from primedash.query.engine import canonical_sort_field
from primedash.query.models import RecordQuery
from primedash.server.params import record_query
from primedash.server.schemas import ConfigUpdate, UploadRequest, success_envelope
from primedash.server.streaming import stream_records
from primedash.storage.state import read_search_state
from primedash.storage.uploads import store_uploaded_log
from primedash.streaming.writers import CsvStreamWriter, JsonStreamWriter
from primedash.version import __version__

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> LogDataService:
    return request.app.state.service


def _check_sort(query: RecordQuery, model_cls: type[Batch] | type[Solution]) -> None:
    # Reject unknown fields before any byte of a streamed body is sent
    if query.sort is not None:
        canonical_sort_field(model_cls, query.sort.field)


def _dump(records: list[Batch] | list[Solution]) -> list[dict[str, Any]]:
    return [r.model_dump(mode="json") for r in records]


# --- Service info ---


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    service = get_service(request)
    return success_envelope(
        status="ok",
        version=__version__,
        logs_path=str(service.logs_path),
    )


@router.get("/")
async def index() -> dict[str, Any]:
    return success_envelope(
        name="primedash",
        version=__version__,
        endpoints=[
            "/api/batches", "/api/solutions",
            "/api/batches/stream", "/api/solutions/stream",
            "/api/batches/export.csv", "/api/solutions/export.csv",
            "/api/config", "/api/upload", "/api/state",
            "/api/cache/stats", "/api/cache/clear", "/ws",
        ],
    )


# --- Batches ---


@router.get("/api/batches")
async def list_batches(
    request: Request, query: RecordQuery = Depends(record_query),
) -> dict[str, Any]:
    _check_sort(query, Batch)
    batches, total = await get_service(request).query_batches(query)
    return success_envelope(_dump(batches), count=len(batches), total=total)


@router.get("/api/batches/stream")
async def stream_batches(
    request: Request, query: RecordQuery = Depends(record_query),
) -> StreamingResponse:
    _check_sort(query, Batch)
    settings = request.app.state.settings
    return stream_records(
        get_service(request).stream_batches(query),
        JsonStreamWriter,
        settings.stream_high_water_mark,
    )


@router.get("/api/batches/export.csv")
async def export_batches(
    request: Request, query: RecordQuery = Depends(record_query),
) -> StreamingResponse:
    _check_sort(query, Batch)
    settings = request.app.state.settings
    return stream_records(
        get_service(request).stream_batches(query),
        CsvStreamWriter,
        settings.stream_high_water_mark,
        filename="batches.csv",
    )


# --- Solutions ---


@router.get("/api/solutions")
async def list_solutions(
    request: Request, query: RecordQuery = Depends(record_query),
) -> dict[str, Any]:
    _check_sort(query, Solution)
    solutions, total = await get_service(request).query_solutions(query)
    return success_envelope(_dump(solutions), count=len(solutions), total=total)


@router.get("/api/solutions/stream")
async def stream_solutions(
    request: Request, query: RecordQuery = Depends(record_query),
) -> StreamingResponse:
    _check_sort(query, Solution)
    settings = request.app.state.settings
    return stream_records(
        get_service(request).stream_solutions(query),
        JsonStreamWriter,
        settings.stream_high_water_mark,
    )


@router.get("/api/solutions/export.csv")
async def export_solutions(
    request: Request, query: RecordQuery = Depends(record_query),
) -> StreamingResponse:
    _check_sort(query, Solution)
    settings = request.app.state.settings
    return stream_records(
        get_service(request).stream_solutions(query),
        CsvStreamWriter,
        settings.stream_high_water_mark,
        filename="solutions.csv",
    )


# --- Configuration ---


@router.get("/api/config")
async def get_config(request: Request) -> dict[str, Any]:
    settings = request.app.state.settings
    return success_envelope(
        {
            "logsPath": str(get_service(request).logs_path),
            "environment": settings.environment,
            "cacheTtlSeconds": settings.cache_ttl_seconds,
            "watchEnabled": settings.watch_enabled,
        }
    )


@router.post("/api/config")
async def update_config(request: Request, body: ConfigUpdate) -> dict[str, Any]:
    logs_path = Path(body.logs_path).expanduser()
    if not await aiofiles.os.path.isdir(logs_path):
        raise HTTPException(
            status_code=400, detail=f"Directory does not exist: {logs_path}",
        )

    service = get_service(request)
    resolved = await service.update_logs_path(logs_path)
    request.app.state.settings = request.app.state.settings.model_copy(
        update={"logs_path": resolved},
    )
    watcher = request.app.state.watcher
    if watcher is not None and watcher.running:
        await watcher.restart()
    return success_envelope({"logsPath": str(resolved)}, message="Configuration updated")


# --- Uploads and state ---


@router.post("/api/upload", status_code=201)
async def upload_log(request: Request, body: UploadRequest) -> JSONResponse:
    settings = request.app.state.settings
    service = get_service(request)
    result = await store_uploaded_log(
        service.logs_path,
        body.file_name,
        body.file_content,
        append_summary=settings.summary_log_enabled,
        max_bytes=settings.upload_max_bytes,
    )
    service.clear_cache()
    return JSONResponse(
        status_code=201,
        content=success_envelope(
            message="File uploaded successfully",
            fileName=result.file_name,
            filePath=result.file_path,
            summaryLine=result.summary_line,
        ),
    )


@router.get("/api/state")
async def get_state(request: Request) -> dict[str, Any]:
    state = await read_search_state(request.app.state.settings.state_file_path)
    return success_envelope(state.model_dump())


# --- Cache ---


@router.get("/api/cache/stats")
async def cache_stats(request: Request) -> dict[str, Any]:
    return success_envelope(get_service(request).cache_stats().model_dump(mode="json"))


@router.post("/api/cache/clear")
async def clear_cache(request: Request) -> dict[str, Any]:
    get_service(request).clear_cache()
    return success_envelope(message="Cache cleared")


# --- Real-time ---


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.app.state.broadcaster.serve(websocket)
