# src/server/streaming.py - v1
"""Bridge a record generator and a stream writer to a StreamingResponse."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator

from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from primedash.streaming.errors import TransportClosedError
from primedash.streaming.transport import BufferedResponseTransport
from primedash.streaming.writers import BaseStreamWriter

logger = logging.getLogger(__name__)


def _log_writer_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.debug("Stream writer cancelled")
        return
    exc = task.exception()
    if exc is None:
        logger.debug("Stream finished: %d records", task.result())
    elif isinstance(exc, TransportClosedError):
        logger.debug("Stream stopped, client disconnected")
    else:
        logger.error("Stream writer failed: %s", exc)


def stream_records(
    records: AsyncGenerator[BaseModel, None],
    writer_cls: type[BaseStreamWriter],
    high_water_mark: int,
    filename: str | None = None,
) -> StreamingResponse:
    """Run ``writer_cls`` over ``records`` in a task feeding the response body.

    The writer starts when the server begins pulling the body, so a client
    that disconnects before that never starts a scan. Leaving the body early
    cancels the writer, which closes ``records`` and stops the directory scan.
    """

    async def body() -> AsyncIterator[bytes]:
        transport = BufferedResponseTransport(high_water_mark)
        task = asyncio.ensure_future(writer_cls(transport).write_all(records))
        task.add_done_callback(_log_writer_outcome)
        try:
            async for chunk in transport.body():
                yield chunk
        finally:
            if not task.done():
                task.cancel()

    headers: dict[str, str] = {}
    if filename:
        headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return StreamingResponse(body(), media_type=writer_cls.media_type, headers=headers)
