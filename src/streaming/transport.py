# src/streaming/transport.py - v1
"""Response transports with explicit write/drain backpressure.

A transport buffers encoded chunks until the HTTP layer pulls them.
``write()`` returns False once the buffer reaches its high-water mark; the
writer must then ``await drain()`` before sending more. This bounds server
memory to roughly one high-water mark per open stream, whatever the size
of the logs directory.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import AsyncIterator
from typing import BinaryIO

from primedash.streaming.errors import StreamError, TransportClosedError

logger = logging.getLogger(__name__)


class BaseResponseTransport(ABC):
    """Abstract sink for encoded response chunks."""

    @abstractmethod
    def write(self, chunk: bytes) -> bool:
        """Queue a chunk.

        Returns:
            False when the caller should wait for ``drain()``.

        Raises:
            TransportClosedError: If the transport was closed or aborted.
        """

    @abstractmethod
    async def drain(self) -> None:
        """Wait until the buffered data falls below the high-water mark."""

    @abstractmethod
    def end(self) -> None:
        """Signal the end of the body."""

    @abstractmethod
    def abort(self, exc: BaseException | None = None) -> None:
        """Terminate the body early, dropping anything still buffered."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once the body ended, was aborted, or the client disconnected."""


class BufferedResponseTransport(BaseResponseTransport):
    """In-memory transport consumed through ``body()`` by a streaming response."""

    def __init__(self, high_water_mark: int = 64 * 1024) -> None:
        if high_water_mark <= 0:
            raise ValueError("high_water_mark must be > 0")
        self._high_water_mark = high_water_mark
        self._chunks: deque[bytes] = deque()
        self._buffered = 0
        self._ended = False
        self._closed = False
        self._error: BaseException | None = None
        self._data_ready = asyncio.Event()
        self._drained = asyncio.Event()
        self._drained.set()

    @property
    def high_water_mark(self) -> int:
        return self._high_water_mark

    @property
    def buffered_bytes(self) -> int:
        return self._buffered

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, chunk: bytes) -> bool:
        if self._closed or self._ended:
            raise TransportClosedError("write after end of stream")
        if chunk:
            self._chunks.append(chunk)
            self._buffered += len(chunk)
            self._data_ready.set()
        if self._buffered >= self._high_water_mark:
            self._drained.clear()
            return False
        return True

    async def drain(self) -> None:
        if self._closed:
            raise TransportClosedError("client disconnected")
        await self._drained.wait()
        if self._closed:
            raise TransportClosedError("client disconnected")

    def end(self) -> None:
        self._ended = True
        self._data_ready.set()

    def abort(self, exc: BaseException | None = None) -> None:
        if self._closed:
            return
        self._error = exc
        self._ended = True
        self._chunks.clear()
        self._buffered = 0
        self._data_ready.set()
        self._drained.set()

    def _mark_closed(self) -> None:
        self._closed = True
        self._chunks.clear()
        self._buffered = 0
        # Wake a writer blocked in drain() so it sees the closed state
        self._drained.set()
        self._data_ready.set()

    async def body(self) -> AsyncIterator[bytes]:
        """Yield buffered chunks until the writer ends or aborts the body.

        Leaving this iterator early (client disconnect, cancellation) closes
        the transport, which makes the writer's next write or drain fail.
        """
        try:
            while True:
                if not self._chunks:
                    if self._ended:
                        break
                    self._data_ready.clear()
                    await self._data_ready.wait()
                    continue
                chunk = self._chunks.popleft()
                self._buffered -= len(chunk)
                if self._buffered < self._high_water_mark:
                    self._drained.set()
                yield chunk
            if self._error is not None:
                logger.warning("Stream aborted: %s", self._error)
                raise StreamError("stream terminated on error") from self._error
        finally:
            self._mark_closed()


class FileTransport(BaseResponseTransport):
    """Write chunks straight to a binary file object (CLI export).

    Writes never report a full buffer; the file object applies its own
    buffering.
    """

    def __init__(self, fileobj: BinaryIO) -> None:
        self._file = fileobj
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, chunk: bytes) -> bool:
        if self._closed:
            raise TransportClosedError("write after end of stream")
        self._file.write(chunk)
        return True

    async def drain(self) -> None:
        if self._closed:
            raise TransportClosedError("transport closed")

    def end(self) -> None:
        self._file.flush()
        self._closed = True

    def abort(self, exc: BaseException | None = None) -> None:
        self._closed = True
