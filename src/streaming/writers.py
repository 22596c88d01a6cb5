# src/streaming/writers.py - v1
"""Serialize record streams into a response transport, one record at a time.

Each record is encoded completely before it is written, so a record is
either sent whole or not at all. When the transport reports a full buffer
the writer awaits ``drain()`` before pulling the next record from the
generator; records leave in exactly the order they were produced.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from primedash.core.records import flatten_record
from primedash.streaming.errors import TransportClosedError
from primedash.streaming.transport import BaseResponseTransport

logger = logging.getLogger(__name__)


class BaseStreamWriter(ABC):
    """Template for record writers: open, one chunk per record, close."""

    media_type: str = "application/octet-stream"

    def __init__(self, transport: BaseResponseTransport) -> None:
        self._transport = transport
        self._count = 0
        self._drain_waits = 0

    @property
    def count(self) -> int:
        """Records written so far."""
        return self._count

    @property
    def drain_waits(self) -> int:
        return self._drain_waits

    async def _send(self, chunk: bytes) -> None:
        if not self._transport.write(chunk):
            self._drain_waits += 1
            await self._transport.drain()

    @abstractmethod
    def encode_open(self) -> bytes: ...

    @abstractmethod
    def encode_record(self, record: BaseModel, index: int) -> bytes: ...

    @abstractmethod
    def encode_close(self, count: int) -> bytes: ...

    async def write_all(self, records: AsyncIterator[BaseModel]) -> int:
        """Drain ``records`` into the transport and end the body.

        Returns:
            Number of records written.

        Raises:
            TransportClosedError: If the client disconnected mid-stream.
        """
        try:
            await self._send(self.encode_open())
            async for record in records:
                await self._send(self.encode_record(record, self._count))
                self._count += 1
            await self._send(self.encode_close(self._count))
            self._transport.end()
        except TransportClosedError:
            logger.info("Client disconnected after %d records", self._count)
            raise
        except Exception as exc:
            logger.error("Stream failed after %d records: %s", self._count, exc)
            self._transport.abort(exc)
            raise
        finally:
            # Stops the upstream directory scan when we leave early
            aclose = getattr(records, "aclose", None)
            if aclose is not None:
                await aclose()
        return self._count


class JsonStreamWriter(BaseStreamWriter):
    """``{"success": true, "data": [...], "count": N, "timestamp": "..."}``."""

    media_type = "application/json"

    def encode_open(self) -> bytes:
        return b'{"success":true,"data":['

    def encode_record(self, record: BaseModel, index: int) -> bytes:
        body = record.model_dump_json()
        return (body if index == 0 else "," + body).encode("utf-8")

    def encode_close(self, count: int) -> bytes:
        tail = json.dumps(count)
        stamp = json.dumps(datetime.now().isoformat())
        return f'],"count":{tail},"timestamp":{stamp}}}'.encode("utf-8")


class CsvStreamWriter(BaseStreamWriter):
    """CSV with a header row taken from the first record's flattened fields.

    Later rows are written in the header's column order; a field the first
    record lacks is dropped. An empty stream produces an empty body.
    """

    media_type = "text/csv"

    def __init__(self, transport: BaseResponseTransport) -> None:
        super().__init__(transport)
        self._header: list[str] | None = None

    @staticmethod
    def _format_rows(rows: list[list[Any]]) -> bytes:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerows(rows)
        return buf.getvalue().encode("utf-8")

    @staticmethod
    def _cell(value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, list):
            return " ".join(str(v) for v in value)
        return value

    def encode_open(self) -> bytes:
        return b""

    def encode_record(self, record: BaseModel, index: int) -> bytes:
        flat = flatten_record(record, mode="json")
        rows: list[list[Any]] = []
        if self._header is None:
            self._header = list(flat)
            rows.append(self._header)
        rows.append([self._cell(flat.get(name)) for name in self._header])
        return self._format_rows(rows)

    def encode_close(self, count: int) -> bytes:
        return b""
