# src/realtime/broadcaster.py - v1
"""Topic-based fan-out of JSON events to WebSocket subscribers.

Message shape: ``{"event": "batch:added", "data": {...}, "timestamp": "..."}``.
Clients send ``{"action": "subscribe", "topic": "batches"}`` (or
``unsubscribe``); a socket that fails on send is dropped.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Literal

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

Topic = Literal["batches", "solutions", "jobs"]
TOPICS: frozenset[str] = frozenset({"batches", "solutions", "jobs"})

BATCH_ADDED = "batch:added"
BATCH_UPDATED = "batch:updated"


def make_message(event: str, data: Any) -> dict[str, Any]:
    return {"event": event, "data": data, "timestamp": datetime.now().isoformat()}


class Broadcaster:
    """Registry of connected sockets and the topics each one follows."""

    def __init__(self) -> None:
        self._subscriptions: dict[WebSocket, set[str]] = {}
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._subscriptions)

    def subscribers(self, topic: str) -> list[WebSocket]:
        return [ws for ws, topics in self._subscriptions.items() if topic in topics]

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._subscriptions[websocket] = set()
        await websocket.send_json(
            make_message("welcome", {"message": "Connected to prime cubes dashboard"})
        )
        logger.info("WebSocket client connected (%d open)", self.connection_count)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._subscriptions.pop(websocket, None)
        logger.info("WebSocket client disconnected (%d open)", self.connection_count)

    async def handle_message(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        """Apply one subscribe/unsubscribe request from a client."""
        action = message.get("action")
        topic = message.get("topic")
        if action not in {"subscribe", "unsubscribe"} or topic not in TOPICS:
            await websocket.send_json(
                make_message("error", {"message": f"Unsupported request: {message}"})
            )
            return

        async with self._lock:
            topics = self._subscriptions.setdefault(websocket, set())
            if action == "subscribe":
                topics.add(topic)
            else:
                topics.discard(topic)
        if action == "subscribe":
            await websocket.send_json(
                make_message("subscription:confirmed", {"type": topic})
            )

    async def serve(self, websocket: WebSocket) -> None:
        """Run one client connection until it disconnects."""
        await self.connect(websocket)
        try:
            while True:
                text = await websocket.receive_text()
                try:
                    message = json.loads(text)
                except ValueError:
                    message = None
                if not isinstance(message, dict):
                    await websocket.send_json(
                        make_message("error", {"message": "Expected a JSON object"})
                    )
                    continue
                await self.handle_message(websocket, message)
        except WebSocketDisconnect:
            pass
        finally:
            await self.disconnect(websocket)

    async def publish(self, topic: str, event: str, data: Any) -> int:
        """Send an event to every subscriber of ``topic``.

        Returns:
            Number of sockets the event was delivered to.
        """
        message = make_message(event, data)
        delivered = 0
        dead: list[WebSocket] = []
        for websocket in self.subscribers(topic):
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as exc:
                logger.warning("Dropping WebSocket after failed send: %s", exc)
                dead.append(websocket)
        if dead:
            async with self._lock:
                for websocket in dead:
                    self._subscriptions.pop(websocket, None)
        logger.debug("Published %s to %d subscribers", event, delivered)
        return delivered

    async def close_all(self) -> None:
        async with self._lock:
            sockets = list(self._subscriptions)
            self._subscriptions.clear()
        for websocket in sockets:
            try:
                await websocket.close(code=1001, reason="Server shutdown")
            except Exception as exc:
                logger.warning("Error closing WebSocket during shutdown: %s", exc)
