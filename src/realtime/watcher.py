# src/realtime/watcher.py - v1
"""Watch the logs directory and push batch events to subscribers.

watchdog delivers file-system events on its own thread; they are handed
to the event loop with ``call_soon_threadsafe`` and debounced there, so a
run-log that is still being written triggers one refresh once it settles.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from primedash.realtime.broadcaster import BATCH_ADDED, BATCH_UPDATED, Broadcaster

if TYPE_CHECKING:
    from primedash.batch.service import LogDataService

logger = logging.getLogger(__name__)


class _RunLogEventHandler(FileSystemEventHandler):
    """Forward ``*.log`` create/modify/move events to the watcher's loop."""

    def __init__(self, watcher: LogDirectoryWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def _forward(self, path: str | bytes) -> None:
        if isinstance(path, bytes):
            path = path.decode("utf-8", errors="replace")
        name = Path(path).name
        if name.endswith(".log"):
            self._watcher.notify_threadsafe(name)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.dest_path)


class LogDirectoryWatcher:
    """Debounced directory watcher driving cache invalidation and push events."""

    def __init__(
        self,
        service: LogDataService,
        broadcaster: Broadcaster,
        debounce_seconds: float = 1.0,
    ) -> None:
        self._service = service
        self._broadcaster = broadcaster
        self._debounce = debounce_seconds
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: Observer | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._pending: set[str] = set()
        self._known: set[str] = set()
        self._tasks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._observer is not None

    @property
    def known_logs(self) -> frozenset[str]:
        return frozenset(self._known)

    async def start(self) -> None:
        """Record the current run-logs and start observing the directory."""
        if self._observer is not None:
            return
        self._loop = asyncio.get_running_loop()
        scanner = self._service.scanner
        try:
            self._known = {e.filename for e in await scanner.list_run_logs()}
        except OSError as exc:
            logger.warning("Cannot list %s before watching: %s", scanner.logs_path, exc)
            self._known = set()

        observer = Observer()
        observer.schedule(
            _RunLogEventHandler(self), str(scanner.logs_path), recursive=False,
        )
        observer.start()
        self._observer = observer
        logger.info("Watching %s for run-log changes", scanner.logs_path)

    async def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending.clear()
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            await asyncio.to_thread(observer.join, 5.0)
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("Directory watcher stopped")

    async def restart(self) -> None:
        """Follow the service to a new logs directory."""
        await self.stop()
        await self.start()

    # --- Event handling ---

    def notify_threadsafe(self, filename: str) -> None:
        """Called from the observer thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.notify, filename)

    def notify(self, filename: str) -> None:
        """Queue ``filename`` and (re)arm the debounce timer."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._pending.add(filename)
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._loop.call_later(self._debounce, self._flush)

    def _flush(self) -> None:
        self._timer = None
        names, self._pending = self._pending, set()
        if not names:
            return
        task = asyncio.ensure_future(self.process_changes(names))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_log_refresh_outcome)

    async def process_changes(self, filenames: set[str]) -> int:
        """Refresh the cache and publish events for changed run-logs.

        Returns:
            Number of events published.
        """
        self._service.clear_cache()
        batches = await self._service.get_batches()
        published = 0
        for batch in batches:
            if batch.log_file not in filenames:
                continue
            event = BATCH_UPDATED if batch.log_file in self._known else BATCH_ADDED
            self._known.add(batch.log_file)
            await self._broadcaster.publish(
                "batches", event, {"batch": batch.model_dump(mode="json")},
            )
            published += 1
        logger.info(
            "Processed %d changed log files, published %d events",
            len(filenames), published,
        )
        return published


def _log_refresh_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Run-log refresh failed: %s", exc, exc_info=exc)
