# tests/unit/realtime/test_unit_watcher.py - v1
"""Tests for realtime/watcher.py - change processing and debounce."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from primedash.batch.service import LogDataService
from primedash.realtime.broadcaster import BATCH_ADDED, BATCH_UPDATED, Broadcaster
from primedash.realtime.watcher import LogDirectoryWatcher


@pytest.fixture
def service(settings) -> LogDataService:
    return LogDataService.from_settings(settings)


async def _subscriber() -> tuple[Broadcaster, AsyncMock]:
    broadcaster = Broadcaster()
    ws = AsyncMock()
    await broadcaster.connect(ws)
    await broadcaster.handle_message(ws, {"action": "subscribe", "topic": "batches"})
    ws.send_json.reset_mock()
    return broadcaster, ws


def _published(ws: AsyncMock) -> list[tuple[str, str]]:
    return [
        (c.args[0]["event"], c.args[0]["data"]["batch"]["log_file"])
        for c in ws.send_json.await_args_list
    ]


class TestProcessChanges:
    @pytest.mark.asyncio
    async def test_added_then_updated(self, service):
        broadcaster, ws = await _subscriber()
        watcher = LogDirectoryWatcher(service, broadcaster)

        assert await watcher.process_changes({"run_1-100.log"}) == 1
        assert await watcher.process_changes({"run_1-100.log"}) == 1
        assert _published(ws) == [
            (BATCH_ADDED, "run_1-100.log"),
            (BATCH_UPDATED, "run_1-100.log"),
        ]

    @pytest.mark.asyncio
    async def test_incomplete_log_publishes_nothing(self, service):
        broadcaster, ws = await _subscriber()
        watcher = LogDirectoryWatcher(service, broadcaster)
        assert await watcher.process_changes({"run_301-400.log"}) == 0
        ws.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_refreshes_cache(self, service, logs_dir, make_run_log):
        broadcaster, ws = await _subscriber()
        watcher = LogDirectoryWatcher(service, broadcaster)
        await service.get_batches()

        (logs_dir / "run_301-400.log").write_text(
            make_run_log(a_range="301-400"), encoding="utf-8",
        )
        assert await watcher.process_changes({"run_301-400.log"}) == 1
        tokens = {b.range_token for b in await service.get_batches()}
        assert "301-400" in tokens


class TestStartStop:
    @pytest.mark.asyncio
    async def test_start_records_known_logs(self, service):
        watcher = LogDirectoryWatcher(service, Broadcaster())
        await watcher.start()
        try:
            assert watcher.running
            assert "run_1-100.log" in watcher.known_logs
        finally:
            await watcher.stop()
        assert not watcher.running


class TestDebounce:
    @pytest.mark.asyncio
    async def test_burst_becomes_one_refresh(self, service):
        watcher = LogDirectoryWatcher(service, Broadcaster(), debounce_seconds=0.05)
        batches: list[set[str]] = []

        async def record(filenames):
            batches.append(set(filenames))
            return 0

        watcher.process_changes = record  # type: ignore[method-assign]
        for name in ("run_1-100.log", "run_1-100.log", "run_101-200.log"):
            watcher.notify(name)
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.2)

        assert batches == [{"run_1-100.log", "run_101-200.log"}]

    @pytest.mark.asyncio
    async def test_failed_refresh_is_logged(self, service, caplog):
        watcher = LogDirectoryWatcher(service, Broadcaster(), debounce_seconds=0.01)

        async def broken(filenames):
            raise OSError("logs directory vanished")

        watcher.process_changes = broken  # type: ignore[method-assign]
        with caplog.at_level(logging.ERROR, logger="primedash.realtime.watcher"):
            watcher.notify("run_1-100.log")
            await asyncio.sleep(0.1)

        assert "Run-log refresh failed: logs directory vanished" in caplog.text
        assert not watcher._tasks

    @pytest.mark.asyncio
    async def test_threadsafe_before_start_is_ignored(self, service):
        watcher = LogDirectoryWatcher(service, Broadcaster())
        watcher.notify_threadsafe("run_1-100.log")
        await asyncio.sleep(0)
        assert watcher.running is False
