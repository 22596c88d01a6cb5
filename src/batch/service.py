# src/batch/service.py - v1
"""Log data service: the single entry point the HTTP layer talks to.

Usage:
    service = LogDataService.from_settings(settings)
    batches = await service.get_batches()
    records, total = await service.query_solutions(query)

Materialized reads go through the snapshot cache; streamed reads bypass it
and scan the directory lazily. Cache refresh failures degrade to an empty
result instead of reaching the caller.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from pathlib import Path

from primedash.batch.scanner import LogDirectoryScanner
from primedash.cache.base_cache_store import (
    BATCHES_KEY,
    SOLUTIONS_KEY,
    BaseSnapshotCache,
)
from primedash.cache.cache_factory import create_snapshot_cache
from primedash.cache.models import CacheStats
from primedash.config.settings import Settings
from primedash.core.models import Batch, Solution
from primedash.query.engine import apply_query, count_matching
from primedash.query.models import RecordQuery
from primedash.streaming import generators

logger = logging.getLogger(__name__)


class LogDataService:
    """Read-only view of the logs directory, cached and queryable."""

    def __init__(
        self,
        settings: Settings,
        cache: BaseSnapshotCache | None = None,
        scanner: LogDirectoryScanner | None = None,
    ) -> None:
        self._settings = settings
        self._cache = cache or create_snapshot_cache(settings)
        self._scanner = scanner or LogDirectoryScanner.from_settings(settings)

    @classmethod
    def from_settings(cls, settings: Settings) -> LogDataService:
        return cls(settings)

    @property
    def scanner(self) -> LogDirectoryScanner:
        return self._scanner

    @property
    def logs_path(self) -> Path:
        return self._scanner.logs_path

    @property
    def default_limit(self) -> int:
        return self._settings.default_page_limit

    # --- Materialized reads ---

    async def get_batches(self) -> list[Batch]:
        """All batches, newest run-log first (cached)."""
        try:
            records = await self._cache.get_or_refresh(
                BATCHES_KEY, self._scanner.scan_batches,
            )
        except Exception as exc:
            logger.exception("Batch refresh failed, serving empty result: %s", exc)
            return []
        return list(records)

    async def get_solutions(self) -> list[Solution]:
        """All solutions, newest run-log first (cached)."""
        try:
            records = await self._cache.get_or_refresh(
                SOLUTIONS_KEY, self._scanner.scan_solutions,
            )
        except Exception as exc:
            logger.exception("Solution refresh failed, serving empty result: %s", exc)
            return []
        return list(records)

    async def query_batches(self, query: RecordQuery) -> tuple[list[Batch], int]:
        """Return the requested page and the number of matching batches."""
        batches = await self.get_batches()
        page = apply_query(batches, query, self.default_limit)
        return page, count_matching(batches, query.filter)

    async def query_solutions(
        self, query: RecordQuery,
    ) -> tuple[list[Solution], int]:
        solutions = await self.get_solutions()
        page = apply_query(solutions, query, self.default_limit)
        return page, count_matching(solutions, query.filter)

    # --- Streamed reads ---

    def stream_batches(
        self, query: RecordQuery | None = None,
    ) -> AsyncGenerator[Batch, None]:
        return generators.iter_batches(self._scanner, query, self.default_limit)

    def stream_solutions(
        self, query: RecordQuery | None = None,
    ) -> AsyncGenerator[Solution, None]:
        return generators.iter_solutions(self._scanner, query, self.default_limit)

    # --- Cache control ---

    def clear_cache(self) -> None:
        self._cache.invalidate()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    async def update_logs_path(self, logs_path: Path) -> Path:
        """Point the service at another logs directory and drop cached data."""
        self._settings = self._settings.model_copy(update={"logs_path": logs_path})
        self._scanner = LogDirectoryScanner.from_settings(self._settings)
        await self._scanner.ensure_directory()
        self.clear_cache()
        logger.info("Logs path changed to %s", self._scanner.logs_path)
        return self._scanner.logs_path
