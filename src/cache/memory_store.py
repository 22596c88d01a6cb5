# src/cache/memory_store.py - v1
"""In-process snapshot cache with a fixed time-to-live and single-flight refresh.

Concurrency policy:
  * readers within the TTL window all get the same immutable snapshot;
  * at most one refresh per key runs at a time (per-key ``asyncio.Lock``);
    callers queued behind it re-check freshness and reuse its result;
  * ``invalidate()`` bumps a per-key generation, so a refresh that was
    already running when the cache was invalidated returns its records to
    its own caller but does not store them;
  * a loader that raises leaves the previous state untouched.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from typing import Any

from primedash.cache.base_cache_store import BaseSnapshotCache, Loader
from primedash.cache.models import CacheKeyStats, CacheSnapshot, CacheStats

logger = logging.getLogger(__name__)


class MemorySnapshotCache(BaseSnapshotCache):
    """Process-wide read-through cache (default TTL: 30 seconds)."""

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshots: dict[str, CacheSnapshot] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._generations: defaultdict[str, int] = defaultdict(int)
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def peek(self, key: str) -> CacheSnapshot | None:
        """Return the snapshot for ``key`` if it is still fresh."""
        snapshot = self._snapshots.get(key)
        if snapshot is None:
            return None
        if self._clock() - snapshot.created_at >= self._ttl:
            return None
        return snapshot

    async def get_or_refresh(self, key: str, loader: Loader) -> tuple[Any, ...]:
        snapshot = self.peek(key)
        if snapshot is not None:
            self._hits += 1
            return snapshot.records

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # Another caller may have refreshed while we waited
            snapshot = self.peek(key)
            if snapshot is not None:
                self._hits += 1
                return snapshot.records

            self._misses += 1
            generation = self._generations[key]
            t0 = time.perf_counter()
            records = tuple(await loader())

            if self._generations[key] == generation:
                self._snapshots[key] = CacheSnapshot(
                    key=key,
                    records=records,
                    created_at=self._clock(),
                    refreshed_at=datetime.now(),
                )
            else:
                logger.debug("Cache key %r invalidated during refresh, not stored", key)

            logger.debug(
                "Refreshed %r: %d records in %.3fs",
                key, len(records), time.perf_counter() - t0,
            )
            return records

    def invalidate(self, key: str | None = None) -> None:
        if key is None:
            keys = set(self._snapshots) | set(self._locks) | set(self._generations)
        else:
            keys = {key}
        for k in keys:
            self._snapshots.pop(k, None)
            self._generations[k] += 1
        logger.info("Cache cleared (%s)", key or "all keys")

    def stats(self) -> CacheStats:
        now = self._clock()
        return CacheStats(
            ttl_seconds=self._ttl,
            hits=self._hits,
            misses=self._misses,
            keys={
                key: CacheKeyStats(
                    record_count=len(snap.records),
                    age_seconds=round(now - snap.created_at, 3),
                    refreshed_at=snap.refreshed_at,
                )
                for key, snap in self._snapshots.items()
            },
        )
