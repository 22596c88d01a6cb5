# src/cache/base_cache_store.py - v1
"""Abstract read-through snapshot cache interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from primedash.cache.models import CacheStats

Loader = Callable[[], Awaitable[Iterable[Any]]]

BATCHES_KEY = "batches"
SOLUTIONS_KEY = "solutions"


class BaseSnapshotCache(ABC):
    """Unified interface for snapshot caches keyed by record family."""

    @abstractmethod
    async def get_or_refresh(self, key: str, loader: Loader) -> tuple[Any, ...]:
        """Return the fresh snapshot for ``key``, rebuilding it with ``loader``."""

    @abstractmethod
    def invalidate(self, key: str | None = None) -> None:
        """Drop one snapshot, or all of them when ``key`` is None."""

    @abstractmethod
    def stats(self) -> CacheStats:
        """Hit/miss counters and per-key snapshot ages."""
