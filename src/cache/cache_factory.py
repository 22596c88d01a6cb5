# src/cache/cache_factory.py - v1
"""Factory for snapshot cache instantiation."""

from __future__ import annotations

from primedash.cache.base_cache_store import BaseSnapshotCache
from primedash.cache.memory_store import MemorySnapshotCache
from primedash.config.settings import Settings


def create_snapshot_cache(settings: Settings | None = None) -> BaseSnapshotCache:
    """Instantiate the snapshot cache configured by ``settings``.

    Args:
        settings: Application settings. Defaults to a 30 second TTL.
    """
    ttl = 30.0 if settings is None else settings.cache_ttl_seconds
    return MemorySnapshotCache(ttl_seconds=ttl)
