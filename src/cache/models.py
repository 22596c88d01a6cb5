# src/cache/models.py - v1
"""Cache models: CacheSnapshot, CacheKeyStats, CacheStats."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CacheSnapshot(BaseModel):
    """An immutable, fully built result set stored under one cache key."""

    model_config = ConfigDict(frozen=True)

    key: str
    records: tuple[Any, ...]
    created_at: float  # monotonic clock reading
    refreshed_at: datetime


class CacheKeyStats(BaseModel):
    record_count: int
    age_seconds: float
    refreshed_at: datetime


class CacheStats(BaseModel):
    """Point-in-time view of the cache for the stats endpoint."""

    ttl_seconds: float
    hits: int = 0
    misses: int = 0
    keys: dict[str, CacheKeyStats] = Field(default_factory=dict)
