# src/streaming/generators.py - v1
"""Lazy record sequences for streamed responses.

Each call starts a fresh directory scan. Nothing is read before the first
record is pulled, and closing the returned generator stops parsing at the
next file.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from primedash.batch.scanner import LogDirectoryScanner
from primedash.core.models import Batch, Solution
from primedash.query.engine import aiter_query
from primedash.query.models import DEFAULT_PAGE_LIMIT, RecordQuery


def iter_batches(
    scanner: LogDirectoryScanner,
    query: RecordQuery | None = None,
    default_limit: int = DEFAULT_PAGE_LIMIT,
) -> AsyncGenerator[Batch, None]:
    """Batches newest run-log first, narrowed by ``query``."""
    return aiter_query(scanner.iter_batches(), query or RecordQuery(), default_limit)


def iter_solutions(
    scanner: LogDirectoryScanner,
    query: RecordQuery | None = None,
    default_limit: int = DEFAULT_PAGE_LIMIT,
) -> AsyncGenerator[Solution, None]:
    """Solutions file by file, narrowed by ``query``.

    A ``batch_range`` filter restricts the scan to the matching run-log
    instead of parsing every file and discarding the rest.
    """
    query = query or RecordQuery()
    source = scanner.iter_solutions(range_token=query.filter.batch_range)
    return aiter_query(source, query, default_limit)
