# src/parsing/materializer.py - v1
"""Turn parser outputs into ``Batch`` and ``Solution`` entities.

Identifiers are synthesized from the range token and the processing time,
so two parses of the same file give different ids. Batches are read-only
snapshots and nothing looks them up by id across calls; solutions carry
``batch_range`` as the stable join key.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime

from primedash.core.models import (
    Batch,
    BatchParameters,
    LogFileInfo,
    Solution,
    SolutionTuple,
    SummaryRecord,
)
from primedash.parsing.grammar import run_log_filename

logger = logging.getLogger(__name__)


def cube_value(a: int, b: int, c: int, d: int) -> int:
    """Exact ``a³ + b³ + c³ + d³`` (Python ints never lose precision)."""
    return a**3 + b**3 + c**3 + d**3


def duplicate_count(values: tuple[int, ...] | list[int]) -> int:
    """Number of repeated values: ``len(values) - len(distinct)``."""
    return len(values) - len(set(values))


def batch_id(range_token: str, processed_at: float | None = None) -> str:
    stamp = int((processed_at if processed_at is not None else time.time()) * 1000)
    return f"batch_{range_token}_{stamp}"


def summary_text(
    range_token: str, checked: int | None, found: int | None,
    elapsed: float | None, rps: int | None,
) -> str:
    return (
        f"a_range={range_token} checked={checked} found={found} "
        f"elapsed={elapsed}s rps={rps}"
    )


def build_batch(
    info: LogFileInfo,
    range_token: str,
    log_file: str,
    fallback_time: datetime,
    processed_at: float | None = None,
) -> Batch:
    """Build a completed Batch from a parsed run-log.

    Missing timestamps are filled so that a completed batch always has both:
    start falls back to the completion time, then to ``fallback_time`` (the
    file's mtime); end falls back to start.
    """
    start_time = info.start_time or info.end_time or fallback_time
    end_time = info.end_time or start_time
    if end_time < start_time:
        logger.debug(
            "Completion banner precedes start banner in %s, clamping", log_file,
        )
        end_time = start_time

    parameters = BatchParameters(
        a_range=range_token,
        checked=info.total_combinations,
        found=info.solution_count,
        rps=info.throughput,
        mode=info.mode,
        threads=info.threads,
    )
    return Batch(
        id=batch_id(range_token, processed_at),
        timestamp=start_time,
        status="completed",
        start_time=start_time,
        end_time=end_time,
        duration=info.duration,
        parameters=parameters,
        log_file=log_file,
        summary=summary_text(
            range_token, info.total_combinations, info.solution_count,
            info.duration, info.throughput,
        ),
    )


def build_batch_from_summary(
    record: SummaryRecord, processed_at: float | None = None,
) -> Batch:
    """Build a Batch from a legacy summary line (start == end == line time)."""
    return Batch(
        id=batch_id(record.a_range, processed_at),
        timestamp=record.timestamp,
        status="completed",
        start_time=record.timestamp,
        end_time=record.timestamp,
        duration=record.elapsed,
        parameters=BatchParameters(
            a_range=record.a_range,
            checked=record.checked,
            found=record.found,
            rps=record.rps,
        ),
        log_file=run_log_filename(record.a_range),
        summary=record.summary,
    )


def build_solution(
    params: SolutionTuple,
    batch: Batch,
    cubes_count: int,
) -> Solution:
    """Build one Solution with its derived fields."""
    values = params.as_tuple()
    duplicates = duplicate_count(values)
    stem = batch.log_file.removesuffix(".log")
    position = params.line_number if params.line_number is not None else 0
    return Solution(
        id=f"solution_{stem}_{position}_{uuid.uuid4().hex[:8]}",
        batch_id=batch.id,
        batch_range=batch.range_token,
        timestamp=batch.end_time,
        cubes_count=cubes_count,
        a=params.a,
        b=params.b,
        c=params.c,
        d=params.d,
        cube_value=cube_value(*values),
        sorted_params=sorted(values),
        duplicate_count=duplicates,
        is_unique=duplicates == 0,
        log_file=batch.log_file,
        line_number=params.line_number,
        raw_line=params.raw_line or f"({params.a}, {params.b}, {params.c}, {params.d})",
    )


def build_solutions(info: LogFileInfo, batch: Batch) -> list[Solution]:
    return [build_solution(p, batch, info.solution_count) for p in info.solutions]
