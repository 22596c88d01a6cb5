# src/parsing/summary_log.py - v1
"""Legacy ``summary.log`` support.

Older versions of the search program appended one summary line per
completed batch to a single aggregate file. Run-logs are the source of
truth now; this reader only fills in batches that have no run-log.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles

from primedash.core.models import SummaryRecord
from primedash.parsing.grammar import parse_summary_line

logger = logging.getLogger(__name__)


async def iter_summary_records(path: Path) -> AsyncIterator[SummaryRecord]:
    """Yield parsed summary lines; blank and malformed lines are skipped."""
    try:
        async with aiofiles.open(path, encoding="utf-8", errors="replace") as f:
            line_number = 0
            async for line in f:
                line_number += 1
                if not line.strip():
                    continue
                record = parse_summary_line(line)
                if record is None:
                    logger.debug("Skipping malformed summary line %d", line_number)
                    continue
                yield record
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Cannot read %s: %s", path, exc)


async def read_summary_records(path: Path) -> list[SummaryRecord]:
    return [record async for record in iter_summary_records(path)]


async def append_summary_line(path: Path, line: str) -> None:
    """Append one summary line, starting a new line when the file has content."""
    prefix = ""
    try:
        async with aiofiles.open(path, "rb") as f:
            await f.seek(0, 2)
            if await f.tell() > 0:
                await f.seek(-1, 2)
                if await f.read(1) != b"\n":
                    prefix = "\n"
    except FileNotFoundError:
        pass

    async with aiofiles.open(path, "a", encoding="utf-8") as f:
        await f.write(f"{prefix}{line}\n")
