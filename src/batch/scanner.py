# src/batch/scanner.py - v1
"""Run-log directory scanner: discovery, newest-first ordering and lazy parsing.

Workflow:
    1. Make sure the logs directory exists (create it, optionally seed a
       sample run-log, when it does not)
    2. List ``run_<token>.log`` files and order them by mtime, newest first
    3. Parse each file bottom-up, one at a time, and materialize batches
       and solutions lazily

Every file-system call is awaited, so a long directory yields control
between files and a cancelled consumer stops the scan at the next file.
"""

from __future__ import annotations

import logging
import stat
from collections.abc import AsyncIterator
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles
import aiofiles.os

from primedash.batch.models import ParsedRunLog, RunLogEntry
from primedash.core.models import Batch, Solution
from primedash.parsing.bottom_up import parse_log_file_from_bottom
from primedash.parsing.grammar import SUMMARY_LOG_NAME, range_token_from_filename
from primedash.parsing.materializer import (
    build_batch,
    build_batch_from_summary,
    build_solutions,
)
from primedash.parsing.summary_log import iter_summary_records

if TYPE_CHECKING:
    from primedash.config.settings import Settings

logger = logging.getLogger(__name__)

SAMPLE_RANGE_TOKEN = "1-100"


def sample_run_log(now: datetime | None = None) -> str:
    """Content of the run-log seeded into a freshly created logs directory."""
    now = now or datetime.now()
    stamp = now.strftime("%Y-%m-%d %H:%M:%S")
    return (
        f"{stamp} Starting search: a∈[1,100], b∈[1,10000], c∈[1,10000], d∈[1,10000]\n"
        "Total combinations: 10000000000\n"
        "Mode: parallel\n"
        "Threads: 12\n"
        "\n"
        f"{stamp} Search completed. Checked 10000000000 combinations in 105.23 seconds.\n"
        "Throughput: 95028984 checks/second\n"
        "\n"
        "Cubes of primes found:\n"
        "(17, 21, 29, 33)\n"
        "Found 1 cubes of primes.\n"
    )


class LogDirectoryScanner:
    """Scan a logs directory for run-logs and turn them into domain records."""

    def __init__(
        self,
        logs_path: Path,
        seed_sample_log: bool = True,
        summary_log_enabled: bool = True,
    ) -> None:
        self._logs_path = Path(logs_path).expanduser()
        self._seed_sample_log = seed_sample_log
        self._summary_log_enabled = summary_log_enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> LogDirectoryScanner:
        return cls(
            logs_path=settings.resolved_logs_path,
            seed_sample_log=settings.seed_sample_log,
            summary_log_enabled=settings.summary_log_enabled,
        )

    @property
    def logs_path(self) -> Path:
        return self._logs_path

    async def ensure_directory(self) -> bool:
        """Create the logs directory when missing.

        Returns:
            True if the directory had to be created.
        """
        if await aiofiles.os.path.isdir(self._logs_path):
            return False

        logger.info("Logs directory does not exist, creating: %s", self._logs_path)
        await aiofiles.os.makedirs(self._logs_path, exist_ok=True)

        if self._seed_sample_log:
            sample_path = self._logs_path / f"run_{SAMPLE_RANGE_TOKEN}.log"
            async with aiofiles.open(sample_path, "w", encoding="utf-8") as f:
                await f.write(sample_run_log())
            logger.info("Seeded sample run-log %s", sample_path.name)
        return True

    async def list_run_logs(self) -> list[RunLogEntry]:
        """Discover run-logs, newest first by modification time.

        Raises:
            OSError: If the directory cannot be listed.
        """
        await self.ensure_directory()

        entries: list[RunLogEntry] = []
        for name in await aiofiles.os.listdir(self._logs_path):
            range_token = range_token_from_filename(name)
            if range_token is None:
                continue
            path = self._logs_path / name
            try:
                st = await aiofiles.os.stat(path)
            except FileNotFoundError:
                continue  # removed between listdir and stat
            if not stat.S_ISREG(st.st_mode):
                continue
            entries.append(
                RunLogEntry(
                    file_path=str(path),
                    filename=name,
                    range_token=range_token,
                    size_bytes=st.st_size,
                    mtime=st.st_mtime,
                )
            )

        entries.sort(key=lambda e: (-e.mtime, e.filename))
        logger.debug("Scanned %s: found %d run-logs", self._logs_path, len(entries))
        return entries

    async def iter_parsed(
        self, range_token: str | None = None,
    ) -> AsyncIterator[ParsedRunLog]:
        """Parse run-logs one at a time; unparseable files are skipped."""
        for entry in await self.list_run_logs():
            if range_token is not None and entry.range_token != range_token:
                continue
            info = await parse_log_file_from_bottom(Path(entry.file_path))
            if info is None:
                continue
            yield ParsedRunLog(entry=entry, info=info)

    async def iter_batches(self) -> AsyncIterator[Batch]:
        """Yield one Batch per parseable run-log, then legacy summary-only batches."""
        entries = await self.list_run_logs()
        run_tokens = {e.range_token for e in entries}

        for entry in entries:
            info = await parse_log_file_from_bottom(Path(entry.file_path))
            if info is None:
                continue
            yield build_batch(
                info, entry.range_token, entry.filename,
                fallback_time=entry.modified_at,
            )

        if not self._summary_log_enabled:
            return

        seen = set(run_tokens)
        async for record in iter_summary_records(self._logs_path / SUMMARY_LOG_NAME):
            if record.a_range in seen:
                continue
            seen.add(record.a_range)
            yield build_batch_from_summary(record)

    async def iter_solutions(
        self, range_token: str | None = None,
    ) -> AsyncIterator[Solution]:
        """Yield solutions file by file, newest run-log first."""
        async for parsed in self.iter_parsed(range_token):
            batch = build_batch(
                parsed.info, parsed.entry.range_token, parsed.entry.filename,
                fallback_time=parsed.entry.modified_at,
            )
            for solution in build_solutions(parsed.info, batch):
                yield solution

    async def scan_batches(self) -> list[Batch]:
        return [batch async for batch in self.iter_batches()]

    async def scan_solutions(self) -> list[Solution]:
        return [solution async for solution in self.iter_solutions()]
