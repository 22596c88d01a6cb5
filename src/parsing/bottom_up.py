# src/parsing/bottom_up.py - v1
"""Bottom-up run-log parser.

A run-log is append-only and its useful summary sits at the end, so the
parser starts from the last non-blank line and walks upward:

    1. Find the terminal line ("Found N cubes of primes." or "No cubes of
       primes found in this range."): the last non-blank line, or one of
       the TERMINAL_SEARCH_LINES lines above it. No terminal line means the
       file is still being written (or truncated); the result is None.
    2. Collect every ``(a, b, c, d)`` tuple until the "Cubes of primes
       found:" marker. Throughput and completion lines met on the way are
       still honoured because some program versions print them late.
    3. Above the marker, the first match (from the bottom) of Throughput,
       completion banner, Mode and Threads fills its field; the start banner
       ends the scan.

Throughput is taken verbatim from the log and never recomputed from
combinations / seconds; the two may disagree by rounding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import aiofiles

from primedash.core.models import LogFileInfo, SolutionTuple
from primedash.logging.context import reset_log_file_context, set_log_file_context
from primedash.parsing import grammar

logger = logging.getLogger(__name__)

# Lines searched above the last non-blank line before giving up on a file
TERMINAL_SEARCH_LINES = 5


@dataclass
class _Accumulator:
    """Mutable scratch state while walking a file upward."""

    solutions: list[SolutionTuple] = field(default_factory=list)
    throughput: int | None = None
    total_combinations: int | None = None
    duration: float | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    mode: str | None = None
    threads: int | None = None
    a_range: str | None = None

    def apply_metadata(self, line: str) -> None:
        """Fill the first (bottom-most) occurrence of each metadata line."""
        if self.throughput is None:
            throughput = grammar.match_throughput(line)
            if throughput is not None:
                self.throughput = throughput
                return

        if self.total_combinations is None:
            completion = grammar.match_completion_banner(line)
            if completion is not None:
                self.end_time, self.total_combinations, self.duration = completion
                return

        if self.mode is None:
            mode = grammar.match_mode(line)
            if mode is not None:
                self.mode = mode
                return

        if self.threads is None:
            threads = grammar.match_threads(line)
            if threads is not None:
                self.threads = threads


def parse_log_text_from_bottom(text: str) -> LogFileInfo | None:
    """Parse the full text of one run-log.

    Returns:
        LogFileInfo, or None for empty files and files without a terminal
        line. Never raises on malformed content.
    """
    lines = text.splitlines()
    last = _last_non_blank(lines)
    if last is None:
        return None

    terminal = _find_terminal(lines, last)
    if terminal is None:
        logger.debug("No terminal line within %d lines of the end", TERMINAL_SEARCH_LINES + 1)
        return None
    terminal_index, solution_count = terminal

    acc = _Accumulator()
    in_solutions = True

    for index in range(terminal_index - 1, -1, -1):
        line = lines[index]
        if not line.strip():
            continue

        if in_solutions:
            if grammar.is_solutions_marker(line):
                in_solutions = False
                continue
            solution = grammar.match_tuple(line, line_number=index + 1)
            if solution is not None:
                acc.solutions.append(solution)
                continue

        start_time = grammar.match_start_banner(line)
        if start_time is not None:
            acc.start_time = start_time
            acc.a_range = grammar.range_from_banner(line)
            break

        acc.apply_metadata(line)

    return LogFileInfo(
        solution_count=solution_count,
        solutions=acc.solutions,
        throughput=acc.throughput or 0,
        total_combinations=acc.total_combinations or 0,
        duration=acc.duration or 0.0,
        start_time=acc.start_time,
        end_time=acc.end_time,
        mode=acc.mode,
        threads=acc.threads,
        a_range=acc.a_range,
    )


async def parse_log_file_from_bottom(path: Path) -> LogFileInfo | None:
    """Read one run-log (UTF-8) and parse it bottom-up.

    Unreadable files are logged and reported as None, like unparseable ones.
    """
    token = set_log_file_context(path.name)
    try:
        try:
            async with aiofiles.open(path, encoding="utf-8", errors="replace") as f:
                text = await f.read()
        except OSError as exc:
            logger.warning("Cannot read run-log %s: %s", path.name, exc)
            return None

        try:
            info = parse_log_text_from_bottom(text)
        except ValueError as exc:
            # pydantic ValidationError is a ValueError too
            logger.warning("Skipping %s: malformed content: %s", path.name, exc)
            return None
        if info is None:
            logger.info("Skipping %s: no terminal line (incomplete or malformed)", path.name)
        return info
    finally:
        reset_log_file_context(token)


def _last_non_blank(lines: list[str]) -> int | None:
    for index in range(len(lines) - 1, -1, -1):
        if lines[index].strip():
            return index
    return None


def _find_terminal(lines: list[str], last: int) -> tuple[int, int] | None:
    lowest = max(0, last - TERMINAL_SEARCH_LINES)
    for index in range(last, lowest - 1, -1):
        count = grammar.match_terminal(lines[index])
        if count is not None:
            return index, count
    return None
