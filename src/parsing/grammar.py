# src/parsing/grammar.py - v1
"""Log record grammar: pure functions recognising summary lines and run-log lines.

Two textual formats are understood.

Summary line (legacy ``summary.log``)::

    2025-07-02 17:09 a_range=5000-5049 checked=50000000000000 found=1 elapsed=8334.30s rps=6000720081

The date is mandatory, the time of day optional, every ``key=value`` field
optional except ``a_range``.

Run-log (``run_<token>.log``), in file order::

    2025-07-02 14:50:27 Starting search: a∈[5000,5049], b∈[1,10000], ...
    Mode: parallel
    Threads: 12
    2025-07-02 17:09:21 Search completed. Checked 50000000000000 combinations in 8334.30 seconds.
    Throughput: 5,999,424,610 checks/second
    Cubes of primes found:
    (5003, 2, 4, 6)
    Found 1 cubes of primes.

Nothing in this module raises on malformed input; a line that does not fit
yields ``None``.
"""

from __future__ import annotations

import re
from datetime import datetime

from primedash.core.models import SolutionTuple, SummaryRecord

RUN_FILE_RE = re.compile(r"^run_(.+)\.log$")
SUMMARY_LOG_NAME = "summary.log"

SUMMARY_LINE_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})(?:\s+(\d{2}:\d{2}))?\s+(.*)$"
)
_A_RANGE_RE = re.compile(r"a_range=(\S+)")
_CHECKED_RE = re.compile(r"checked=(\d+)")
_FOUND_RE = re.compile(r"found=(\d+)")
_ELAPSED_RE = re.compile(r"elapsed=(\d+(?:\.\d+)?)s")
_RPS_RE = re.compile(r"rps=(\d+)")

_STAMP = r"(\d{4}-\d{2}-\d{2})\s+(\d{2}:\d{2}(?::\d{2})?)"
START_BANNER_RE = re.compile(rf"^{_STAMP}\s+Starting search:")
COMPLETION_BANNER_RE = re.compile(
    rf"^{_STAMP}\s+Search completed\.\s+Checked\s+(\d+)\s+combinations"
    r"\s+in\s+(\d+(?:\.\d+)?)\s+seconds"
)
THROUGHPUT_RE = re.compile(r"^Throughput:\s*(\d[\d,]*)\s+checks/second")
MODE_RE = re.compile(r"^Mode:\s*(\S+)")
THREADS_RE = re.compile(r"^Threads:\s*(\d+)")
TUPLE_RE = re.compile(r"\((\d+),\s*(\d+),\s*(\d+),\s*(\d+)\)")
SOLUTIONS_MARKER_RE = re.compile(r"Cubes of primes found:")
FOUND_RE = re.compile(r"Found\s+(\d+)\s+cubes\s+of\s+primes", re.IGNORECASE)
NONE_FOUND_RE = re.compile(r"No\s+cubes\s+of\s+primes\s+found", re.IGNORECASE)
BANNER_RANGE_RE = re.compile(r"a∈\[\s*(\d+)\s*,\s*(\d+)\s*\]")


# --- Helpers ---


def parse_timestamp(date_str: str, time_str: str | None = None) -> datetime | None:
    """Combine ``YYYY-MM-DD`` and optional ``HH:MM[:SS]`` into a naive datetime."""
    try:
        if not time_str:
            return datetime.strptime(date_str, "%Y-%m-%d")
        fmt = "%Y-%m-%d %H:%M:%S" if time_str.count(":") == 2 else "%Y-%m-%d %H:%M"
        return datetime.strptime(f"{date_str} {time_str}", fmt)
    except ValueError:
        return None


def parse_count(text: str) -> int:
    """Parse a non-negative count, stripping thousands separators."""
    return int(text.replace(",", ""))


def range_token_from_filename(filename: str) -> str | None:
    """``run_1-100.log`` -> ``1-100``; anything else -> None."""
    match = RUN_FILE_RE.match(filename)
    return match.group(1) if match else None


def run_log_filename(range_token: str) -> str:
    return f"run_{range_token}.log"


# --- Summary lines ---


def parse_summary_line(line: str) -> SummaryRecord | None:
    """Parse one summary.log line; None when the line does not fit."""
    match = SUMMARY_LINE_RE.match(line.strip())
    if not match:
        return None

    date_str, time_str, rest = match.groups()
    a_range = _A_RANGE_RE.search(rest)
    if not a_range:
        return None

    timestamp = parse_timestamp(date_str, time_str)
    if timestamp is None:
        return None

    checked = _CHECKED_RE.search(rest)
    found = _FOUND_RE.search(rest)
    elapsed = _ELAPSED_RE.search(rest)
    rps = _RPS_RE.search(rest)

    return SummaryRecord(
        timestamp=timestamp,
        a_range=a_range.group(1),
        checked=int(checked.group(1)) if checked else None,
        found=int(found.group(1)) if found else None,
        elapsed=float(elapsed.group(1)) if elapsed else None,
        rps=int(rps.group(1)) if rps else None,
        summary=rest.strip(),
    )


def format_summary_line(
    timestamp: datetime,
    a_range: str,
    checked: int,
    found: int,
    elapsed: float,
    rps: int,
) -> str:
    """Render a summary line that ``parse_summary_line`` reads back."""
    return (
        f"{timestamp:%Y-%m-%d %H:%M} a_range={a_range} checked={checked} "
        f"found={found} elapsed={elapsed:.2f}s rps={rps}"
    )


# --- Run-log lines ---


def match_terminal(line: str) -> int | None:
    """Return the reported solution count of a terminal line, else None."""
    found = FOUND_RE.search(line)
    if found:
        return int(found.group(1))
    if NONE_FOUND_RE.search(line):
        return 0
    return None


def match_tuple(line: str, line_number: int | None = None) -> SolutionTuple | None:
    match = TUPLE_RE.search(line)
    if not match:
        return None
    a, b, c, d = (int(g) for g in match.groups())
    return SolutionTuple(
        a=a, b=b, c=c, d=d, line_number=line_number, raw_line=line.strip(),
    )


def is_solutions_marker(line: str) -> bool:
    return SOLUTIONS_MARKER_RE.search(line) is not None


def match_start_banner(line: str) -> datetime | None:
    match = START_BANNER_RE.match(line.strip())
    if not match:
        return None
    return parse_timestamp(match.group(1), match.group(2))


def match_completion_banner(line: str) -> tuple[datetime | None, int, float] | None:
    """Return ``(end_time, combinations_checked, seconds)`` or None."""
    match = COMPLETION_BANNER_RE.match(line.strip())
    if not match:
        return None
    end_time = parse_timestamp(match.group(1), match.group(2))
    return end_time, int(match.group(3)), float(match.group(4))


def match_throughput(line: str) -> int | None:
    match = THROUGHPUT_RE.match(line.strip())
    return parse_count(match.group(1)) if match else None


def match_mode(line: str) -> str | None:
    match = MODE_RE.match(line.strip())
    return match.group(1) if match else None


def match_threads(line: str) -> int | None:
    match = THREADS_RE.match(line.strip())
    return int(match.group(1)) if match else None


def range_from_banner(line: str) -> str | None:
    """``... a∈[1,100], b∈[...]`` -> ``1-100``."""
    match = BANNER_RANGE_RE.search(line)
    if not match:
        return None
    return f"{int(match.group(1))}-{int(match.group(2))}"
