# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides a run-log text builder, a populated logs directory with fixed
modification times, settings pointing at it, and small domain records.
No network access; every file lives under ``tmp_path``.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

import pytest

from primedash.config.settings import Settings, load_settings
from primedash.core.models import Batch, BatchParameters, Solution
from primedash.parsing.materializer import cube_value, duplicate_count

BASE_MTIME = 1_750_000_000.0


def build_run_log(
    a_range: str = "1-100",
    start: datetime | None = datetime(2025, 7, 1, 10, 0, 0),
    end: datetime | None = datetime(2025, 7, 1, 10, 1, 45),
    checked: int = 10_000_000_000,
    seconds: float = 105.23,
    throughput: str | None = "95,028,984",
    mode: str | None = "parallel",
    threads: int | None = 12,
    tuples: Sequence[tuple[int, int, int, int]] = ((17, 21, 29, 33),),
    found: int | None = None,
    terminal: bool = True,
) -> str:
    """Render a run-log in the search program's format."""
    lo, hi = a_range.split("-")
    lines: list[str] = []
    if start is not None:
        lines.append(
            f"{start:%Y-%m-%d %H:%M:%S} Starting search: a∈[{lo},{hi}], "
            "b∈[1,10000], c∈[1,10000], d∈[1,10000]"
        )
    lines.append(f"Total combinations: {checked}")
    if mode is not None:
        lines.append(f"Mode: {mode}")
    if threads is not None:
        lines.append(f"Threads: {threads}")
    lines.append("")
    if end is not None:
        lines.append(
            f"{end:%Y-%m-%d %H:%M:%S} Search completed. "
            f"Checked {checked} combinations in {seconds:.2f} seconds."
        )
    if throughput is not None:
        lines.append(f"Throughput: {throughput} checks/second")
    lines.append("")
    if terminal:
        if tuples:
            lines.append("Cubes of primes found:")
            lines.extend(f"({a}, {b}, {c}, {d})" for a, b, c, d in tuples)
            lines.append(f"Found {len(tuples) if found is None else found} cubes of primes.")
        else:
            lines.append("No cubes of primes found in this range.")
    return "\n".join(lines) + "\n"


def write_log(directory: Path, name: str, text: str, mtime: float | None = None) -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


# === FIXTURES: Run-logs ===


@pytest.fixture
def make_run_log() -> Callable[..., str]:
    return build_run_log


@pytest.fixture
def write_run_log() -> Callable[..., Path]:
    return write_log


@pytest.fixture
def logs_dir(tmp_path: Path) -> Path:
    """Logs directory with three complete run-logs and one still running.

    Newest first by mtime: 301-400 (incomplete), 1-100, 101-200, 201-300.
    """
    directory = tmp_path / "logs"
    directory.mkdir()
    write_log(directory, "run_1-100.log", build_run_log(), BASE_MTIME + 100)
    write_log(
        directory,
        "run_101-200.log",
        build_run_log(
            a_range="101-200",
            start=datetime(2025, 7, 2, 9, 0, 0),
            end=datetime(2025, 7, 2, 11, 0, 0),
            checked=20_000_000_000,
            seconds=7200.0,
            throughput="2777777",
            tuples=((101, 2, 2, 8), (150, 4, 6, 10)),
        ),
        BASE_MTIME + 50,
    )
    write_log(
        directory,
        "run_201-300.log",
        build_run_log(
            a_range="201-300",
            start=datetime(2025, 7, 3, 8, 0, 0),
            end=datetime(2025, 7, 3, 8, 30, 0),
            checked=5_000,
            seconds=1800.0,
            throughput="2",
            tuples=(),
        ),
        BASE_MTIME + 10,
    )
    write_log(
        directory,
        "run_301-400.log",
        build_run_log(a_range="301-400", end=None, terminal=False),
        BASE_MTIME + 200,
    )
    return directory


@pytest.fixture
def settings(logs_dir: Path) -> Settings:
    return load_settings(
        logs_path=logs_dir,
        seed_sample_log=False,
        watch_enabled=False,
        log_format="text",
    )


# === FIXTURES: Domain records ===


@pytest.fixture
def make_batch() -> Callable[..., Batch]:
    def _make(
        token: str = "1-100",
        found: int | None = 1,
        start: datetime = datetime(2025, 7, 1, 10, 0, 0),
        end: datetime | None = None,
        rps: int | None = 1000,
    ) -> Batch:
        return Batch(
            id=f"batch_{token}_1",
            timestamp=start,
            start_time=start,
            end_time=end or start,
            duration=0.0,
            parameters=BatchParameters(a_range=token, checked=100, found=found, rps=rps),
            log_file=f"run_{token}.log",
        )

    return _make


@pytest.fixture
def make_solution() -> Callable[..., Solution]:
    def _make(
        params: tuple[int, int, int, int] = (17, 21, 29, 33),
        token: str = "1-100",
        cubes_count: int = 1,
        timestamp: datetime | None = datetime(2025, 7, 1, 10, 1, 45),
    ) -> Solution:
        dups = duplicate_count(params)
        a, b, c, d = params
        return Solution(
            id=f"solution_{token}_{a}_{b}_{c}_{d}",
            batch_id=f"batch_{token}_1",
            batch_range=token,
            timestamp=timestamp,
            cubes_count=cubes_count,
            a=a, b=b, c=c, d=d,
            cube_value=cube_value(*params),
            sorted_params=sorted(params),
            duplicate_count=dups,
            is_unique=dups == 0,
            log_file=f"run_{token}.log",
            raw_line=f"({a}, {b}, {c}, {d})",
        )

    return _make
