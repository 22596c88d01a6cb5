# tests/unit/batch/test_unit_scanner.py - v1
"""Tests for batch/scanner.py - discovery, ordering, lazy materialization."""

from __future__ import annotations

import pytest

from primedash.batch.scanner import SAMPLE_RANGE_TOKEN, LogDirectoryScanner

BASE_MTIME = 1_750_000_000.0


def _scanner(path, **kwargs) -> LogDirectoryScanner:
    kwargs.setdefault("seed_sample_log", False)
    return LogDirectoryScanner(path, **kwargs)


class TestEnsureDirectory:
    @pytest.mark.asyncio
    async def test_creates_and_seeds(self, tmp_path):
        scanner = LogDirectoryScanner(tmp_path / "new", seed_sample_log=True)
        assert await scanner.ensure_directory() is True
        sample = tmp_path / "new" / f"run_{SAMPLE_RANGE_TOKEN}.log"
        assert sample.exists()
        batches = await scanner.scan_batches()
        assert [b.range_token for b in batches] == [SAMPLE_RANGE_TOKEN]
        assert batches[0].parameters.found == 1

    @pytest.mark.asyncio
    async def test_creates_without_seed(self, tmp_path):
        scanner = _scanner(tmp_path / "empty")
        assert await scanner.ensure_directory() is True
        assert await scanner.scan_batches() == []

    @pytest.mark.asyncio
    async def test_existing_directory(self, logs_dir):
        assert await _scanner(logs_dir).ensure_directory() is False


class TestListRunLogs:
    @pytest.mark.asyncio
    async def test_newest_first(self, logs_dir):
        entries = await _scanner(logs_dir).list_run_logs()
        assert [e.range_token for e in entries] == [
            "301-400", "1-100", "101-200", "201-300",
        ]
        assert entries[1].mtime == BASE_MTIME + 100

    @pytest.mark.asyncio
    async def test_ignores_other_files(self, logs_dir):
        (logs_dir / "notes.txt").write_text("x")
        (logs_dir / "summary.log").write_text("")
        (logs_dir / "run_dir.log").mkdir()
        entries = await _scanner(logs_dir).list_run_logs()
        assert "dir" not in {e.range_token for e in entries}
        assert len(entries) == 4

    @pytest.mark.asyncio
    async def test_equal_mtime_ordered_by_name(self, tmp_path, write_run_log, make_run_log):
        for token in ("b-2", "a-1"):
            write_run_log(tmp_path, f"run_{token}.log", make_run_log(), BASE_MTIME)
        entries = await _scanner(tmp_path).list_run_logs()
        assert [e.filename for e in entries] == ["run_a-1.log", "run_b-2.log"]


class TestIterBatches:
    @pytest.mark.asyncio
    async def test_skips_incomplete(self, logs_dir):
        batches = await _scanner(logs_dir).scan_batches()
        assert [b.range_token for b in batches] == ["1-100", "101-200", "201-300"]
        assert all(b.status == "completed" for b in batches)

    @pytest.mark.asyncio
    async def test_summary_only_batches_appended(self, logs_dir):
        (logs_dir / "summary.log").write_text(
            "2025-06-01 10:00 a_range=1-100 checked=1 found=9 elapsed=1.00s rps=1\n"
            "2025-06-02 10:00 a_range=900-999 checked=7 found=0 elapsed=1.00s rps=7\n"
            "2025-06-03 10:00 a_range=900-999 checked=8 found=0 elapsed=1.00s rps=8\n",
            encoding="utf-8",
        )
        batches = await _scanner(logs_dir).scan_batches()
        assert [b.range_token for b in batches] == [
            "1-100", "101-200", "201-300", "900-999",
        ]
        assert batches[0].parameters.found == 1
        assert batches[-1].parameters.checked == 7

    @pytest.mark.asyncio
    async def test_summary_disabled(self, logs_dir):
        (logs_dir / "summary.log").write_text("2025-06-02 a_range=900-999\n")
        batches = await _scanner(logs_dir, summary_log_enabled=False).scan_batches()
        assert "900-999" not in {b.range_token for b in batches}

    @pytest.mark.asyncio
    async def test_malformed_file_does_not_hide_others(self, tmp_path, make_run_log, write_run_log):
        write_run_log(tmp_path, "run_1-100.log", make_run_log(), BASE_MTIME + 10)
        write_run_log(
            tmp_path, "run_101-200.log", make_run_log(a_range="101-200", throughput=","), BASE_MTIME,
        )
        batches = await _scanner(tmp_path).scan_batches()
        assert [b.range_token for b in batches] == ["1-100", "101-200"]

    @pytest.mark.asyncio
    async def test_parse_error_skips_only_that_file(self, tmp_path, make_run_log, write_run_log, monkeypatch):
        import primedash.parsing.bottom_up as bottom_up

        original = bottom_up.parse_log_text_from_bottom

        def fragile(text):
            if "a∈[101,200]" in text:
                raise ValueError("bad count")
            return original(text)

        monkeypatch.setattr(bottom_up, "parse_log_text_from_bottom", fragile)
        write_run_log(tmp_path, "run_1-100.log", make_run_log(), BASE_MTIME + 10)
        write_run_log(tmp_path, "run_101-200.log", make_run_log(a_range="101-200"), BASE_MTIME)
        batches = await _scanner(tmp_path).scan_batches()
        assert [b.range_token for b in batches] == ["1-100"]


class TestIterSolutions:
    @pytest.mark.asyncio
    async def test_all_solutions(self, logs_dir):
        solutions = await _scanner(logs_dir).scan_solutions()
        assert [s.batch_range for s in solutions] == ["1-100", "101-200", "101-200"]
        assert {s.parameters for s in solutions if s.batch_range == "101-200"} == {
            (101, 2, 2, 8), (150, 4, 6, 10),
        }

    @pytest.mark.asyncio
    async def test_range_restricts_scan(self, logs_dir):
        solutions = [s async for s in _scanner(logs_dir).iter_solutions("101-200")]
        assert len(solutions) == 2
        assert all(s.cubes_count == 2 for s in solutions)

    @pytest.mark.asyncio
    async def test_restartable(self, logs_dir):
        scanner = _scanner(logs_dir)
        first = [s.parameters async for s in scanner.iter_solutions()]
        second = [s.parameters async for s in scanner.iter_solutions()]
        assert first == second

    @pytest.mark.asyncio
    async def test_closing_stops_parsing(self, logs_dir, monkeypatch):
        import primedash.batch.scanner as scanner_mod

        parsed: list[str] = []
        original = scanner_mod.parse_log_file_from_bottom

        async def spy(path):
            parsed.append(path.name)
            return await original(path)

        monkeypatch.setattr(scanner_mod, "parse_log_file_from_bottom", spy)
        gen = _scanner(logs_dir).iter_solutions()
        first = await gen.__anext__()
        await gen.aclose()
        assert first.batch_range == "1-100"
        assert parsed == ["run_301-400.log", "run_1-100.log"]
