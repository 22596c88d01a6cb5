# tests/unit/parsing/test_unit_bottom_up.py - v1
"""Tests for parsing/bottom_up.py - bottom-up run-log parser."""

from __future__ import annotations

from datetime import datetime

import pytest

from primedash.parsing.bottom_up import (
    parse_log_file_from_bottom,
    parse_log_text_from_bottom,
)


class TestParseText:
    def test_complete_log(self, make_run_log):
        info = parse_log_text_from_bottom(make_run_log())
        assert info is not None
        assert info.solution_count == 1
        assert [s.as_tuple() for s in info.solutions] == [(17, 21, 29, 33)]
        assert info.throughput == 95_028_984
        assert info.total_combinations == 10_000_000_000
        assert info.duration == pytest.approx(105.23)
        assert info.start_time == datetime(2025, 7, 1, 10, 0, 0)
        assert info.end_time == datetime(2025, 7, 1, 10, 1, 45)
        assert info.mode == "parallel"
        assert info.threads == 12
        assert info.a_range == "1-100"

    def test_line_numbers_are_one_based(self, make_run_log):
        text = make_run_log(tuples=((1, 2, 3, 4), (5, 6, 7, 8)))
        info = parse_log_text_from_bottom(text)
        lines = text.splitlines()
        for s in info.solutions:
            assert lines[s.line_number - 1] == s.raw_line

    def test_no_cubes(self, make_run_log):
        info = parse_log_text_from_bottom(make_run_log(tuples=()))
        assert info.solution_count == 0
        assert info.solutions == []

    def test_no_terminal_line(self, make_run_log):
        assert parse_log_text_from_bottom(make_run_log(terminal=False)) is None

    def test_empty_and_blank(self):
        assert parse_log_text_from_bottom("") is None
        assert parse_log_text_from_bottom("\n\n   \n") is None

    def test_terminal_within_search_window(self, make_run_log):
        text = make_run_log() + "\n".join(["trailing noise"] * 5) + "\n"
        assert parse_log_text_from_bottom(text) is not None

    def test_terminal_beyond_search_window(self, make_run_log):
        text = make_run_log() + "\n".join(["trailing noise"] * 6) + "\n"
        assert parse_log_text_from_bottom(text) is None

    def test_reported_count_kept_when_tuples_disagree(self, make_run_log):
        info = parse_log_text_from_bottom(make_run_log(found=5))
        assert info.solution_count == 5
        assert len(info.solutions) == 1

    def test_missing_metadata_defaults(self, make_run_log):
        text = make_run_log(start=None, end=None, throughput=None, mode=None, threads=None)
        info = parse_log_text_from_bottom(text)
        assert info.throughput == 0
        assert info.total_combinations == 0
        assert info.duration == 0.0
        assert info.start_time is None
        assert info.end_time is None
        assert info.mode is None

    def test_bottom_most_metadata_wins(self, make_run_log):
        text = make_run_log().replace(
            "Throughput: 95,028,984 checks/second",
            "Throughput: 1 checks/second\nThroughput: 2 checks/second",
        )
        assert parse_log_text_from_bottom(text).throughput == 2

    def test_start_banner_stops_scan(self, make_run_log):
        earlier = make_run_log(a_range="900-999", tuples=((9, 9, 9, 9),))
        info = parse_log_text_from_bottom(earlier + make_run_log())
        assert info.a_range == "1-100"
        assert [s.as_tuple() for s in info.solutions] == [(17, 21, 29, 33)]

    def test_throughput_verbatim(self, make_run_log):
        info = parse_log_text_from_bottom(make_run_log(throughput="42"))
        assert info.throughput == 42

    @pytest.mark.parametrize("throughput", [",", ",,,", "n/a"])
    def test_malformed_throughput_ignored(self, make_run_log, throughput):
        info = parse_log_text_from_bottom(make_run_log(throughput=throughput))
        assert info is not None
        assert info.throughput == 0
        assert info.solution_count == 1


class TestParseFile:
    @pytest.mark.asyncio
    async def test_reads_file(self, tmp_path, make_run_log):
        path = tmp_path / "run_1-100.log"
        path.write_text(make_run_log(), encoding="utf-8")
        info = await parse_log_file_from_bottom(path)
        assert info.solution_count == 1

    @pytest.mark.asyncio
    async def test_missing_file_returns_none(self, tmp_path):
        assert await parse_log_file_from_bottom(tmp_path / "run_x.log") is None

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_replaced(self, tmp_path, make_run_log):
        path = tmp_path / "run_1-100.log"
        path.write_bytes(b"\xff\xfe garbage\n" + make_run_log().encode("utf-8"))
        info = await parse_log_file_from_bottom(path)
        assert info is not None

    @pytest.mark.asyncio
    async def test_value_error_in_parse_returns_none(self, tmp_path, make_run_log, monkeypatch):
        import primedash.parsing.bottom_up as bottom_up

        def broken(text):
            raise ValueError("bad count")

        monkeypatch.setattr(bottom_up, "parse_log_text_from_bottom", broken)
        path = tmp_path / "run_1-100.log"
        path.write_text(make_run_log(), encoding="utf-8")
        assert await parse_log_file_from_bottom(path) is None
