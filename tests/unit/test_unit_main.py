# tests/unit/test_unit_main.py - v1
"""Tests for main.py - CLI argument parsing and commands."""

from __future__ import annotations

import csv
import io
import json

import pytest

from primedash.main import _build_parser, main


class TestParser:
    def test_serve_options(self):
        args = _build_parser().parse_args(["serve", "--port", "8080", "--no-watch"])
        assert args.command == "serve"
        assert args.port == 8080
        assert args.no_watch is True

    def test_list_options(self):
        args = _build_parser().parse_args(
            ["--logs-path", "/tmp/x", "solutions", "--batch-range", "1-100", "--limit", "3", "--json"]
        )
        assert str(args.logs_path) == "/tmp/x"
        assert args.batch_range == "1-100"
        assert args.limit == 3
        assert args.as_json is True

    def test_export_kind_choices(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["export", "jobs"])

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()


class TestCommands:
    def test_batches_json(self, logs_dir, capsys):
        assert main(["--logs-path", str(logs_dir), "batches", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [b["parameters"]["a_range"] for b in data] == ["1-100", "101-200", "201-300"]

    def test_solutions_table(self, logs_dir, capsys):
        assert main(["--logs-path", str(logs_dir), "solutions", "--batch-range", "101-200"]) == 0
        out = capsys.readouterr().out
        assert "2 solutions" in out
        assert "101-200" in out

    def test_parse(self, logs_dir, capsys):
        assert main(["parse", str(logs_dir / "run_101-200.log")]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["solution_count"] == 2
        assert info["a_range"] == "101-200"

    def test_parse_incomplete(self, logs_dir):
        assert main(["parse", str(logs_dir / "run_301-400.log")]) == 1

    def test_parse_missing(self, tmp_path):
        assert main(["parse", str(tmp_path / "absent.log")]) == 1

    def test_export_to_file(self, logs_dir, tmp_path):
        out = tmp_path / "out" / "solutions.csv"
        assert main(["--logs-path", str(logs_dir), "export", "solutions", "-o", str(out)]) == 0
        rows = list(csv.DictReader(io.StringIO(out.read_text(encoding="utf-8"))))
        assert len(rows) == 3
