# tests/unit/core/test_unit_models.py - v1
"""Tests for core/models.py - domain invariants."""

from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import ValidationError

from primedash.core.models import Batch, BatchParameters, SolutionTuple


class TestBatch:
    def test_range_token(self, make_batch):
        assert make_batch(token="5000-5049").range_token == "5000-5049"

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError, match="end_time"):
            Batch(
                id="b",
                timestamp=datetime(2025, 1, 2),
                start_time=datetime(2025, 1, 2),
                end_time=datetime(2025, 1, 1),
                parameters=BatchParameters(a_range="1-2"),
                log_file="run_1-2.log",
            )

    def test_completed_requires_times(self):
        with pytest.raises(ValidationError, match="completed"):
            Batch(id="b", parameters=BatchParameters(a_range="1-2"), log_file="x.log")

    def test_running_batch_without_end(self):
        batch = Batch(
            id="b",
            status="running",
            start_time=datetime(2025, 1, 1),
            parameters=BatchParameters(a_range="1-2"),
            log_file="run_1-2.log",
        )
        assert batch.end_time is None

    def test_frozen(self, make_batch):
        with pytest.raises(ValidationError):
            make_batch().log_file = "other.log"


class TestSolution:
    def test_uniqueness_consistent(self, make_solution):
        s = make_solution((3, 3, 5, 7))
        assert s.duplicate_count == 1
        assert s.is_unique is False

    def test_inconsistent_uniqueness_rejected(self, make_solution):
        data = make_solution().model_dump()
        data["is_unique"] = False
        with pytest.raises(ValidationError, match="is_unique"):
            type(make_solution())(**data)

    def test_parameters_tuple(self, make_solution):
        assert make_solution((1, 2, 3, 4)).parameters == (1, 2, 3, 4)

    def test_large_cube_value_exact(self, make_solution):
        s = make_solution((10**6, 10**6, 10**6, 10**6 + 1))
        assert s.cube_value == 3 * 10**18 + (10**6 + 1) ** 3


class TestSolutionTuple:
    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            SolutionTuple(a=-1, b=1, c=1, d=1)

    def test_as_tuple(self):
        assert SolutionTuple(a=1, b=2, c=3, d=4).as_tuple() == (1, 2, 3, 4)
