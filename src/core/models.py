# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.

Two families live here:
  * parser outputs (``SolutionTuple``, ``LogFileInfo``, ``SummaryRecord``),
    the raw structured view of one run-log or one summary line;
  * domain entities (``Batch``, ``Solution``), built from the parser
    outputs by ``parsing.materializer`` and served to HTTP clients.

All of them are frozen: a parse pass builds them once and nobody mutates
them afterwards.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

BatchStatus = Literal["running", "completed", "failed"]


# === PARSER OUTPUTS ===


class SolutionTuple(BaseModel):
    """One ``(a, b, c, d)`` tuple as it appears in a run-log."""

    model_config = ConfigDict(frozen=True)

    a: int = Field(ge=0)
    b: int = Field(ge=0)
    c: int = Field(ge=0)
    d: int = Field(ge=0)
    line_number: int | None = None  # 1-based position in the file
    raw_line: str = ""

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.a, self.b, self.c, self.d)


class LogFileInfo(BaseModel):
    """Structured content of one run-log, produced by the bottom-up parser.

    ``solutions`` is in the order the parser met the tuples (bottom-up, so
    the reverse of file order); callers must not rely on it.
    """

    model_config = ConfigDict(frozen=True)

    solution_count: int = Field(default=0, ge=0)
    solutions: list[SolutionTuple] = Field(default_factory=list)
    throughput: int = Field(default=0, ge=0)
    total_combinations: int = Field(default=0, ge=0)
    duration: float = Field(default=0.0, ge=0)
    start_time: datetime | None = None
    end_time: datetime | None = None
    mode: str | None = None
    threads: int | None = None
    a_range: str | None = None  # from the start banner, when present


class SummaryRecord(BaseModel):
    """One line of the legacy ``summary.log``."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    a_range: str
    checked: int | None = None
    found: int | None = None
    elapsed: float | None = None
    rps: int | None = None
    summary: str


# === DOMAIN ENTITIES ===


class BatchParameters(BaseModel):
    """Free-form-ish batch parameters reported by the search program."""

    model_config = ConfigDict(frozen=True)

    a_range: str
    checked: int | None = None
    found: int | None = None
    rps: int | None = None
    mode: str | None = None
    threads: int | None = None


class Batch(BaseModel):
    """One execution of the search program over a sub-range of ``a``."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime | None = None
    status: BatchStatus = "completed"
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: float | None = None
    parameters: BatchParameters
    log_file: str
    summary: str | None = None

    @model_validator(mode="after")
    def validate_timeline(self) -> Batch:
        if (
            self.start_time is not None
            and self.end_time is not None
            and self.end_time < self.start_time
        ):
            raise ValueError("end_time must not precede start_time")
        if self.status == "completed" and (
            self.start_time is None or self.end_time is None
        ):
            raise ValueError("completed batch requires start_time and end_time")
        return self

    @property
    def range_token(self) -> str:
        return self.parameters.a_range


class Solution(BaseModel):
    """A parameter tuple whose 27 derived values are all prime."""

    model_config = ConfigDict(frozen=True)

    id: str
    batch_id: str
    batch_range: str
    timestamp: datetime | None = None
    cubes_count: int = Field(ge=0)
    a: int
    b: int
    c: int
    d: int
    cube_value: int
    sorted_params: list[int]
    duplicate_count: int = Field(ge=0, le=3)
    is_unique: bool
    log_file: str
    line_number: int | None = None
    raw_line: str

    @model_validator(mode="after")
    def validate_uniqueness(self) -> Solution:
        if self.is_unique != (self.duplicate_count == 0):
            raise ValueError("is_unique must equal duplicate_count == 0")
        return self

    @property
    def parameters(self) -> tuple[int, int, int, int]:
        return (self.a, self.b, self.c, self.d)
