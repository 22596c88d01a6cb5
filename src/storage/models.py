# src/storage/models.py - v1
"""Storage models: UploadResult, SearchState."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UploadResult(BaseModel):
    """Outcome of storing one uploaded run-log."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    file_path: str
    size_bytes: int
    summary_line: str | None = None


class SearchState(BaseModel):
    """Progress record written by the external search program.

    Unknown keys are kept so the endpoint returns the state unchanged.
    """

    model_config = ConfigDict(extra="allow")

    next_a: int = 0
    complete: bool = False
