# src/batch/models.py - v1
"""Directory scan models: RunLogEntry, ParsedRunLog."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from primedash.core.models import LogFileInfo


class RunLogEntry(BaseModel):
    """A single ``run_<token>.log`` discovered during a directory scan."""

    model_config = ConfigDict(frozen=True)

    file_path: str
    filename: str
    range_token: str
    size_bytes: int
    mtime: float

    @property
    def modified_at(self) -> datetime:
        return datetime.fromtimestamp(self.mtime)


@dataclass(frozen=True)
class ParsedRunLog:
    """A scanned entry together with its bottom-up parse result."""

    entry: RunLogEntry
    info: LogFileInfo
