# src/server/schemas.py - v1
"""HTTP request bodies and response envelopes."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConfigUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    logs_path: str = Field(alias="logsPath", min_length=1)


class UploadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(default="", alias="fileName")
    file_content: str = Field(default="", alias="fileContent")


def now_stamp() -> str:
    """Local time without timezone, like the log timestamps."""
    return datetime.now().isoformat(timespec="seconds")


def success_envelope(data: Any = None, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    body["timestamp"] = now_stamp()
    return body


def error_envelope(error: str, message: str) -> dict[str, Any]:
    return {
        "success": False,
        "error": error,
        "message": message,
        "timestamp": now_stamp(),
    }
