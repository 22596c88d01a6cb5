# src/storage/uploads.py - v1
"""Store uploaded run-logs in the logs directory.

The caller invalidates the snapshot cache after a successful upload; this
module only writes files.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath, PureWindowsPath

import aiofiles
import aiofiles.os

from primedash.core.models import LogFileInfo
from primedash.parsing.bottom_up import parse_log_text_from_bottom
from primedash.parsing.grammar import (
    SUMMARY_LOG_NAME,
    format_summary_line,
    range_token_from_filename,
)
from primedash.parsing.summary_log import append_summary_line
from primedash.storage.models import UploadResult

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Base class for rejected uploads."""


class InvalidUploadError(UploadError):
    """Missing data, bad file name, or content over the size limit."""


class UploadConflictError(UploadError):
    """A log file with the same name already exists."""


class UploadTooLargeError(InvalidUploadError):
    """Content exceeds the configured upload size limit."""


def validate_file_name(file_name: str) -> str:
    """Accept only plain ``*.log`` basenames.

    Raises:
        InvalidUploadError: For empty names, directory parts, or other suffixes.
    """
    name = (file_name or "").strip()
    if not name:
        raise InvalidUploadError("fileName is required")
    if (
        PurePosixPath(name).name != name
        or PureWindowsPath(name).name != name
        or name in {".", ".."}
    ):
        raise InvalidUploadError(f"fileName must be a plain file name: {file_name!r}")
    if not name.endswith(".log") or name == SUMMARY_LOG_NAME:
        raise InvalidUploadError(f"fileName must be a run-log (*.log): {file_name!r}")
    return name


def summary_line_for(info: LogFileInfo, file_name: str) -> str | None:
    """Summary line for an uploaded run-log, or None if it lacks a range or time."""
    a_range = info.a_range or range_token_from_filename(file_name)
    stamp = info.end_time or info.start_time
    if a_range is None or stamp is None:
        return None
    elapsed = info.duration
    rps = int(info.total_combinations // elapsed) if elapsed > 0 else 0
    return format_summary_line(
        timestamp=stamp,
        a_range=a_range,
        checked=info.total_combinations,
        found=info.solution_count,
        elapsed=elapsed,
        rps=rps,
    )


async def store_uploaded_log(
    logs_path: Path,
    file_name: str,
    content: str,
    append_summary: bool = True,
    max_bytes: int | None = None,
) -> UploadResult:
    """Write an uploaded run-log and optionally record it in ``summary.log``.

    Args:
        logs_path: Target logs directory (created when missing).
        file_name: Client-supplied file name.
        content: Full log text.
        append_summary: Append a summary line computed from the content.
        max_bytes: Reject content larger than this many UTF-8 bytes.

    Raises:
        InvalidUploadError: If the name or content is rejected.
        UploadTooLargeError: If the content exceeds ``max_bytes``.
        UploadConflictError: If a file with that name already exists.
    """
    name = validate_file_name(file_name)
    if not content:
        raise InvalidUploadError("fileContent is required")
    data = content.encode("utf-8")
    if max_bytes is not None and len(data) > max_bytes:
        raise UploadTooLargeError(
            f"fileContent exceeds {max_bytes} bytes ({len(data)} bytes)"
        )

    await aiofiles.os.makedirs(logs_path, exist_ok=True)
    target = logs_path / name
    try:
        async with aiofiles.open(target, "xb") as f:
            await f.write(data)
    except FileExistsError as exc:
        raise UploadConflictError(
            f'A batch log with the name "{name}" already exists'
        ) from exc
    logger.info("Stored uploaded log %s (%d bytes)", name, len(data))

    summary_line: str | None = None
    if append_summary:
        info = parse_log_text_from_bottom(content)
        summary_line = summary_line_for(info, name) if info is not None else None
        if summary_line is None:
            logger.warning("Uploaded log %s has no usable summary data", name)
        else:
            try:
                await append_summary_line(logs_path / SUMMARY_LOG_NAME, summary_line)
            except OSError as exc:
                # The upload itself succeeded; the summary entry is best effort
                logger.error("Cannot append to %s: %s", SUMMARY_LOG_NAME, exc)
                summary_line = None

    return UploadResult(
        file_name=name,
        file_path=str(target),
        size_bytes=len(data),
        summary_line=summary_line,
    )
