# src/logging/logger.py - v1
"""Console/file logging setup with JSON and text formatters.

Every module logs through ``logging.getLogger(__name__)``; records under
the ``primedash`` namespace are routed by ``setup_logging``. Request and
run-log context from ``logging.context`` is attached to each line.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any

from primedash.logging.context import get_context

ROOT_LOGGER_NAME = "primedash"

# Chatty at DEBUG: one record per inotify event
_QUIET_LOGGERS = ("watchdog", "aiofiles")


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "timestamp": datetime.fromtimestamp(record.created).astimezone().isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    context = get_context().as_dict()
    if context:
        fields["context"] = context
    data = getattr(record, "data", None)
    if data:
        fields["data"] = data
    return fields


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        fields = _record_fields(record)
        if record.exc_info and record.exc_info[1] is not None:
            fields["exception"] = self.formatException(record.exc_info)
        return json.dumps(fields, default=str)


class TextFormatter(logging.Formatter):
    """``time [LEVEL] logger [request] route (run-log) - message``."""

    def format(self, record: logging.LogRecord) -> str:
        fields = _record_fields(record)
        context = fields.get("context", {})
        stamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        parts = [stamp, f"[{record.levelname:8s}]", record.name]
        if "request_id" in context:
            parts.append(f"[{context['request_id']}]")
        if "route" in context:
            parts.append(context["route"])
        if "log_file" in context:
            parts.append(f"({context['log_file']})")
        parts.append(f"- {fields['message']}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
    stream=None,
) -> None:
    """Route ``primedash.*`` records to the console and optionally a file.

    Calling it again replaces the previous handlers.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" or "text".
        log_file: Rotating log file; console only when None.
        rotation: Size at which the file rotates, e.g. "10MB".
        retention: Rotated files kept.
        stream: Console stream (stdout when None).
    """
    formatter: logging.Formatter = (
        JsonFormatter() if log_format == "json" else TextFormatter()
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if log_file:
        from primedash.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(log_file, rotation=rotation, retention=retention)
        )

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for old in root.handlers[:]:
        root.removeHandler(old)
        if isinstance(old, logging.FileHandler):
            old.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_settings(settings, stream=None) -> None:
    """Apply the ``log_*`` fields of Settings."""
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=stream,
    )
