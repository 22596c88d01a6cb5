# src/logging/context.py - v1
"""Contextual logging support: attach request_id, route and log_file to records.

The HTTP layer sets the request context once per request; the run-log
parser sets ``log_file`` while it works on a file, so diagnostics about a
skipped or malformed log can be traced back to both.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_route: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "route", default=None
)
_log_file: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "log_file", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    route: str | None = None
    log_file: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        route=_route.get(),
        log_file=_log_file.get(),
    )


def set_request_context(request_id: str, route: str | None = None) -> None:
    """Set request-level context (called once per HTTP request)."""
    _request_id.set(request_id)
    _route.set(route)


def set_log_file_context(log_file: str | None) -> contextvars.Token[str | None]:
    """Set the run-log currently being parsed. Returns a reset token."""
    return _log_file.set(log_file)


def reset_log_file_context(token: contextvars.Token[str | None]) -> None:
    _log_file.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _route.set(None)
    _log_file.set(None)
