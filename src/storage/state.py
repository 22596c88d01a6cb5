# src/storage/state.py - v1
"""Read the search program's JSON-lines state file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import aiofiles
from pydantic import ValidationError

from primedash.storage.models import SearchState

logger = logging.getLogger(__name__)


async def read_search_state(path: Path | None) -> SearchState:
    """Return the last non-empty line of ``path`` as a SearchState.

    Missing files, unreadable files and invalid JSON give the default
    ``{"next_a": 0, "complete": false}``.
    """
    if path is None:
        return SearchState()

    last_line = ""
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            async for line in f:
                if line.strip():
                    last_line = line
    except OSError as exc:
        logger.warning("State file %s not readable: %s", path, exc)
        return SearchState()

    if not last_line:
        return SearchState()
    try:
        data = json.loads(last_line)
        if not isinstance(data, dict):
            raise ValueError("state line is not a JSON object")
        return SearchState(**data)
    except (ValueError, ValidationError) as exc:
        logger.warning("Invalid state in %s: %s", path, exc)
        return SearchState()
