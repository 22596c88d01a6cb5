# src/core/records.py - v1
"""Flat views of domain records, shared by CSV export and field sorting."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel


def flatten_record(
    record: BaseModel,
    mode: Literal["python", "json"] = "python",
) -> dict[str, Any]:
    """Flatten a model into ``{"field": value, "parent.child": value}``.

    Nested models/dicts are joined with dots; key order follows the model's
    field order so the first record of a stream fixes the CSV header.
    """
    flat: dict[str, Any] = {}
    _flatten_into(flat, "", record.model_dump(mode=mode))
    return flat


def _flatten_into(flat: dict[str, Any], prefix: str, data: dict[str, Any]) -> None:
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            _flatten_into(flat, f"{name}.", value)
        else:
            flat[name] = value


def resolve_field(flat: dict[str, Any], field: str) -> tuple[bool, Any]:
    """Look up a sort/filter field in a flattened record.

    Bare names fall back to ``parameters.<name>`` so ``found`` and
    ``parameters.found`` both work for batches.
    """
    if field in flat:
        return True, flat[field]
    nested = f"parameters.{field}"
    if nested in flat:
        return True, flat[nested]
    return False, None
