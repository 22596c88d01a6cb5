# src/server/params.py - v1
"""Translate query-string parameters into a RecordQuery."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from fastapi import HTTPException, Query, Request
from pydantic import ValidationError

from primedash.query.models import (
    FilterCriteria,
    PageCriteria,
    ParameterBounds,
    RecordQuery,
    SortCriteria,
)


def _bounds(low: int | None, high: int | None) -> ParameterBounds | None:
    if low is None and high is None:
        return None
    return ParameterBounds(minimum=low, maximum=high)


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def record_query(
    request: Request,
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    batch_range: str | None = Query(None),
    batch_range_camel: str | None = Query(None, alias="batchRange"),
    date_from_camel: datetime | None = Query(None, alias="dateFrom"),
    date_to_camel: datetime | None = Query(None, alias="dateTo"),
    start_date_camel: datetime | None = Query(None, alias="startDate"),
    end_date_camel: datetime | None = Query(None, alias="endDate"),
    min_solutions: int | None = Query(None, ge=0),
    max_solutions: int | None = Query(None, ge=0),
    min_solutions_camel: int | None = Query(None, ge=0, alias="minSolutions"),
    max_solutions_camel: int | None = Query(None, ge=0, alias="maxSolutions"),
    a_min: int | None = Query(None),
    a_max: int | None = Query(None),
    b_min: int | None = Query(None),
    b_max: int | None = Query(None),
    c_min: int | None = Query(None),
    c_max: int | None = Query(None),
    d_min: int | None = Query(None),
    d_max: int | None = Query(None),
    offset: int | None = Query(None, ge=0),
    page: int | None = Query(None, ge=1),
    limit: int | None = Query(None, ge=1),
    sort_by: str | None = Query(None),
    sort_order: Literal["asc", "desc"] | None = Query(None),
    sort_by_camel: str | None = Query(None, alias="sortBy"),
    sort_order_camel: Literal["asc", "desc"] | None = Query(None, alias="sortOrder"),
) -> RecordQuery:
    """FastAPI dependency.

    ``start_date``/``end_date`` are aliases of the date bounds. Each name is
    also accepted in the dashboard client's camelCase (``batchRange``,
    ``dateFrom``, ``sortBy``, ...); the snake_case value wins when both are sent.
    """
    settings = request.app.state.settings
    sort_field = _first(sort_by, sort_by_camel)
    order = _first(sort_order, sort_order_camel) or "asc"
    if limit is not None and limit > settings.max_page_limit:
        raise HTTPException(
            status_code=400,
            detail=f"limit must be <= {settings.max_page_limit}",
        )

    bounds = {
        name: b
        for name, b in (
            ("a", _bounds(a_min, a_max)),
            ("b", _bounds(b_min, b_max)),
            ("c", _bounds(c_min, c_max)),
            ("d", _bounds(d_min, d_max)),
        )
        if b is not None
    }
    try:
        return RecordQuery(
            filter=FilterCriteria(
                date_from=_first(date_from, date_from_camel, start_date, start_date_camel),
                date_to=_first(date_to, date_to_camel, end_date, end_date_camel),
                batch_range=_first(batch_range, batch_range_camel) or None,
                min_solutions=_first(min_solutions, min_solutions_camel),
                max_solutions=_first(max_solutions, max_solutions_camel),
                parameter_bounds=bounds,
            ),
            page=PageCriteria(offset=offset, page=page, limit=limit),
            sort=SortCriteria(field=sort_field, order=order) if sort_field else None,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
