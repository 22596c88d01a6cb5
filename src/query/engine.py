# src/query/engine.py - v1
"""Filter, sort and paginate batches and solutions.

Fixed order of application: predicate filter -> sort -> offset -> limit.
Without a sort the input order (newest run-log first) is kept.

``apply_query`` works on materialized sequences; ``aiter_query`` applies the
same rules to an async iterator and stays lazy unless a sort is requested,
in which case the filtered records have to be collected first.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator, Iterable
from typing import Any, TypeVar, get_origin

from pydantic import BaseModel

from primedash.core.models import Batch, Solution
from primedash.core.records import flatten_record, resolve_field
from primedash.query.models import (
    DEFAULT_PAGE_LIMIT,
    FilterCriteria,
    InvalidQueryError,
    RecordQuery,
    SortCriteria,
)

RecordT = TypeVar("RecordT", Batch, Solution)


# --- Predicates ---


def _in_date_range(record: Batch | Solution, criteria: FilterCriteria) -> bool:
    if not criteria.has_date_bounds:
        return True
    ts = record.timestamp
    if ts is None:
        return False
    if criteria.date_from is not None and ts < criteria.date_from:
        return False
    if criteria.date_to is not None and ts > criteria.date_to:
        return False
    return True


def _in_count_range(count: int | None, criteria: FilterCriteria) -> bool:
    if criteria.min_solutions is None and criteria.max_solutions is None:
        return True
    if count is None:
        return False
    if criteria.min_solutions is not None and count < criteria.min_solutions:
        return False
    if criteria.max_solutions is not None and count > criteria.max_solutions:
        return False
    return True


def batch_matches(batch: Batch, criteria: FilterCriteria) -> bool:
    if not _in_date_range(batch, criteria):
        return False
    if criteria.batch_range is not None and batch.range_token != criteria.batch_range:
        return False
    return _in_count_range(batch.parameters.found, criteria)


def solution_matches(solution: Solution, criteria: FilterCriteria) -> bool:
    if not _in_date_range(solution, criteria):
        return False
    if criteria.batch_range is not None and solution.batch_range != criteria.batch_range:
        return False
    if not _in_count_range(solution.cubes_count, criteria):
        return False
    for name, bounds in criteria.parameter_bounds.items():
        if not bounds.contains(getattr(solution, name)):
            return False
    return True


def matches(record: Batch | Solution, criteria: FilterCriteria) -> bool:
    if isinstance(record, Solution):
        return solution_matches(record, criteria)
    return batch_matches(record, criteria)


# --- Sorting ---


def sortable_fields(model_cls: type[BaseModel], prefix: str = "") -> set[str]:
    """Flattened field names of a model (``parameters.found``, ``a``, ...)."""
    names: set[str] = set()
    for name, info in model_cls.model_fields.items():
        annotation = info.annotation
        if (
            get_origin(annotation) is None
            and isinstance(annotation, type)
            and issubclass(annotation, BaseModel)
        ):
            names |= sortable_fields(annotation, prefix=f"{prefix}{name}.")
        else:
            names.add(f"{prefix}{name}")
    return names


def canonical_sort_field(model_cls: type[BaseModel], field: str) -> str:
    """Resolve a sort field name, accepting bare ``parameters.*`` names.

    Raises:
        InvalidQueryError: If the model has no such field.
    """
    fields = sortable_fields(model_cls)
    if field in fields:
        return field
    if f"parameters.{field}" in fields:
        return f"parameters.{field}"
    raise InvalidQueryError(
        f"Unknown sort field {field!r} for {model_cls.__name__}; "
        f"expected one of {sorted(fields)}"
    )


def sort_records(records: list[RecordT], sort: SortCriteria) -> list[RecordT]:
    """Stable sort by one field; records with a missing value go last."""
    if not records:
        return records
    field = canonical_sort_field(type(records[0]), sort.field)

    present: list[tuple[Any, RecordT]] = []
    missing: list[RecordT] = []
    for record in records:
        _, value = resolve_field(flatten_record(record), field)
        if value is None:
            missing.append(record)
        else:
            present.append((value, record))

    present.sort(key=lambda pair: pair[0], reverse=sort.order == "desc")
    return [record for _, record in present] + missing


# --- Query application ---


def apply_query(
    records: Iterable[RecordT],
    query: RecordQuery,
    default_limit: int = DEFAULT_PAGE_LIMIT,
) -> list[RecordT]:
    """Filter, sort and paginate a materialized sequence."""
    selected = [r for r in records if matches(r, query.filter)]
    if query.sort is not None:
        selected = sort_records(selected, query.sort)

    offset = query.page.resolved_offset(default_limit)
    limit = query.page.resolved_limit(default_limit)
    end = None if limit is None else offset + limit
    return selected[offset:end]


def count_matching(records: Iterable[RecordT], criteria: FilterCriteria) -> int:
    return sum(1 for r in records if matches(r, criteria))


async def aiter_query(
    records: AsyncIterator[RecordT],
    query: RecordQuery,
    default_limit: int = DEFAULT_PAGE_LIMIT,
) -> AsyncGenerator[RecordT, None]:
    """Lazy counterpart of ``apply_query``.

    Stops pulling from ``records`` as soon as the limit is reached, and
    closes it on exit so an upstream directory scan stops too.
    """
    offset = query.page.resolved_offset(default_limit)
    limit = query.page.resolved_limit(default_limit)

    try:
        if limit == 0:
            return

        if query.sort is not None:
            collected = [r async for r in records if matches(r, query.filter)]
            source: Iterable[RecordT] = sort_records(collected, query.sort)
            for record in _paginate(source, offset, limit):
                yield record
            return

        skipped = 0
        yielded = 0
        async for record in records:
            if not matches(record, query.filter):
                continue
            if skipped < offset:
                skipped += 1
                continue
            yield record
            yielded += 1
            if limit is not None and yielded >= limit:
                return
    finally:
        aclose = getattr(records, "aclose", None)
        if aclose is not None:
            await aclose()


def _paginate(records: Iterable[RecordT], offset: int, limit: int | None):
    for index, record in enumerate(records):
        if index < offset:
            continue
        if limit is not None and index >= offset + limit:
            return
        yield record
