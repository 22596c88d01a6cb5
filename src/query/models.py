# src/query/models.py - v1
"""Query value objects: FilterCriteria, PageCriteria, SortCriteria, RecordQuery.

They carry no identity; one is built per request and dropped afterwards.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_PAGE_LIMIT = 20

ParameterName = Literal["a", "b", "c", "d"]


class InvalidQueryError(ValueError):
    """Raised for query criteria that cannot be applied (e.g. unknown sort field)."""


class ParameterBounds(BaseModel):
    """Inclusive bounds on one solution parameter."""

    model_config = ConfigDict(frozen=True)

    minimum: int | None = None
    maximum: int | None = None

    def contains(self, value: int) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


class FilterCriteria(BaseModel):
    """AND-combined predicates; every field is optional.

    Date bounds are inclusive on both ends. Log timestamps are naive local
    times, so aware bounds are converted to local time and made naive.
    """

    model_config = ConfigDict(frozen=True)

    date_from: datetime | None = None
    date_to: datetime | None = None
    batch_range: str | None = None
    min_solutions: int | None = Field(default=None, ge=0)
    max_solutions: int | None = Field(default=None, ge=0)
    parameter_bounds: dict[ParameterName, ParameterBounds] = Field(default_factory=dict)

    @field_validator("date_from", "date_to")
    @classmethod
    def to_naive_local(cls, v: datetime | None) -> datetime | None:  # noqa: N805
        if v is not None and v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @model_validator(mode="after")
    def validate_ranges(self) -> FilterCriteria:
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        if (
            self.min_solutions is not None
            and self.max_solutions is not None
            and self.min_solutions > self.max_solutions
        ):
            raise ValueError("min_solutions must not exceed max_solutions")
        return self

    @property
    def has_date_bounds(self) -> bool:
        return self.date_from is not None or self.date_to is not None


class PageCriteria(BaseModel):
    """Offset/limit pagination; ``page`` is 1-based and only used without ``offset``."""

    model_config = ConfigDict(frozen=True)

    offset: int | None = Field(default=None, ge=0)
    page: int | None = Field(default=None, ge=1)
    limit: int | None = Field(default=None, ge=1)

    def resolved_offset(self, default_limit: int = DEFAULT_PAGE_LIMIT) -> int:
        if self.offset is not None:
            return self.offset
        if self.page is not None:
            return (self.page - 1) * (self.limit or default_limit)
        return 0

    def resolved_limit(self, default_limit: int = DEFAULT_PAGE_LIMIT) -> int | None:
        """Explicit limit, else None (unbounded).

        ``default_limit`` only sizes the pages used to turn ``page`` into an
        offset; a bare ``page`` returns everything from that offset on.
        """
        return self.limit


class SortCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    order: Literal["asc", "desc"] = "asc"


class RecordQuery(BaseModel):
    """Everything needed to narrow and order one record sequence."""

    model_config = ConfigDict(frozen=True)

    filter: FilterCriteria = Field(default_factory=FilterCriteria)
    page: PageCriteria = Field(default_factory=PageCriteria)
    sort: SortCriteria | None = None
