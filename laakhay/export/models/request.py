"""Export request models.

MessagesRequest is built once per export and never modified afterwards; its
field order is the column order of every chunk the export delivers.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import DEFAULT_CHUNK_SIZE, DEFAULT_FIELDS
from .sort import Sort, unique_in_order
from .time_range import OffsetRange, TimeRange


def _unique_sorts(sorts: tuple[Sort, ...]) -> tuple[Sort, ...]:
    seen: set[str] = set()
    result = []
    for sort in sorts:
        if sort.field not in seen:
            seen.add(sort.field)
            result.append(sort)
    return tuple(result)


class ResultFormat(BaseModel):
    """User-declared view of an export: columns, ordering and limit."""

    fields_in_order: tuple[str, ...] = Field(DEFAULT_FIELDS, min_length=1)
    sort: tuple[Sort, ...] = ()
    limit: int | None = Field(None, gt=0)

    model_config = ConfigDict(frozen=True)

    @field_validator("fields_in_order")
    @classmethod
    def dedupe_fields(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return unique_in_order(v)

    @field_validator("sort")
    @classmethod
    def dedupe_sort(cls, v: tuple[Sort, ...]) -> tuple[Sort, ...]:
        return _unique_sorts(v)


class MessagesRequest(BaseModel):
    """Immutable, fully resolved export request.

    Attributes:
        time_range: Range to export (required)
        streams: Stream ids to search, None (or empty) for all streams
        query_string: Free-text query, empty matches everything
        fields_in_order: Output columns, duplicates dropped
        sort: Sort keys, empty for the engine's natural order
        limit: Result limit, None for unlimited
        chunk_size: Messages per fetched page
    """

    time_range: TimeRange
    streams: frozenset[str] | None = None
    query_string: str = ""
    fields_in_order: tuple[str, ...] = Field(DEFAULT_FIELDS, min_length=1)
    sort: tuple[Sort, ...] = ()
    limit: int | None = Field(None, gt=0)
    chunk_size: int = Field(DEFAULT_CHUNK_SIZE, gt=0)

    model_config = ConfigDict(frozen=True)

    @field_validator("fields_in_order")
    @classmethod
    def dedupe_fields(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return unique_in_order(v)

    @field_validator("sort")
    @classmethod
    def dedupe_sort(cls, v: tuple[Sort, ...]) -> tuple[Sort, ...]:
        return _unique_sorts(v)

    @field_validator("streams")
    @classmethod
    def empty_streams_mean_all(cls, v: frozenset[str] | None) -> frozenset[str] | None:
        return v or None

    @field_validator("time_range")
    @classmethod
    def validate_time_range(cls, v: TimeRange) -> TimeRange:
        if isinstance(v, OffsetRange) and v.source is None:
            raise ValueError("offset time range needs a source range")
        return v

    @property
    def has_limit(self) -> bool:
        return self.limit is not None

    def limit_reached(self, delivered: int) -> bool:
        return self.limit is not None and delivered >= self.limit
