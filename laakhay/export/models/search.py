"""Stored search definitions read by the export request builder.

Architecture:
    A Search holds one or more Queries; each Query owns search types. Only the
    message-list search type can be exported. These models are read-only
    views of searches persisted elsewhere.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import ConfigurationError
from .sort import Sort
from .time_range import OffsetRange, QueryTimeRange, TimeRange


class Decorator(BaseModel):
    """Message decorator definition attached to a message list."""

    type: str = Field(..., min_length=1)
    field: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    order: int = 0

    model_config = ConfigDict(frozen=True)


class SearchType(BaseModel):
    """Named analytical unit inside a query (pivot, event list, ...)."""

    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    streams: frozenset[str] = frozenset()

    model_config = ConfigDict(frozen=True)

    @property
    def effective_streams(self) -> frozenset[str]:
        return self.streams


class MessageList(SearchType):
    """Search type returning raw messages, the only exportable kind."""

    type: Literal["messages"] = "messages"
    timerange: TimeRange | None = None
    query: str | None = None
    sort: tuple[Sort, ...] | None = None
    decorators: tuple[Decorator, ...] = ()


class Query(BaseModel):
    """A stored query: time range, free-text filter and its search types."""

    id: str = Field(..., min_length=1)
    timerange: QueryTimeRange
    query: str | None = None
    filter_streams: frozenset[str] = frozenset()
    search_types: tuple[MessageList | SearchType, ...] = ()

    model_config = ConfigDict(frozen=True)

    def search_type(self, search_type_id: str | None) -> SearchType | None:
        if search_type_id is None:
            return None
        for search_type in self.search_types:
            if search_type.id == search_type_id:
                return search_type
        return None

    @property
    def used_stream_ids(self) -> frozenset[str]:
        """Every stream referenced by the query filter or any of its search types."""
        streams = set(self.filter_streams)
        for search_type in self.search_types:
            streams.update(search_type.effective_streams)
        return frozenset(streams)

    def effective_time_range(self, message_list: MessageList) -> TimeRange:
        """Time range of ``message_list`` with this query's range as reference."""
        override = message_list.timerange
        if override is None:
            return self.timerange
        if isinstance(override, OffsetRange):
            return override.relative_to(self.timerange)
        return override


class Search(BaseModel):
    """A stored search: queries plus the values bound to its parameters."""

    id: str = Field(..., min_length=1)
    queries: tuple[Query, ...] = ()
    parameters: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def query_for_search_type(self, search_type_id: str) -> Query:
        for query in self.queries:
            if query.search_type(search_type_id) is not None:
                return query
        raise ConfigurationError(
            f"Search {self.id} has no query containing search type {search_type_id}"
        )
