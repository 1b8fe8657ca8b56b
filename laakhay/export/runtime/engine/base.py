"""Seam between the export backend and concrete search engines."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Protocol

from ...config import DEFAULT_CHUNK_SIZE
from ...models.sort import Sort
from ...models.time_range import AbsoluteRange


@dataclass(frozen=True)
class EngineQuery:
    """One page request sent to an engine.

    Attributes:
        indices: Index names to search
        time_range: Resolved ``[from, to)`` filter on the timestamp field
        query_string: Free-text query, empty for all messages
        streams: Stream ids a message must belong to, None for any stream
        fields: Source fields to return
        sort: Full sort including the tie-break field
        size: Page size
        search_after: Sort values of the last hit of the previous page
        allow_leading_wildcard: Whether terms may start with a wildcard
    """

    indices: frozenset[str]
    time_range: AbsoluteRange
    query_string: str = ""
    streams: frozenset[str] | None = None
    fields: tuple[str, ...] = ()
    sort: tuple[Sort, ...] = ()
    size: int = DEFAULT_CHUNK_SIZE
    search_after: tuple[Any, ...] | None = None
    allow_leading_wildcard: bool = False

    def next_page(self, search_after: tuple[Any, ...]) -> EngineQuery:
        return replace(self, search_after=tuple(search_after))


@dataclass(frozen=True)
class EngineHit:
    """Raw document returned by an engine, in engine order."""

    index: str
    id: str
    source: dict[str, Any] = field(default_factory=dict)
    sort: tuple[Any, ...] = ()


class EngineClient(Protocol):
    """Executes sorted, filtered, paginated, field-projected queries.

    Implementations raise EngineQueryError for rejected queries and
    EngineExecutionError for transport or server failures.
    """

    async def search(self, query: EngineQuery) -> list[EngineHit]:
        ...
