"""Index resolution for exports.

Maps a stream set and a time range to the concrete index names an export has
to search. Index lifecycle tracking lives elsewhere; this module only consumes
its bookkeeping in the form of IndexRange records.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from ..models.time_range import AbsoluteRange

logger = logging.getLogger(__name__)


class IndexResolver(Protocol):
    """Resolves the indices holding messages of ``streams`` within ``time_range``.

    ``streams`` of None means all streams. Implementations may return the
    names directly or an awaitable of them; failures are raised as
    EngineError subclasses.
    """

    def resolve(
        self, streams: frozenset[str] | None, time_range: AbsoluteRange
    ) -> Iterable[str] | Awaitable[Iterable[str]]:
        ...


@dataclass(frozen=True)
class IndexRange:
    """Time span and streams covered by one index.

    Attributes:
        index_name: Index name
        begin: Timestamp of the oldest message in the index
        end: Timestamp of the newest message in the index
        stream_ids: Streams with messages in the index, None if unknown
    """

    index_name: str
    begin: datetime
    end: datetime
    stream_ids: frozenset[str] | None = None

    def covers(self, streams: frozenset[str] | None, time_range: AbsoluteRange) -> bool:
        if not time_range.overlaps(self.begin, self.end):
            return False
        if streams is None or self.stream_ids is None:
            return True
        return bool(self.stream_ids & streams)


class IndexRangeLookup:
    """IndexResolver backed by a list of IndexRange records."""

    def __init__(self, ranges: Iterable[IndexRange] = ()) -> None:
        self._ranges: dict[str, IndexRange] = {}
        for index_range in ranges:
            self.add(index_range)

    def add(self, index_range: IndexRange) -> None:
        """Register or replace the range of an index."""
        begin, end = index_range.begin, index_range.end
        if begin.tzinfo is None or end.tzinfo is None:
            index_range = IndexRange(
                index_name=index_range.index_name,
                begin=begin if begin.tzinfo else begin.replace(tzinfo=UTC),
                end=end if end.tzinfo else end.replace(tzinfo=UTC),
                stream_ids=index_range.stream_ids,
            )
        self._ranges[index_range.index_name] = index_range

    def resolve(self, streams: frozenset[str] | None, time_range: AbsoluteRange) -> frozenset[str]:
        indices = frozenset(
            name for name, index_range in self._ranges.items() if index_range.covers(streams, time_range)
        )
        logger.debug(
            "indices_resolved",
            extra={
                "streams": sorted(streams) if streams is not None else None,
                "from": time_range.from_.isoformat(),
                "to": time_range.to.isoformat(),
                "indices": sorted(indices),
            },
        )
        return indices


class StaticIndexResolver:
    """IndexResolver returning the same indices for every request."""

    def __init__(self, indices: Iterable[str]) -> None:
        self._indices = frozenset(indices)

    def resolve(self, streams: frozenset[str] | None, time_range: AbsoluteRange) -> frozenset[str]:
        return self._indices
