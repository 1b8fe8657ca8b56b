"""In-memory search engine.

Holds documents per index and answers EngineQuery pages the way the
Elasticsearch client does: time and stream filters, query string matching,
multi-key sorting with ``search_after`` continuation and source projection.
Used for tests and local exports of small data sets.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from functools import cmp_to_key
from typing import Any
from uuid import uuid4

from ...config import DOCUMENT_ID_FIELD, STREAMS_FIELD, TIMESTAMP_FIELD
from ...core.enums import SortDirection
from ...models.sort import Sort
from ..index_lookup import IndexRange
from .base import EngineHit, EngineQuery
from .query_string import validate_query_string

logger = logging.getLogger(__name__)

INDEX_FIELD = "_index"


def parse_timestamp(value: Any) -> datetime | None:
    """Read a stored timestamp (datetime or ISO-8601 / ``YYYY-MM-DD HH:MM:SS.fff``)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _compare_values(a: Any, b: Any) -> int:
    if a == b:
        return 0
    try:
        return -1 if a < b else 1
    except TypeError:
        return -1 if str(a) < str(b) else 1


def compare_sort_values(a: tuple[Any, ...], b: tuple[Any, ...], sort: tuple[Sort, ...]) -> int:
    """Order two sort-value tuples; missing values sort last in either direction."""
    for left, right, key in zip(a, b, sort):
        if left is None and right is None:
            continue
        if left is None:
            return 1
        if right is None:
            return -1
        result = _compare_values(left, right)
        if result:
            return -result if key.direction == SortDirection.DESC else result
    return 0


class InMemorySearchEngine:
    """EngineClient over documents kept in memory."""

    def __init__(
        self,
        *,
        timestamp_field: str = TIMESTAMP_FIELD,
        streams_field: str = STREAMS_FIELD,
    ) -> None:
        self._timestamp_field = timestamp_field
        self._streams_field = streams_field
        self._indices: dict[str, dict[str, dict[str, Any]]] = {}

    def index(self, index_name: str, documents: Iterable[Mapping[str, Any]]) -> list[str]:
        """Store documents in ``index_name``; returns the document ids.

        A document's ``_id`` entry is used as its id when present.
        """
        store = self._indices.setdefault(index_name, {})
        ids = []
        for document in documents:
            source = dict(document)
            doc_id = str(source.pop(DOCUMENT_ID_FIELD, None) or uuid4().hex)
            store[doc_id] = source
            ids.append(doc_id)
        return ids

    @property
    def index_names(self) -> list[str]:
        return sorted(self._indices)

    def index_ranges(self) -> list[IndexRange]:
        """Describe each stored index by its time span and streams."""
        ranges = []
        for name, store in sorted(self._indices.items()):
            timestamps = [
                ts
                for ts in (parse_timestamp(s.get(self._timestamp_field)) for s in store.values())
                if ts is not None
            ]
            if not timestamps:
                continue
            streams: set[str] = set()
            for source in store.values():
                streams.update(self._streams_of(source))
            ranges.append(
                IndexRange(
                    index_name=name,
                    begin=min(timestamps),
                    end=max(timestamps),
                    stream_ids=frozenset(streams),
                )
            )
        return ranges

    async def search(self, query: EngineQuery) -> list[EngineHit]:
        matcher = validate_query_string(query.query_string, query.allow_leading_wildcard)
        sort = self._with_document_order(query.sort)

        candidates = []
        for index_name in sorted(query.indices):
            store = self._indices.get(index_name)
            if store is None:
                logger.debug("unknown_index_skipped", extra={"index": index_name})
                continue
            for doc_id, source in store.items():
                timestamp = parse_timestamp(source.get(self._timestamp_field))
                if timestamp is None or not query.time_range.contains(timestamp):
                    continue
                if query.streams is not None and not self._streams_of(source) & query.streams:
                    continue
                if not matcher.matches(source):
                    continue
                sort_values = self._sort_values(index_name, doc_id, source, sort)
                candidates.append((index_name, doc_id, source, sort_values))

        ordered = sorted(candidates, key=cmp_to_key(lambda a, b: compare_sort_values(a[3], b[3], sort)))
        if query.search_after is not None:
            after = tuple(query.search_after)
            ordered = [c for c in ordered if compare_sort_values(c[3], after, sort) > 0]

        return [
            EngineHit(
                index=index_name,
                id=doc_id,
                source=self._project(source, query.fields),
                sort=sort_values,
            )
            for index_name, doc_id, source, sort_values in ordered[: query.size]
        ]

    def _streams_of(self, source: Mapping[str, Any]) -> set[str]:
        streams = source.get(self._streams_field) or ()
        if isinstance(streams, str):
            return {streams}
        return set(streams)

    @staticmethod
    def _with_document_order(sort: tuple[Sort, ...]) -> tuple[Sort, ...]:
        """Append index name and document id so every hit has a unique sort position."""
        present = {key.field for key in sort}
        extra = tuple(Sort.create(name) for name in (INDEX_FIELD, DOCUMENT_ID_FIELD) if name not in present)
        return sort + extra

    def _sort_values(
        self, index_name: str, doc_id: str, source: Mapping[str, Any], sort: tuple[Sort, ...]
    ) -> tuple[Any, ...]:
        values = []
        for key in sort:
            if key.field == self._timestamp_field:
                values.append(parse_timestamp(source.get(key.field)))
            elif key.field == DOCUMENT_ID_FIELD:
                values.append(doc_id)
            elif key.field == INDEX_FIELD:
                values.append(index_name)
            else:
                values.append(source.get(key.field))
        return tuple(values)

    @staticmethod
    def _project(source: Mapping[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
        if not fields:
            return dict(source)
        return {name: source[name] for name in fields if name in source}
