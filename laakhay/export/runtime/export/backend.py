"""Paginated export backend.

Architecture:
    EngineExportBackend runs one MessagesRequest against an EngineClient:

    1. Resolve the time range and reject disallowed leading wildcards; any
       other query syntax is left to the engine
    2. Resolve indices once per run through the IndexResolver
    3. Fetch pages of ``chunk_size`` hits, continuing from the sort values of
       the previous page's last hit (``search_after``)
    4. Hand each page to the sink as one SimpleMessageChunk before fetching
       the next page

Limit Policy:
    Pages are never truncated. Fetching stops after a short page or once the
    messages delivered so far reach the request limit, so the last chunk is
    always complete and an export may exceed its limit by up to
    ``chunk_size - 1`` messages.

Errors:
    Engine and resolver failures are raised as ExportError with the original
    error as cause. Chunks already delivered stay delivered. Exceptions raised
    by the sink propagate unchanged.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from time import perf_counter
from typing import Protocol
from uuid import uuid4

from ...config import DOCUMENT_ID_FIELD, RESERVED_FIELDS, BackendSettings
from ...core.enums import ExportState
from ...core.exceptions import EngineError, ExportError
from ...models.message import SimpleMessage, SimpleMessageChunk
from ...models.request import MessagesRequest
from ...models.result import ExportResult
from ...models.sort import Sort, unique_in_order
from ...models.time_range import AbsoluteRange
from ..engine.base import EngineClient, EngineHit, EngineQuery
from ..engine.query_string import check_leading_wildcard
from ..index_lookup import IndexResolver
from .telemetry import (
    log_chunk_delivered,
    log_export_complete,
    log_export_error,
    log_export_started,
)

ChunkForwarder = Callable[[SimpleMessageChunk], Awaitable[None] | None]


async def forward_chunk(forward: ChunkForwarder, chunk: SimpleMessageChunk) -> None:
    """Call a sync or async sink and wait for it to finish."""
    outcome = forward(chunk)
    if inspect.isawaitable(outcome):
        await outcome


class ExportBackend(Protocol):
    """Executes an export request, delivering chunks to ``forward``."""

    async def run(self, request: MessagesRequest, forward: ChunkForwarder) -> ExportResult:
        ...


class EngineExportBackend:
    """ExportBackend paginating over an EngineClient."""

    def __init__(
        self,
        client: EngineClient,
        index_resolver: IndexResolver,
        settings: BackendSettings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            client: Engine client executing page queries
            index_resolver: Resolves streams and time range to index names
            settings: Backend switches (leading wildcards, tie-break, default sort)
            clock: Source of "now" for relative time ranges
        """
        self._client = client
        self._index_resolver = index_resolver
        self._settings = settings or BackendSettings()
        self._clock = clock or (lambda: datetime.now(UTC))

    async def run(self, request: MessagesRequest, forward: ChunkForwarder) -> ExportResult:
        export_id = uuid4().hex[:12]
        started = perf_counter()
        result = ExportResult()

        try:
            time_range = request.time_range.to_absolute(self._clock())
            check_leading_wildcard(request.query_string, self._settings.allow_leading_wildcard)
            result.indices = await self._resolve_indices(request.streams, time_range)
        except EngineError as e:
            result.state = ExportState.FAILED
            log_export_error(
                export_id=export_id,
                stage="prepare",
                chunks_delivered=0,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise ExportError(f"Unable to prepare export: {e}", cause=e) from e

        result.state = ExportState.FETCHING
        log_export_started(
            export_id=export_id,
            indices=result.indices,
            streams=request.streams,
            chunk_size=request.chunk_size,
            limit=request.limit,
        )

        if result.indices:
            query = self._build_query(request, time_range, result.indices)
            await self._fetch_all(export_id, request, query, forward, result)

        result.state = ExportState.DONE
        log_export_complete(
            export_id=export_id,
            result=result,
            total_latency_ms=(perf_counter() - started) * 1000.0,
        )
        return result

    async def _fetch_all(
        self,
        export_id: str,
        request: MessagesRequest,
        query: EngineQuery,
        forward: ChunkForwarder,
        result: ExportResult,
    ) -> None:
        while True:
            page_start = perf_counter()
            try:
                hits = await self._client.search(query)
            except EngineError as e:
                result.state = ExportState.FAILED
                log_export_error(
                    export_id=export_id,
                    stage="fetch",
                    chunks_delivered=result.chunks_delivered,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                raise ExportError(
                    f"Export failed after {result.chunks_delivered} chunk(s): {e}", cause=e
                ) from e
            result.pages_fetched += 1

            if not hits:
                return

            chunk = SimpleMessageChunk.from_messages(
                request.fields_in_order,
                (self._to_message(hit, query.fields) for hit in hits),
                is_first_chunk=result.chunks_delivered == 0,
            )
            await forward_chunk(forward, chunk)

            log_chunk_delivered(
                export_id=export_id,
                chunk_index=result.chunks_delivered,
                messages=len(hits),
                latency_ms=(perf_counter() - page_start) * 1000.0,
            )
            result.chunks_delivered += 1
            result.messages_delivered += len(hits)

            if len(hits) < request.chunk_size or request.limit_reached(result.messages_delivered):
                return
            query = query.next_page(hits[-1].sort)

    async def _resolve_indices(
        self, streams: frozenset[str] | None, time_range: AbsoluteRange
    ) -> frozenset[str]:
        indices = self._index_resolver.resolve(streams, time_range)
        if inspect.isawaitable(indices):
            indices = await indices
        return frozenset(indices)

    def _build_query(
        self, request: MessagesRequest, time_range: AbsoluteRange, indices: frozenset[str]
    ) -> EngineQuery:
        return EngineQuery(
            indices=indices,
            time_range=time_range,
            query_string=request.query_string,
            streams=request.streams,
            fields=unique_in_order(request.fields_in_order + RESERVED_FIELDS),
            sort=self._effective_sort(request),
            size=request.chunk_size,
            allow_leading_wildcard=self._settings.allow_leading_wildcard,
        )

    def _effective_sort(self, request: MessagesRequest) -> tuple[Sort, ...]:
        sort = request.sort or tuple(
            Sort.create(field, direction) for field, direction in self._settings.default_sort
        )
        tiebreaker = self._settings.tiebreaker_field
        if all(key.field != tiebreaker for key in sort):
            sort = sort + (Sort.create(tiebreaker),)
        return sort

    @staticmethod
    def _to_message(hit: EngineHit, fields: tuple[str, ...]) -> SimpleMessage:
        values = {name: hit.source[name] for name in fields if name in hit.source}
        values[DOCUMENT_ID_FIELD] = hit.id
        return SimpleMessage(index=hit.index, fields=values)
