"""Unit tests for the paginated export backend."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from laakhay.export.config import BackendSettings
from laakhay.export.core import (
    EngineExecutionError,
    EngineQueryError,
    ExportError,
    ExportState,
    SortDirection,
)
from laakhay.export.models import AbsoluteRange, RelativeRange, Sort
from laakhay.export.runtime import (
    EngineExportBackend,
    EngineHit,
    IndexRangeLookup,
    InMemorySearchEngine,
    StaticIndexResolver,
)


def _messages(sink) -> list[str]:
    return [m.get("message") for m in sink.messages]


class FakeEngine:
    """Engine client returning prepared pages and recording every query."""

    def __init__(self, pages):
        self._pages = list(pages)
        self.queries = []

    async def search(self, query):
        self.queries.append(query)
        if not self._pages:
            return []
        page = self._pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page


def _hits(*ids: str) -> list[EngineHit]:
    return [
        EngineHit(
            index="graylog_0",
            id=doc_id,
            source={"message": f"m{doc_id}", "gl2_message_id": f"msg-{doc_id}"},
            sort=(int(doc_id), f"msg-{doc_id}"),
        )
        for doc_id in ids
    ]


class TestBackendAgainstFixture:
    """Behavior over the four fixture messages."""

    @pytest.mark.asyncio
    async def test_uses_correct_indices_and_streams(self, backend, make_request, sink):
        request = make_request(streams=frozenset({"stream-01", "stream-02"}))

        result = await backend.run(request, sink)

        assert _messages(sink) == ["Ho", "He", "Ha"]
        assert [m.index for m in sink.messages] == ["graylog_0", "graylog_1", "graylog_0"]
        assert result.indices == frozenset({"graylog_0", "graylog_1"})

    @pytest.mark.asyncio
    async def test_uses_query_string(self, backend, make_request, sink):
        await backend.run(make_request(query_string="Ha Ho"), sink)

        assert _messages(sink) == ["Ho", "Ha"]

    @pytest.mark.asyncio
    async def test_uses_half_open_time_range(self, backend, make_request, sink):
        time_range = AbsoluteRange.create("2015-01-01T01:00:00Z", "2015-01-01T03:00:00Z")

        await backend.run(make_request(time_range=time_range), sink)

        assert _messages(sink) == ["He", "Ha"]

    @pytest.mark.asyncio
    async def test_default_order_is_time_descending(self, backend, make_request, sink):
        await backend.run(make_request(), sink)

        assert _messages(sink) == ["Ho", "Hi", "He", "Ha"]

    @pytest.mark.asyncio
    async def test_uses_sorting(self, backend, make_request, sink):
        request = make_request(
            sort=(
                Sort.create("source", SortDirection.ASC),
                Sort.create("timestamp", SortDirection.DESC),
            )
        )

        await backend.run(request, sink)

        assert [(m.get("source"), m.get("message")) for m in sink.messages] == [
            ("source-1", "Hi"),
            ("source-1", "Ha"),
            ("source-2", "Ho"),
            ("source-2", "He"),
        ]

    @pytest.mark.asyncio
    async def test_marks_only_first_chunk(self, backend, make_request, sink):
        await backend.run(make_request(chunk_size=1), sink)

        assert [chunk.is_first_chunk for chunk in sink.chunks] == [True, False, False, False]

    @pytest.mark.asyncio
    async def test_chunks_carry_request_field_order(self, backend, make_request, sink):
        request = make_request(fields_in_order=("timestamp", "message"), chunk_size=3)

        await backend.run(request, sink)

        assert all(chunk.fields_in_order == ("timestamp", "message") for chunk in sink.chunks)

    @pytest.mark.asyncio
    async def test_results_have_reserved_fields(self, backend, make_request, sink):
        await backend.run(make_request(fields_in_order=("timestamp", "message")), sink)

        names = set()
        for message in sink.messages:
            names.update(message.fields)
        assert names == {"gl2_message_id", "source", "message", "timestamp", "streams", "_id"}

    @pytest.mark.asyncio
    async def test_pruned_results_match_requested_fields(self, backend, make_request, sink):
        await backend.run(make_request(fields_in_order=("timestamp", "message")), sink)

        total = sink.total_result()

        assert all(set(m.fields) == {"timestamp", "message"} for m in total.messages)
        assert total.rows()[0] == ["2015-01-01 04:00:00.000", "Ho"]

    @pytest.mark.asyncio
    async def test_respects_result_limit(self, backend, make_request, sink):
        result = await backend.run(make_request(chunk_size=1, limit=3), sink)

        assert len(sink.messages) == 3
        assert result.messages_delivered == 3
        assert result.chunks_delivered == 3

    @pytest.mark.asyncio
    async def test_delivers_complete_last_chunk_if_limit_is_reached(self, backend, make_request, sink):
        result = await backend.run(make_request(chunk_size=2, limit=3), sink)

        assert len(sink.messages) == 4
        assert [len(chunk) for chunk in sink.chunks] == [2, 2]
        assert result.messages_delivered == 4

    @pytest.mark.asyncio
    async def test_limit_multiple_of_chunk_size_stops_exactly(self, backend, make_request, sink):
        result = await backend.run(make_request(chunk_size=2, limit=2), sink)

        assert _messages(sink) == ["Ho", "Hi"]
        assert result.pages_fetched == 1

    @pytest.mark.asyncio
    async def test_limit_above_matches_returns_everything(self, backend, make_request, sink):
        await backend.run(make_request(chunk_size=3, limit=100), sink)

        assert [len(chunk) for chunk in sink.chunks] == [3, 1]

    @pytest.mark.asyncio
    async def test_exhausted_full_page_ends_with_empty_fetch(self, backend, make_request, sink):
        result = await backend.run(make_request(chunk_size=2), sink)

        assert result.chunks_delivered == 2
        assert result.pages_fetched == 3
        assert result.state == ExportState.DONE

    @pytest.mark.asyncio
    async def test_no_match_delivers_no_chunk(self, backend, make_request, sink):
        result = await backend.run(make_request(query_string="nothing-matches"), sink)

        assert sink.chunks == []
        assert result.chunks_delivered == 0

    @pytest.mark.asyncio
    async def test_fails_with_leading_wildcard_query_if_disallowed(self, backend, make_request, sink):
        with pytest.raises(ExportError) as exc_info:
            await backend.run(make_request(query_string="*a"), sink)

        assert isinstance(exc_info.value.cause, EngineQueryError)
        assert isinstance(exc_info.value.__cause__, EngineQueryError)
        assert sink.chunks == []

    @pytest.mark.asyncio
    async def test_allows_leading_wildcard_when_configured(self, engine, index_lookup, make_request, sink):
        backend = EngineExportBackend(
            engine, index_lookup, BackendSettings(allow_leading_wildcard=True)
        )

        await backend.run(make_request(query_string="*a"), sink)

        assert _messages(sink) == ["Ha"]

    @pytest.mark.asyncio
    async def test_accepts_sync_sink(self, backend, make_request):
        received = []

        await backend.run(make_request(chunk_size=3), received.append)

        assert [len(chunk) for chunk in received] == [3, 1]

    @pytest.mark.asyncio
    async def test_field_scoped_group_query(self, backend, make_request, sink):
        await backend.run(make_request(query_string="source:(source-1 OR source-9)"), sink)

        assert _messages(sink) == ["Hi", "Ha"]

    @pytest.mark.asyncio
    async def test_empty_stream_set_searches_all_streams(self, backend, make_request, sink):
        result = await backend.run(make_request(streams=frozenset()), sink)

        assert result.messages_delivered == 4
        assert _messages(sink) == ["Ho", "Hi", "He", "Ha"]

    @pytest.mark.asyncio
    async def test_pages_through_documents_with_identical_sort_keys(self, make_request, sink):
        engine = InMemorySearchEngine()
        engine.index(
            "graylog_0",
            [{"timestamp": "2015-01-01 01:00:00.000", "message": f"m{i}"} for i in range(4)],
        )
        backend = EngineExportBackend(engine, IndexRangeLookup(engine.index_ranges()))

        result = await backend.run(make_request(streams=None, chunk_size=1), sink)

        assert result.messages_delivered == 4
        assert sorted(_messages(sink)) == ["m0", "m1", "m2", "m3"]
        assert [len(chunk) for chunk in sink.chunks] == [1, 1, 1, 1]


class TestBackendPagination:
    """Pagination bookkeeping against a scripted engine."""

    @pytest.mark.asyncio
    async def test_builds_query_with_projection_sort_and_tiebreak(self, make_request, sink):
        engine = FakeEngine([_hits("1")])
        backend = EngineExportBackend(engine, StaticIndexResolver({"graylog_0"}))

        await backend.run(make_request(fields_in_order=("message", "level"), chunk_size=5), sink)

        query = engine.queries[0]
        assert query.indices == frozenset({"graylog_0"})
        assert query.size == 5
        assert query.fields == ("message", "level", "gl2_message_id", "source", "timestamp", "streams")
        assert query.sort == (
            Sort.create("timestamp", SortDirection.DESC),
            Sort.create("gl2_message_id", SortDirection.ASC),
        )
        assert query.search_after is None

    @pytest.mark.asyncio
    async def test_tiebreak_not_duplicated(self, make_request, sink):
        engine = FakeEngine([])
        backend = EngineExportBackend(engine, StaticIndexResolver({"graylog_0"}))
        sort = (Sort.create("gl2_message_id", SortDirection.DESC),)

        await backend.run(make_request(sort=sort), sink)

        assert engine.queries[0].sort == sort

    @pytest.mark.asyncio
    async def test_continues_from_last_sort_values(self, make_request, sink):
        engine = FakeEngine([_hits("1", "2"), _hits("3", "4"), _hits("5")])
        backend = EngineExportBackend(engine, StaticIndexResolver({"graylog_0"}))

        result = await backend.run(make_request(chunk_size=2), sink)

        assert [q.search_after for q in engine.queries] == [None, (2, "msg-2"), (4, "msg-4")]
        assert [m.id for m in sink.messages] == ["1", "2", "3", "4", "5"]
        assert result.pages_fetched == 3

    @pytest.mark.asyncio
    async def test_resolves_indices_once_per_run(self, make_request, sink):
        engine = FakeEngine([_hits("1", "2"), _hits("3")])
        resolver = MagicMock()
        resolver.resolve.return_value = {"graylog_0"}
        backend = EngineExportBackend(engine, resolver)
        request = make_request(chunk_size=2)

        await backend.run(request, sink)

        resolver.resolve.assert_called_once_with(request.streams, request.time_range)

    @pytest.mark.asyncio
    async def test_accepts_async_index_resolver(self, make_request, sink):
        engine = FakeEngine([_hits("1")])
        resolver = MagicMock()
        resolver.resolve = AsyncMock(return_value=["graylog_0", "graylog_1"])
        backend = EngineExportBackend(engine, resolver)

        result = await backend.run(make_request(), sink)

        assert result.indices == frozenset({"graylog_0", "graylog_1"})

    @pytest.mark.asyncio
    async def test_no_indices_skips_engine(self, make_request, sink):
        engine = FakeEngine([_hits("1")])
        backend = EngineExportBackend(engine, StaticIndexResolver(()))

        result = await backend.run(make_request(), sink)

        assert engine.queries == []
        assert sink.chunks == []
        assert result.state == ExportState.DONE

    @pytest.mark.asyncio
    async def test_resolves_relative_range_with_clock(self, make_request, sink):
        now = datetime(2015, 1, 1, 12, tzinfo=UTC)
        engine = FakeEngine([])
        backend = EngineExportBackend(engine, StaticIndexResolver({"graylog_0"}), clock=lambda: now)

        await backend.run(make_request(time_range=RelativeRange(range=3600)), sink)

        assert engine.queries[0].time_range == AbsoluteRange(
            from_=datetime(2015, 1, 1, 11, tzinfo=UTC), to=now
        )

    @pytest.mark.asyncio
    async def test_engine_failure_keeps_delivered_chunks(self, make_request, sink):
        engine = FakeEngine([_hits("1", "2"), EngineExecutionError("connection reset")])
        backend = EngineExportBackend(engine, StaticIndexResolver({"graylog_0"}))

        with pytest.raises(ExportError) as exc_info:
            await backend.run(make_request(chunk_size=2), sink)

        assert isinstance(exc_info.value.cause, EngineExecutionError)
        assert len(sink.chunks) == 1
        assert sink.chunks[0].is_first_chunk

    @pytest.mark.asyncio
    async def test_resolver_failure_is_wrapped(self, make_request, sink):
        engine = FakeEngine([_hits("1")])
        resolver = MagicMock()
        resolver.resolve.side_effect = EngineExecutionError("index ranges unavailable")
        backend = EngineExportBackend(engine, resolver)

        with pytest.raises(ExportError) as exc_info:
            await backend.run(make_request(), sink)

        assert isinstance(exc_info.value.cause, EngineExecutionError)
        assert engine.queries == []

    @pytest.mark.asyncio
    async def test_wildcard_rejected_before_any_fetch(self, make_request, sink):
        engine = MagicMock()
        engine.search = AsyncMock(return_value=[])
        backend = EngineExportBackend(engine, StaticIndexResolver({"graylog_0"}))

        with pytest.raises(ExportError):
            await backend.run(make_request(query_string="source:?ource-1"), sink)

        engine.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sink_failure_propagates_unwrapped(self, make_request):
        engine = FakeEngine([_hits("1", "2"), _hits("3", "4")])
        backend = EngineExportBackend(engine, StaticIndexResolver({"graylog_0"}))

        def failing_sink(chunk):
            raise RuntimeError("client went away")

        with pytest.raises(RuntimeError, match="client went away"):
            await backend.run(make_request(chunk_size=2), failing_sink)

        assert len(engine.queries) == 1

    @pytest.mark.asyncio
    async def test_message_fields_include_document_id(self, make_request, sink):
        engine = FakeEngine([_hits("7")])
        backend = EngineExportBackend(engine, StaticIndexResolver({"graylog_0"}))

        await backend.run(make_request(), sink)

        message = sink.messages[0]
        assert message.id == "7"
        assert message.fields == {"message": "m7", "gl2_message_id": "msg-7", "_id": "7"}

    @pytest.mark.asyncio
    async def test_engine_specific_syntax_reaches_engine(self, make_request, sink):
        engine = FakeEngine([_hits("1")])
        backend = EngineExportBackend(engine, StaticIndexResolver({"graylog_0"}))

        await backend.run(make_request(query_string="level:[3 TO 5] AND source:(a OR b)"), sink)

        assert engine.queries[0].query_string == "level:[3 TO 5] AND source:(a OR b)"
        assert _messages(sink) == ["m1"]
