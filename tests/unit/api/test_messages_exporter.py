"""Unit tests for MessagesExporter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from laakhay.export import MessagesExporter
from laakhay.export.core import ConfigurationError, ExportState
from laakhay.export.decorators import MessageDecoratorChain
from laakhay.export.models import (
    Decorator,
    ExportResult,
    MessageList,
    Query,
    ResultFormat,
    Search,
    SearchType,
    SimpleMessage,
    SimpleMessageChunk,
)


def _chunk(*texts: str, first: bool = True) -> SimpleMessageChunk:
    messages = [SimpleMessage(index="graylog_0", fields={"message": text}) for text in texts]
    return SimpleMessageChunk.from_messages(("message",), messages, is_first_chunk=first)


def _replaying_backend(*chunks: SimpleMessageChunk) -> MagicMock:
    """Backend stub delivering ``chunks`` to whatever forwarder it is given."""

    async def run(request, forward):
        for chunk in chunks:
            result = forward(chunk)
            if result is not None:
                await result
        return ExportResult(state=ExportState.DONE, chunks_delivered=len(chunks))

    backend = MagicMock()
    backend.run = AsyncMock(side_effect=run)
    return backend


def _search(all_messages_range, *search_types) -> Search:
    query = Query(
        id="q1",
        timerange=all_messages_range,
        filter_streams=frozenset({"stream-01", "stream-02", "stream-03"}),
        search_types=search_types,
    )
    return Search(id="search-1", queries=(query,))


class TestExport:
    @pytest.mark.asyncio
    async def test_request_is_passed_through(self, make_request):
        backend = MagicMock()
        backend.run = AsyncMock(return_value=ExportResult(state=ExportState.DONE))
        forward = AsyncMock()
        request = make_request()

        result = await MessagesExporter(backend).export(request, forward)

        assert result.state == ExportState.DONE
        backend.run.assert_awaited_once_with(request, forward)


class TestExportSearch:
    @pytest.mark.asyncio
    async def test_without_search_type_sink_is_not_wrapped(self, all_messages_range):
        backend = MagicMock()
        backend.run = AsyncMock(return_value=ExportResult(state=ExportState.DONE))
        forward = AsyncMock()

        await MessagesExporter(backend).export_search(_search(all_messages_range), ResultFormat(), forward)

        request, passed_forward = backend.run.await_args.args
        assert passed_forward is forward
        assert request.time_range == all_messages_range

    @pytest.mark.asyncio
    async def test_message_list_chunks_are_decorated(self, all_messages_range):
        decorator = Decorator(type="uppercase", field="message")
        search = _search(all_messages_range, MessageList(id="ml", decorators=(decorator,)))
        backend = _replaying_backend(_chunk("Ho", "Hi"), _chunk("He", first=False))
        chunk_decorator = MagicMock(wraps=MessageDecoratorChain())
        received: list[SimpleMessageChunk] = []

        await MessagesExporter(backend, chunk_decorator=chunk_decorator).export_search(
            search, ResultFormat(), received.append, search_type_id="ml"
        )

        assert [[m.get("message") for m in chunk.messages] for chunk in received] == [["HO", "HI"], ["HE"]]
        assert [chunk.is_first_chunk for chunk in received] == [True, False]
        assert chunk_decorator.decorate.call_count == 2
        _, decorators, request = chunk_decorator.decorate.call_args.args
        assert decorators == (decorator,)
        assert request is backend.run.await_args.args[0]

    @pytest.mark.asyncio
    async def test_unresolvable_search_never_reaches_backend(self, all_messages_range):
        backend = MagicMock()
        backend.run = AsyncMock()
        search = Search(id="search-1", queries=(_search(all_messages_range).queries[0],) * 2)

        with pytest.raises(ConfigurationError):
            await MessagesExporter(backend).export_search(search, ResultFormat(), AsyncMock())

        backend.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_search_type_never_reaches_backend(self, all_messages_range):
        backend = MagicMock()
        backend.run = AsyncMock()
        search = _search(all_messages_range, SearchType(id="pivot-1", type="pivot"))

        with pytest.raises(ConfigurationError):
            await MessagesExporter(backend).export_search(
                search, ResultFormat(), AsyncMock(), search_type_id="pivot-1"
            )

        backend.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_end_to_end_against_in_memory_engine(self, backend, sink, all_messages_range):
        search = _search(
            all_messages_range,
            MessageList(id="ml", decorators=(Decorator(type="uppercase", field="message"),)),
        )
        exporter = MessagesExporter(backend, chunk_decorator=MessageDecoratorChain())

        result = await exporter.export_search(
            search, ResultFormat(fields_in_order=("message",)), sink, search_type_id="ml"
        )

        assert result.state == ExportState.DONE
        assert result.messages_delivered == 4
        assert [m.get("message") for m in sink.messages] == ["HO", "HI", "HE", "HA"]
        assert sink.chunks[0].is_first_chunk

    @pytest.mark.asyncio
    async def test_search_is_resolved_once(self, all_messages_range, monkeypatch):
        backend = _replaying_backend(_chunk("Ho"))
        exporter = MessagesExporter(backend, chunk_decorator=MessageDecoratorChain())
        builder = exporter.request_builder
        query_from = MagicMock(wraps=builder.query_from)
        message_list_from = MagicMock(wraps=builder.message_list_from)
        monkeypatch.setattr(builder, "query_from", query_from)
        monkeypatch.setattr(builder, "message_list_from", message_list_from)
        search = _search(all_messages_range, MessageList(id="ml"))

        await exporter.export_search(search, ResultFormat(), AsyncMock(), search_type_id="ml")

        assert query_from.call_count == 1
        assert message_list_from.call_count == 1
