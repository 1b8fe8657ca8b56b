"""Shared fixtures: four messages in two indices across three streams."""

from __future__ import annotations

import pytest

from laakhay.export.models import AbsoluteRange, MessagesRequest
from laakhay.export.runtime import EngineExportBackend, IndexRangeLookup, InMemorySearchEngine
from laakhay.export.sinks import InMemoryChunkSink

MESSAGES = {
    "graylog_0": [
        {
            "_id": "1",
            "gl2_message_id": "msg-1",
            "timestamp": "2015-01-01 01:00:00.000",
            "source": "source-1",
            "message": "Ha",
            "streams": ["stream-01"],
        },
        {
            "_id": "3",
            "gl2_message_id": "msg-3",
            "timestamp": "2015-01-01 03:00:00.000",
            "source": "source-1",
            "message": "Hi",
            "streams": ["stream-03"],
        },
        {
            "_id": "4",
            "gl2_message_id": "msg-4",
            "timestamp": "2015-01-01 04:00:00.000",
            "source": "source-2",
            "message": "Ho",
            "streams": ["stream-01", "stream-02"],
        },
    ],
    "graylog_1": [
        {
            "_id": "2",
            "gl2_message_id": "msg-2",
            "timestamp": "2015-01-01 02:00:00.000",
            "source": "source-2",
            "message": "He",
            "streams": ["stream-02"],
        },
    ],
}

ALL_STREAMS = frozenset({"stream-01", "stream-02", "stream-03"})


@pytest.fixture
def engine() -> InMemorySearchEngine:
    engine = InMemorySearchEngine()
    for index_name, documents in MESSAGES.items():
        engine.index(index_name, documents)
    return engine


@pytest.fixture
def index_lookup(engine: InMemorySearchEngine) -> IndexRangeLookup:
    return IndexRangeLookup(engine.index_ranges())


@pytest.fixture
def backend(engine: InMemorySearchEngine, index_lookup: IndexRangeLookup) -> EngineExportBackend:
    return EngineExportBackend(engine, index_lookup)


@pytest.fixture
def sink() -> InMemoryChunkSink:
    return InMemoryChunkSink()


@pytest.fixture
def all_messages_range() -> AbsoluteRange:
    return AbsoluteRange.create("2015-01-01T00:00:00Z", "2015-01-03T00:00:00Z")


@pytest.fixture
def make_request(all_messages_range: AbsoluteRange):
    """Factory for requests over every fixture message and stream."""

    def factory(**overrides) -> MessagesRequest:
        values = {"time_range": all_messages_range, "streams": ALL_STREAMS}
        values.update(overrides)
        return MessagesRequest(**values)

    return factory
