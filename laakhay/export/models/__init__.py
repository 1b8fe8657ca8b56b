"""Data models for the export pipeline.

Architecture:
    Requests, searches and time ranges are Pydantic v2 models, frozen so a
    request cannot change while an export is running. Messages and chunks are
    plain dataclasses produced and consumed transiently by a run.

Model Categories:
    - Requests: MessagesRequest, ResultFormat, Sort
    - Time: AbsoluteRange, RelativeRange, OffsetRange, TimeRange
    - Stored searches: Search, Query, SearchType, MessageList, Decorator
    - Output: SimpleMessage, SimpleMessageChunk, ExportResult
"""

from .message import SimpleMessage, SimpleMessageChunk
from .request import MessagesRequest, ResultFormat
from .result import ExportResult
from .search import Decorator, MessageList, Query, Search, SearchType
from .sort import Sort
from .time_range import AbsoluteRange, OffsetRange, RelativeRange, TimeRange

__all__ = [
    "AbsoluteRange",
    "Decorator",
    "ExportResult",
    "MessageList",
    "MessagesRequest",
    "OffsetRange",
    "Query",
    "RelativeRange",
    "ResultFormat",
    "Search",
    "SearchType",
    "SimpleMessage",
    "SimpleMessageChunk",
    "Sort",
    "TimeRange",
]
