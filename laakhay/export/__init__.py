"""Laakhay Export - streaming search-result export pipeline."""

from .api import ExportRequestBuilder, MessagesExporter
from .config import BackendSettings
from .core import (
    ConfigurationError,
    EngineError,
    EngineExecutionError,
    EngineQueryError,
    ExportError,
    ExportState,
    SortDirection,
    UnsupportedSearchTypeError,
)
from .decorators import (
    ChunkDecorator,
    MessageDecoratorChain,
    NoopChunkDecorator,
    NoopQueryStringDecorator,
    ParameterQueryStringDecorator,
    QueryStringDecorator,
)
from .models import (
    AbsoluteRange,
    Decorator,
    ExportResult,
    MessageList,
    MessagesRequest,
    OffsetRange,
    Query,
    RelativeRange,
    ResultFormat,
    Search,
    SearchType,
    SimpleMessage,
    SimpleMessageChunk,
    Sort,
)
from .runtime import (
    ElasticsearchClient,
    EngineExportBackend,
    ExportBackend,
    InMemorySearchEngine,
    IndexRange,
    IndexRangeLookup,
    StaticIndexResolver,
)
from .sinks import CsvChunkWriter, InMemoryChunkSink

__version__ = "0.1.0"

__all__ = [
    # API
    "MessagesExporter",
    "ExportRequestBuilder",
    "BackendSettings",
    # Errors
    "ExportError",
    "ConfigurationError",
    "UnsupportedSearchTypeError",
    "EngineError",
    "EngineQueryError",
    "EngineExecutionError",
    # Enums
    "ExportState",
    "SortDirection",
    # Models
    "AbsoluteRange",
    "RelativeRange",
    "OffsetRange",
    "Decorator",
    "MessageList",
    "MessagesRequest",
    "Query",
    "ResultFormat",
    "Search",
    "SearchType",
    "SimpleMessage",
    "SimpleMessageChunk",
    "Sort",
    "ExportResult",
    # Decorators
    "ChunkDecorator",
    "MessageDecoratorChain",
    "NoopChunkDecorator",
    "QueryStringDecorator",
    "NoopQueryStringDecorator",
    "ParameterQueryStringDecorator",
    # Runtime
    "ExportBackend",
    "EngineExportBackend",
    "ElasticsearchClient",
    "InMemorySearchEngine",
    "IndexRange",
    "IndexRangeLookup",
    "StaticIndexResolver",
    # Sinks
    "CsvChunkWriter",
    "InMemoryChunkSink",
]
