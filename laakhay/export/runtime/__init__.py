"""Runtime layer: index lookup, engine clients and the export backend."""

from .engine import ElasticsearchClient, EngineClient, EngineHit, EngineQuery, InMemorySearchEngine
from .export import ChunkForwarder, EngineExportBackend, ExportBackend
from .index_lookup import IndexRange, IndexRangeLookup, IndexResolver, StaticIndexResolver

__all__ = [
    "ChunkForwarder",
    "ElasticsearchClient",
    "EngineClient",
    "EngineExportBackend",
    "EngineHit",
    "EngineQuery",
    "ExportBackend",
    "InMemorySearchEngine",
    "IndexRange",
    "IndexRangeLookup",
    "IndexResolver",
    "StaticIndexResolver",
]
