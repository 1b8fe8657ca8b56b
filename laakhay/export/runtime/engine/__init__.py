"""Search engine clients used by the export backend."""

from .base import EngineClient, EngineHit, EngineQuery
from .elasticsearch import ElasticsearchClient
from .in_memory import InMemorySearchEngine
from .query_string import (
    check_leading_wildcard,
    concatenate_query_strings,
    parse_query_string,
    validate_query_string,
)

__all__ = [
    "EngineClient",
    "EngineHit",
    "EngineQuery",
    "ElasticsearchClient",
    "InMemorySearchEngine",
    "check_leading_wildcard",
    "concatenate_query_strings",
    "parse_query_string",
    "validate_query_string",
]
