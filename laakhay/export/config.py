"""Shared export constants and backend settings.

This module centralizes defaults used by the request models, the export
backend and the engine clients so those modules can stay small and focused.
"""

from __future__ import annotations

from dataclasses import dataclass

from .core.enums import SortDirection

# Messages fetched per engine page unless the request says otherwise
DEFAULT_CHUNK_SIZE = 1000

# Output columns of an export that does not name its own
DEFAULT_FIELDS: tuple[str, ...] = ("timestamp", "source", "message")

TIMESTAMP_FIELD = "timestamp"
MESSAGE_ID_FIELD = "gl2_message_id"
STREAMS_FIELD = "streams"
DOCUMENT_ID_FIELD = "_id"

# Always projected from the engine, whatever the requested columns are
RESERVED_FIELDS: tuple[str, ...] = (
    MESSAGE_ID_FIELD,
    "source",
    "message",
    TIMESTAMP_FIELD,
    STREAMS_FIELD,
)

# Engine natural order used when a request carries no sort
DEFAULT_SORT: tuple[tuple[str, SortDirection], ...] = ((TIMESTAMP_FIELD, SortDirection.DESC),)

# Unique per message, makes search_after pagination reproducible
TIEBREAKER_FIELD = MESSAGE_ID_FIELD

DEFAULT_ELASTICSEARCH_URL = "http://localhost:9200"
DEFAULT_HTTP_TIMEOUT = 60.0


@dataclass(frozen=True)
class BackendSettings:
    """Behavior switches of the export backend.

    Attributes:
        allow_leading_wildcard: Accept query terms starting with ``*`` or ``?``
        tiebreaker_field: Field appended to every sort for stable pagination
        default_sort: Sort applied when a request has none
    """

    allow_leading_wildcard: bool = False
    tiebreaker_field: str = TIEBREAKER_FIELD
    default_sort: tuple[tuple[str, SortDirection], ...] = DEFAULT_SORT
