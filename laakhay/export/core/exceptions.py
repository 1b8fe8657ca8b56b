"""Custom exception hierarchy."""

from __future__ import annotations


class ExportError(Exception):
    """Base exception for all export failures.

    Backend failures are wrapped into this type; the original engine error is
    available as ``cause`` (and as ``__cause__`` when raised with ``from``).
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConfigurationError(ExportError):
    """Stored search cannot be turned into an export request.

    Raised before any backend call, e.g. for a search with several queries
    and no search type id, or a search without queries.
    """

    pass


class UnsupportedSearchTypeError(ConfigurationError):
    """Resolved search type is not a message list."""

    def __init__(self, message: str, search_type_id: str | None = None, kind: str | None = None) -> None:
        super().__init__(message)
        self.search_type_id = search_type_id
        self.kind = kind


class EngineError(Exception):
    """Error raised by the search engine or its collaborators."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EngineQueryError(EngineError):
    """Malformed or disallowed query (e.g. an unsanctioned leading wildcard)."""

    pass


class EngineExecutionError(EngineError):
    """Transport or backend failure while fetching a page."""

    pass
