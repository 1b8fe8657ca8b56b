"""Export request resolution from stored searches.

This module turns a stored Search (plus an optional search type id and the
user's ResultFormat) into one immutable MessagesRequest.

Architecture:
    Settings come from three overlapping sources with fixed precedence:
    - Query: time range, free-text filter, referenced streams
    - Message list search type: time range override, filter, stream
      restriction, sort
    - ResultFormat: fields, sort, limit

Resolution Rules:
    - Query: the one owning the search type id; without an id the search
      must have exactly one query
    - Time range: the message list's effective range if it defines one,
      else the query's
    - Query string: query filter AND message list filter, then passed
      through the QueryStringDecorator
    - Streams: the message list's streams if non-empty, else every stream
      the query references
    - Fields: ResultFormat, verbatim
    - Sort: ResultFormat if non-empty, else the message list's, else none
    - Limit: ResultFormat, else unlimited

See Also:
    - MessagesExporter: Uses the builder before handing requests to a backend
"""

from __future__ import annotations

from dataclasses import dataclass

from ..core.exceptions import ConfigurationError, UnsupportedSearchTypeError
from ..decorators.query_string import NoopQueryStringDecorator, QueryStringDecorator
from ..models.request import MessagesRequest, ResultFormat
from ..models.search import MessageList, Query, Search
from ..models.sort import Sort
from ..models.time_range import TimeRange
from ..runtime.engine.query_string import concatenate_query_strings

__all__ = ["ExportRequestBuilder", "ResolvedRequest"]


@dataclass(frozen=True)
class ResolvedRequest:
    """A built request together with the query and message list it came from."""

    request: MessagesRequest
    query: Query
    message_list: MessageList | None = None


class ExportRequestBuilder:
    """Resolves MessagesRequest instances from stored searches.

    Example:
        >>> builder = ExportRequestBuilder()
        >>> request = builder.build_request(search, ResultFormat(limit=500))
    """

    def __init__(self, query_string_decorator: QueryStringDecorator | None = None) -> None:
        self._query_string_decorator = query_string_decorator or NoopQueryStringDecorator()

    def build_request(
        self,
        search: Search,
        result_format: ResultFormat,
        search_type_id: str | None = None,
    ) -> MessagesRequest:
        """Build the export request for ``search``.

        Args:
            search: Stored search to export
            result_format: Requested columns, sort and limit
            search_type_id: Message list to export; optional for single-query searches

        Returns:
            Fully resolved, immutable MessagesRequest

        Raises:
            ConfigurationError: Search is ambiguous, empty, or has no such search type
            UnsupportedSearchTypeError: Search type is not a message list
        """
        return self.resolve(search, result_format, search_type_id).request

    def resolve(
        self,
        search: Search,
        result_format: ResultFormat,
        search_type_id: str | None = None,
    ) -> ResolvedRequest:
        """Like ``build_request``, also returning the selected query and message list."""
        query = self.query_from(search, search_type_id)
        message_list = self.message_list_from(query, search_type_id)

        request = MessagesRequest(
            time_range=self._time_range(query, message_list),
            streams=self._streams(query, message_list),
            query_string=self._query_string(search, query, message_list),
            fields_in_order=result_format.fields_in_order,
            sort=self._sort(result_format, message_list),
            limit=result_format.limit,
        )
        return ResolvedRequest(request=request, query=query, message_list=message_list)

    def query_from(self, search: Search, search_type_id: str | None) -> Query:
        if search_type_id is not None:
            return search.query_for_search_type(search_type_id)
        if len(search.queries) > 1:
            raise ConfigurationError(
                f"Can't get messages for search with id {search.id}, because it contains multiple queries"
            )
        if not search.queries:
            raise ConfigurationError(f"Invalid search {search.id} with empty query list")
        return search.queries[0]

    def message_list_from(self, query: Query, search_type_id: str | None) -> MessageList | None:
        search_type = query.search_type(search_type_id)
        if search_type is None:
            return None
        if not isinstance(search_type, MessageList):
            raise UnsupportedSearchTypeError(
                "Only message lists are currently supported",
                search_type_id=search_type.id,
                kind=search_type.type,
            )
        return search_type

    @staticmethod
    def _time_range(query: Query, message_list: MessageList | None) -> TimeRange:
        if message_list is not None and message_list.timerange is not None:
            return query.effective_time_range(message_list)
        return query.timerange

    def _query_string(self, search: Search, query: Query, message_list: MessageList | None) -> str:
        undecorated = concatenate_query_strings(
            query.query,
            message_list.query if message_list is not None else None,
        )
        return self._query_string_decorator.decorate_query_string(undecorated, search, query)

    @staticmethod
    def _streams(query: Query, message_list: MessageList | None) -> frozenset[str] | None:
        if message_list is not None and message_list.effective_streams:
            return message_list.effective_streams
        # a query referencing no stream searches all of them
        return query.used_stream_ids or None

    @staticmethod
    def _sort(result_format: ResultFormat, message_list: MessageList | None) -> tuple[Sort, ...]:
        if result_format.sort:
            return result_format.sort
        if message_list is not None and message_list.sort is not None:
            return message_list.sort
        return ()
