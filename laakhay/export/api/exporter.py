"""Public export entry point.

MessagesExporter wires request resolution, chunk decoration and the export
backend together. It exports either a ready MessagesRequest or a stored
search; in the latter case chunks of a message list are passed through the
ChunkDecorator with the message list's decorators before reaching the sink.
"""

from __future__ import annotations

import logging

from ..decorators.chunk import ChunkDecorator, NoopChunkDecorator
from ..decorators.query_string import QueryStringDecorator
from ..models.message import SimpleMessageChunk
from ..models.request import MessagesRequest, ResultFormat
from ..models.result import ExportResult
from ..models.search import MessageList, Search
from ..runtime.export.backend import ChunkForwarder, ExportBackend, forward_chunk
from .request_builder import ExportRequestBuilder

logger = logging.getLogger(__name__)


class MessagesExporter:
    """Exports messages of raw requests or stored searches to a sink."""

    def __init__(
        self,
        backend: ExportBackend,
        chunk_decorator: ChunkDecorator | None = None,
        query_string_decorator: QueryStringDecorator | None = None,
    ) -> None:
        self._backend = backend
        self._chunk_decorator = chunk_decorator or NoopChunkDecorator()
        self._request_builder = ExportRequestBuilder(query_string_decorator)

    @property
    def request_builder(self) -> ExportRequestBuilder:
        return self._request_builder

    async def export(self, request: MessagesRequest, forward: ChunkForwarder) -> ExportResult:
        """Run ``request`` on the backend, delivering chunks to ``forward``."""
        return await self._backend.run(request, forward)

    async def export_search(
        self,
        search: Search,
        result_format: ResultFormat,
        forward: ChunkForwarder,
        *,
        search_type_id: str | None = None,
    ) -> ExportResult:
        """Export the messages of a stored search.

        Args:
            search: Stored search
            result_format: Requested columns, sort and limit
            forward: Sink receiving the chunks
            search_type_id: Message list to export

        Raises:
            ConfigurationError: Request cannot be resolved; nothing is fetched
            ExportError: Backend failure, possibly after some chunks were delivered
        """
        resolved = self._request_builder.resolve(search, result_format, search_type_id)
        request = resolved.request

        logger.debug(
            "search_export_requested",
            extra={
                "search_id": search.id,
                "query_id": resolved.query.id,
                "search_type_id": search_type_id,
                "decorated": resolved.message_list is not None,
            },
        )
        return await self.export(
            request, self._decorate_if_necessary(resolved.message_list, forward, request)
        )

    def _decorate_if_necessary(
        self,
        message_list: MessageList | None,
        forward: ChunkForwarder,
        request: MessagesRequest,
    ) -> ChunkForwarder:
        if message_list is None:
            return forward

        async def decorated(chunk: SimpleMessageChunk) -> None:
            decorated_chunk = self._chunk_decorator.decorate(chunk, message_list.decorators, request)
            await forward_chunk(forward, decorated_chunk)

        return decorated
