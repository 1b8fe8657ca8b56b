"""In-memory chunk sink."""

from __future__ import annotations

from collections.abc import Iterable

from ..models.message import SimpleMessage, SimpleMessageChunk


class InMemoryChunkSink:
    """Collects delivered chunks in arrival order.

    Usable directly as the chunk forwarder of an export.
    """

    def __init__(self) -> None:
        self.chunks: list[SimpleMessageChunk] = []

    async def __call__(self, chunk: SimpleMessageChunk) -> None:
        await self.publish(chunk)

    async def publish(self, chunk: SimpleMessageChunk) -> None:
        self.chunks.append(chunk)

    @property
    def messages(self) -> list[SimpleMessage]:
        return [message for chunk in self.chunks for message in chunk.messages]

    def total_result(self, fields: Iterable[str] | None = None) -> SimpleMessageChunk:
        """All collected messages as one chunk, pruned to ``fields`` when given.

        The field order defaults to the one of the first collected chunk.
        """
        if fields is not None:
            fields = tuple(fields)
        elif self.chunks:
            fields = self.chunks[0].fields_in_order
        else:
            fields = ()
        total = SimpleMessageChunk.from_messages(fields, self.messages, is_first_chunk=True)
        return total.keep_only_fields() if fields else total

    def clear(self) -> None:
        self.chunks.clear()
