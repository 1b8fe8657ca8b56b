"""Chunk decorators rewriting delivered messages.

Decorating a chunk never changes its boundaries: the decorated chunk has the
same messages in the same order, the same field order and the same
first-chunk flag.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Protocol

from ..models.message import SimpleMessage, SimpleMessageChunk
from ..models.request import MessagesRequest
from ..models.search import Decorator

logger = logging.getLogger(__name__)

MessageDecoratorFn = Callable[[SimpleMessage, Decorator], None]


class ChunkDecorator(Protocol):
    def decorate(
        self,
        chunk: SimpleMessageChunk,
        decorators: Sequence[Decorator],
        request: MessagesRequest,
    ) -> SimpleMessageChunk:
        ...


class NoopChunkDecorator:
    def decorate(
        self,
        chunk: SimpleMessageChunk,
        decorators: Sequence[Decorator],
        request: MessagesRequest,
    ) -> SimpleMessageChunk:
        return chunk


class _BlankMissing(dict):
    def __missing__(self, key: str) -> str:
        return ""


def lowercase(message: SimpleMessage, decorator: Decorator) -> None:
    value = message.fields.get(decorator.field)
    if isinstance(value, str):
        message.fields[decorator.field] = value.lower()


def uppercase(message: SimpleMessage, decorator: Decorator) -> None:
    value = message.fields.get(decorator.field)
    if isinstance(value, str):
        message.fields[decorator.field] = value.upper()


def format_string(message: SimpleMessage, decorator: Decorator) -> None:
    """Write ``config["format"]`` rendered with the message fields into ``field``.

    Missing fields render as empty strings.
    """
    template = decorator.config.get("format")
    if not template or not decorator.field:
        return
    message.fields[decorator.field] = template.format_map(_BlankMissing(message.fields))


BUILTIN_DECORATORS: dict[str, MessageDecoratorFn] = {
    "lowercase": lowercase,
    "uppercase": uppercase,
    "format_string": format_string,
}


class MessageDecoratorChain:
    """ChunkDecorator applying message decorators in ascending ``order``.

    Decorator types are looked up in a registry (built-ins plus anything
    registered); unknown types are logged and skipped.
    """

    def __init__(self, registry: Mapping[str, MessageDecoratorFn] | None = None) -> None:
        self._registry: dict[str, MessageDecoratorFn] = dict(BUILTIN_DECORATORS)
        if registry:
            self._registry.update(registry)

    def register(self, decorator_type: str, fn: MessageDecoratorFn) -> None:
        self._registry[decorator_type] = fn

    def decorate(
        self,
        chunk: SimpleMessageChunk,
        decorators: Sequence[Decorator],
        request: MessagesRequest,
    ) -> SimpleMessageChunk:
        if not decorators:
            return chunk

        messages = [SimpleMessage(index=m.index, fields=dict(m.fields)) for m in chunk.messages]
        for decorator in sorted(decorators, key=lambda d: d.order):
            fn = self._registry.get(decorator.type)
            if fn is None:
                logger.warning(
                    "unknown_decorator_skipped",
                    extra={"decorator_type": decorator.type, "field": decorator.field},
                )
                continue
            for message in messages:
                fn(message, decorator)
        return chunk.with_messages(messages)

