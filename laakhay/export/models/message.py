"""Exported message and chunk structures."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from ..config import DOCUMENT_ID_FIELD


@dataclass
class SimpleMessage:
    """One exported message: its field values plus the index it came from.

    Fields keep the order the engine returned them in. The mapping is only
    modified by consumers pruning fields with ``keep_only``.
    """

    index: str
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str | None:
        return self.fields.get(DOCUMENT_ID_FIELD)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def keep_only(self, names: Iterable[str]) -> None:
        keep = set(names)
        for name in list(self.fields):
            if name not in keep:
                del self.fields[name]


@dataclass(frozen=True)
class SimpleMessageChunk:
    """Ordered batch of messages delivered to a sink as one unit."""

    fields_in_order: tuple[str, ...]
    messages: tuple[SimpleMessage, ...] = ()
    is_first_chunk: bool = False

    @classmethod
    def from_messages(
        cls,
        fields_in_order: Iterable[str],
        messages: Iterable[SimpleMessage],
        is_first_chunk: bool = False,
    ) -> SimpleMessageChunk:
        return cls(
            fields_in_order=tuple(fields_in_order),
            messages=tuple(messages),
            is_first_chunk=is_first_chunk,
        )

    def __len__(self) -> int:
        return len(self.messages)

    def with_messages(self, messages: Iterable[SimpleMessage]) -> SimpleMessageChunk:
        """Copy of this chunk with other messages, same fields and first-chunk flag."""
        return replace(self, messages=tuple(messages))

    def keep_only_fields(self, names: Iterable[str] | None = None) -> SimpleMessageChunk:
        """Prune every message down to ``names`` (default: the chunk's own columns)."""
        keep = tuple(names) if names is not None else self.fields_in_order
        for message in self.messages:
            message.keep_only(keep)
        return self

    def rows(self) -> list[list[Any]]:
        """Message values laid out in column order, None for missing fields."""
        return [[message.get(name) for name in self.fields_in_order] for message in self.messages]
