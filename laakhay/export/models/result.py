"""Outcome of one export run."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.enums import ExportState


@dataclass
class ExportResult:
    """Result of an export run.

    Attributes:
        state: Final state of the run
        chunks_delivered: Number of chunks handed to the sink
        messages_delivered: Total messages across those chunks
        pages_fetched: Engine pages requested, including a final empty one
        indices: Index names the run searched
    """

    state: ExportState = ExportState.INIT
    chunks_delivered: int = 0
    messages_delivered: int = 0
    pages_fetched: int = 0
    indices: frozenset[str] = field(default_factory=frozenset)
