"""Structured logging for export runs.

Each helper emits one event-name message with its details in ``extra`` so
log pipelines can index them.
"""

from __future__ import annotations

import logging

from ...models.result import ExportResult

logger = logging.getLogger(__name__)


def log_export_started(
    *,
    export_id: str,
    indices: frozenset[str],
    streams: frozenset[str] | None,
    chunk_size: int,
    limit: int | None,
) -> None:
    """Log the start of fetching for an export.

    Args:
        export_id: Identifier of the run, for correlating log lines
        indices: Indices the run searches
        streams: Streams requested, None for all
        chunk_size: Page size
        limit: Requested result limit
    """
    logger.info(
        "export_started",
        extra={
            "export_id": export_id,
            "indices": sorted(indices),
            "streams": sorted(streams) if streams is not None else None,
            "chunk_size": chunk_size,
            "limit": limit,
        },
    )


def log_chunk_delivered(
    *,
    export_id: str,
    chunk_index: int,
    messages: int,
    latency_ms: float | None = None,
) -> None:
    """Log delivery of one chunk to the sink.

    Args:
        export_id: Identifier of the run
        chunk_index: Zero-based position of the chunk in the export
        messages: Number of messages in the chunk
        latency_ms: Time spent fetching and delivering the page (if measured)
    """
    logger.debug(
        "export_chunk_delivered",
        extra={
            "export_id": export_id,
            "chunk_index": chunk_index,
            "messages": messages,
            "latency_ms": latency_ms,
        },
    )


def log_export_complete(
    *,
    export_id: str,
    result: ExportResult,
    total_latency_ms: float | None = None,
) -> None:
    """Log completion of an export run.

    Args:
        export_id: Identifier of the run
        result: ExportResult of the run
        total_latency_ms: Wall time of the run in milliseconds
    """
    logger.info(
        "export_complete",
        extra={
            "export_id": export_id,
            "state": result.state.value,
            "chunks_delivered": result.chunks_delivered,
            "messages_delivered": result.messages_delivered,
            "pages_fetched": result.pages_fetched,
            "total_latency_ms": total_latency_ms,
        },
    )


def log_export_error(
    *,
    export_id: str,
    stage: str,
    chunks_delivered: int,
    error_type: str,
    error_message: str,
) -> None:
    """Log a failed export.

    Args:
        export_id: Identifier of the run
        stage: Where the failure happened ("prepare" or "fetch")
        chunks_delivered: Chunks that reached the sink before the failure
        error_type: Exception class name
        error_message: Exception message
    """
    logger.error(
        "export_error",
        extra={
            "export_id": export_id,
            "stage": stage,
            "chunks_delivered": chunks_delivered,
            "error_type": error_type,
            "error_message": error_message,
        },
    )
