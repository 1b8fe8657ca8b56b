"""CSV chunk sink."""

from __future__ import annotations

import csv
from collections.abc import Iterable
from datetime import datetime
from typing import Any, TextIO

from ..models.message import SimpleMessageChunk


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        value = sorted(value)
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


class CsvChunkWriter:
    """Writes chunks as CSV rows to a text stream.

    The header row (the chunk's field order) is written when the first chunk
    of an export arrives, so one writer handles one export.
    """

    def __init__(self, stream: TextIO, *, include_header: bool = True, dialect: str = "excel") -> None:
        self._writer = csv.writer(stream, dialect=dialect)
        self._include_header = include_header
        self.rows_written = 0

    def __call__(self, chunk: SimpleMessageChunk) -> None:
        if chunk.is_first_chunk and self._include_header:
            self._writer.writerow(chunk.fields_in_order)
        self._write_rows(chunk.rows())

    def _write_rows(self, rows: Iterable[list[Any]]) -> None:
        for row in rows:
            self._writer.writerow([format_value(value) for value in row])
            self.rows_written += 1
