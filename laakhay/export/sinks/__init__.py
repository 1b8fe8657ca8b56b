"""Chunk sinks usable as export forwarders."""

from .csv_writer import CsvChunkWriter
from .in_memory import InMemoryChunkSink

__all__ = ["CsvChunkWriter", "InMemoryChunkSink"]
