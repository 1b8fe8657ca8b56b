"""Paginated export backend."""

from .backend import ChunkForwarder, EngineExportBackend, ExportBackend, forward_chunk

__all__ = ["ChunkForwarder", "EngineExportBackend", "ExportBackend", "forward_chunk"]
