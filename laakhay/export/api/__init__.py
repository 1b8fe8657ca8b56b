"""Public export API."""

from .exporter import MessagesExporter
from .request_builder import ExportRequestBuilder, ResolvedRequest

__all__ = ["ExportRequestBuilder", "MessagesExporter", "ResolvedRequest"]
