"""Core components."""

from .enums import ExportState, SortDirection
from .exceptions import (
    ConfigurationError,
    EngineError,
    EngineExecutionError,
    EngineQueryError,
    ExportError,
    UnsupportedSearchTypeError,
)

__all__ = [
    "ExportState",
    "SortDirection",
    "ExportError",
    "ConfigurationError",
    "UnsupportedSearchTypeError",
    "EngineError",
    "EngineQueryError",
    "EngineExecutionError",
]
