"""Core enumerations shared across the export pipeline.

Key Types:
    - SortDirection: Ordering of a sort field
    - ExportState: Lifecycle of a single export run
"""

from enum import Enum


class SortDirection(str, Enum):
    """Sort direction understood by every engine client."""

    ASC = "asc"
    DESC = "desc"

    @property
    def is_descending(self) -> bool:
        return self is SortDirection.DESC


class ExportState(str, Enum):
    """States of one backend run.

    A run starts in INIT, moves to FETCHING once indices are resolved and ends
    in DONE or FAILED.
    """

    INIT = "init"
    FETCHING = "fetching"
    DONE = "done"
    FAILED = "failed"
