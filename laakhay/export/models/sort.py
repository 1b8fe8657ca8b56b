"""Sort specification model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import SortDirection


class Sort(BaseModel):
    """One sort key: a field and its direction."""

    field: str = Field(..., min_length=1)
    direction: SortDirection = SortDirection.ASC

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @classmethod
    def create(cls, field: str, direction: SortDirection | str = SortDirection.ASC) -> Sort:
        return cls(field=field, direction=SortDirection(direction))


def unique_in_order(items):
    """Drop repeated items, keeping the first occurrence."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return tuple(result)
