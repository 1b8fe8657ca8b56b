"""Time range models.

All ranges resolve to an AbsoluteRange, a half-open interval ``[from, to)``
in UTC. Naive datetimes are treated as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class AbsoluteRange(BaseModel):
    """Fixed ``[from, to)`` interval."""

    type: Literal["absolute"] = "absolute"
    from_: datetime = Field(..., alias="from")
    to: datetime

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("from_", "to")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        """Store both bounds as aware UTC datetimes."""
        return _as_utc(v)

    @model_validator(mode="after")
    def validate_bounds(self) -> AbsoluteRange:
        if self.to < self.from_:
            raise ValueError("to must not be before from")
        return self

    @classmethod
    def create(cls, from_: datetime | str, to: datetime | str) -> AbsoluteRange:
        """Build a range from datetimes or ISO-8601 strings."""
        if isinstance(from_, str):
            from_ = datetime.fromisoformat(from_.replace("Z", "+00:00"))
        if isinstance(to, str):
            to = datetime.fromisoformat(to.replace("Z", "+00:00"))
        return cls(from_=from_, to=to)

    @property
    def duration(self) -> timedelta:
        return self.to - self.from_

    def to_absolute(self, now: datetime | None = None) -> AbsoluteRange:
        return self

    def contains(self, timestamp: datetime) -> bool:
        return self.from_ <= _as_utc(timestamp) < self.to

    def overlaps(self, begin: datetime, end: datetime) -> bool:
        """Whether ``[begin, end]`` shares at least one instant with this range."""
        return _as_utc(begin) < self.to and _as_utc(end) >= self.from_


class RelativeRange(BaseModel):
    """The last ``range`` seconds, counted back from the moment of resolution."""

    type: Literal["relative"] = "relative"
    range: int = Field(..., gt=0)

    model_config = ConfigDict(frozen=True)

    def to_absolute(self, now: datetime | None = None) -> AbsoluteRange:
        now = _as_utc(now) if now is not None else datetime.now(UTC)
        return AbsoluteRange(from_=now - timedelta(seconds=self.range), to=now)


class OffsetRange(BaseModel):
    """A search type range derived from its query's range, moved back in time.

    Attributes:
        offset: Shift in seconds; None shifts by the length of the source range
            (i.e. "the previous period")
        source: Range being shifted; filled in when the effective time range of
            a search type is computed
    """

    type: Literal["offset"] = "offset"
    offset: int | None = Field(None, ge=0)
    source: Annotated[AbsoluteRange | RelativeRange, Field(discriminator="type")] | None = None

    model_config = ConfigDict(frozen=True)

    def relative_to(self, source: AbsoluteRange | RelativeRange) -> OffsetRange:
        return self.model_copy(update={"source": source})

    def to_absolute(self, now: datetime | None = None) -> AbsoluteRange:
        if self.source is None:
            raise ValueError("OffsetRange cannot be resolved without a source range")
        base = self.source.to_absolute(now)
        shift = timedelta(seconds=self.offset) if self.offset is not None else base.duration
        return AbsoluteRange(from_=base.from_ - shift, to=base.to - shift)


TimeRange = Annotated[AbsoluteRange | RelativeRange | OffsetRange, Field(discriminator="type")]
QueryTimeRange = Annotated[AbsoluteRange | RelativeRange, Field(discriminator="type")]
