"""Tagged store values.

Adapters decode the store's native wire types into these variants so the
transcoder never probes for implementation-specific wrapper types. A stored
value is one of: a scalar, ``Timestamp``, ``GeoPoint``, ``DocumentReference``,
or a composite (``dict`` / ``list``) of stored values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

_NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True, order=True)
class Timestamp:
    """A point in time with nanosecond resolution."""

    seconds: int
    nanoseconds: int = 0

    @classmethod
    def from_datetime(cls, value: datetime, nanoseconds: int | None = None) -> Timestamp:
        """Build a Timestamp from a datetime. Naive datetimes are taken as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        seconds = int(value.replace(microsecond=0).timestamp())
        if nanoseconds is None:
            nanoseconds = value.microsecond * 1000
        return cls(seconds=seconds, nanoseconds=nanoseconds)

    def to_datetime(self, milliseconds: bool = False) -> datetime:
        """Convert to an aware UTC datetime.

        Python datetimes stop at microseconds; ``milliseconds`` truncates further.
        """
        micros = self.nanoseconds // 1000
        if milliseconds:
            micros -= micros % 1000
        base = datetime.fromtimestamp(self.seconds, tz=timezone.utc)
        return base.replace(microsecond=micros)


@dataclass(frozen=True)
class GeoPoint:
    """A geographic point."""

    latitude: float
    longitude: float

    def to_plain(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class DocumentReference:
    """A reference to another document, by id and full path."""

    id: str
    path: str

    def to_plain(self) -> dict[str, str]:
        return {"id": self.id, "path": self.path}


@dataclass(frozen=True)
class StoredDocument:
    """A document as returned by an adapter: its id plus decoded field data."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


def encode_native(value: Any) -> Any:
    """Replace native datetimes with Timestamps, recursing into composites."""
    if isinstance(value, datetime):
        return Timestamp.from_datetime(value)
    if isinstance(value, dict):
        return {k: encode_native(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_native(v) for v in value]
    return value
