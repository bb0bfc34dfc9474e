"""UTC timestamps and their ISO 8601 column format.

Sessions, queue entries, preferences and verification records all store
aware UTC datetimes as ISO strings with an explicit ``+00:00`` offset, so
lexical order in SQLite matches time order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from growmies_music.domain.shared.messages import ErrorMessages


@dataclass(frozen=True, slots=True)
class UtcDateTime:
    dt: datetime

    def __post_init__(self) -> None:
        if self.dt.tzinfo is None:
            raise ValueError(ErrorMessages.TIMEZONE_REQUIRED_UTC_DATETIME)
        object.__setattr__(self, "dt", self.dt.astimezone(UTC))

    @classmethod
    def from_iso(cls, value: str) -> UtcDateTime:
        # Older rows may carry a trailing Z
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return cls(datetime.fromisoformat(value))

    @classmethod
    def from_optional_iso(cls, value: str | None) -> datetime | None:
        """Parse a nullable column straight to a ``datetime``."""
        if not value:
            return None
        return cls.from_iso(value).dt

    @property
    def iso(self) -> str:
        return self.dt.isoformat()


def utcnow() -> datetime:
    return datetime.now(UTC)


def to_iso(value: datetime | None) -> str | None:
    """Serialise an optional datetime for a nullable column."""
    if value is None:
        return None
    return UtcDateTime(value).iso
