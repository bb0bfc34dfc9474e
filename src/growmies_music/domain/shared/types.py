"""Constrained Pydantic types shared by the session, queue, access and vote models.

Models annotate fields with these instead of repeating ``Field`` bounds::

    class QueueEntry(BaseModel):
        session_id: SessionIdStr
        position: QueuePositionInt
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

# ── Discord IDs ─────────────────────────────────────────────────────

DiscordSnowflake = Annotated[int, Field(gt=0, lt=2**64)]
"""Guild, channel or user ID: 1 … 2^64-1."""

ChannelIdField = DiscordSnowflake


# ── Numbers ─────────────────────────────────────────────────────────

NonNegativeInt = Annotated[int, Field(ge=0)]
PositiveInt = Annotated[int, Field(gt=0)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]

VolumePercent = Annotated[int, Field(ge=0, le=100)]
"""Session and preference volume, 0 … 100. The transport gets ``volume / 100``."""

DurationSeconds = Annotated[int, Field(ge=0, le=86_400)]
"""Track length, capped at a day; longer streams are stored as unknown."""

QueuePositionInt = Annotated[int, Field(ge=1)]
"""One-based queue position, unique within a session and never reused."""


# ── Strings ─────────────────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
TrackTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]

SessionIdStr = Annotated[str, Field(min_length=1, max_length=64)]
"""Music session ID (uuid4 hex)."""


# ── Datetimes ───────────────────────────────────────────────────────


def _ensure_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    return v.astimezone(UTC)


UtcDatetimeField = Annotated[datetime, BeforeValidator(_ensure_utc)]
"""Aware datetime, normalised to UTC. Naive values are rejected."""
