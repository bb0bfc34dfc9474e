"""Core domain entities for the music bounded context."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from growmies_music.domain.music.value_objects import (
    EndReason,
    LoopMode,
    SessionStatus,
    SessionType,
    TrackSource,
)
from growmies_music.domain.shared.datetime_utils import utcnow
from growmies_music.domain.shared.exceptions import InvalidOperationError
from growmies_music.domain.shared.messages import ErrorMessages
from growmies_music.domain.shared.types import (
    ChannelIdField,
    DiscordSnowflake,
    DurationSeconds,
    NonEmptyStr,
    NonNegativeInt,
    QueuePositionInt,
    SessionIdStr,
    TrackTitleStr,
    UtcDatetimeField,
    VolumePercent,
)


def _default_session_metadata() -> dict[str, Any]:
    return {"loop_mode": LoopMode.NONE.value, "shuffle_enabled": False}


class TrackInfo(BaseModel):
    """Immutable description of a track to be queued or played."""

    model_config = ConfigDict(frozen=True, strict=True)

    url: NonEmptyStr
    title: TrackTitleStr = "Unknown Track"
    duration_seconds: DurationSeconds | None = None
    requested_by_user_id: DiscordSnowflake
    source: TrackSource = TrackSource.YOUTUBE
    is_cannabis_content: bool = False
    thumbnail_url: str | None = None
    artist: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class QueueEntry(BaseModel):
    """One persisted track within a session's ordered playlist.

    ``position`` is an identifier, not a dense index: removing an entry never
    renumbers the rest, and only a shuffle reassigns positions (among pending
    entries only).
    """

    model_config = ConfigDict(strict=True)

    id: NonNegativeInt
    session_id: SessionIdStr
    position: QueuePositionInt

    track_url: NonEmptyStr
    track_title: TrackTitleStr
    duration_seconds: DurationSeconds | None = None
    requested_by_user_id: DiscordSnowflake
    track_source: TrackSource = TrackSource.YOUTUBE
    is_cannabis_content: bool = False
    thumbnail_url: str | None = None
    artist: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    added_at: UtcDatetimeField = Field(default_factory=utcnow)
    played_at: UtcDatetimeField | None = None
    failed_at: UtcDatetimeField | None = None

    @property
    def is_played(self) -> bool:
        return self.played_at is not None

    @property
    def is_pending(self) -> bool:
        return self.played_at is None and self.failed_at is None

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        if self.duration_seconds is None:
            return "Unknown"

        hours, remainder = divmod(self.duration_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    def was_requested_by(self, user_id: int) -> bool:
        return self.requested_by_user_id == user_id

    def to_track_info(self) -> TrackInfo:
        return TrackInfo(
            url=self.track_url,
            title=self.track_title,
            duration_seconds=self.duration_seconds,
            requested_by_user_id=self.requested_by_user_id,
            source=self.track_source,
            is_cannabis_content=self.is_cannabis_content,
            thumbnail_url=self.thumbnail_url,
            artist=self.artist,
            metadata=dict(self.metadata),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "position": self.position,
            "url": self.track_url,
            "title": self.track_title,
            "duration_seconds": self.duration_seconds,
            "requested_by": self.requested_by_user_id,
            "source": self.track_source.value,
            "is_cannabis_content": self.is_cannabis_content,
            "played": self.is_played,
        }


class QueueStats(BaseModel):
    """Counts and estimated remaining playtime for one session's queue."""

    model_config = ConfigDict(frozen=True)

    total_tracks: NonNegativeInt = 0
    played_tracks: NonNegativeInt = 0
    unplayed_tracks: NonNegativeInt = 0
    failed_tracks: NonNegativeInt = 0
    estimated_playtime_minutes: NonNegativeInt = 0

    @staticmethod
    def estimate_minutes(total_seconds: int) -> int:
        return math.ceil(total_seconds / 60) if total_seconds > 0 else 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalTracks": self.total_tracks,
            "playedTracks": self.played_tracks,
            "unplayedTracks": self.unplayed_tracks,
            "failedTracks": self.failed_tracks,
            "estimatedPlaytimeMinutes": self.estimated_playtime_minutes,
        }


class MusicSession(BaseModel):
    """Aggregate root for one guild's voice/music activity.

    At most one live (active or paused) session exists per guild. Ended
    sessions are kept for statistics and are never deleted.
    """

    model_config = ConfigDict(strict=True, validate_assignment=True)

    DEFAULT_VOLUME: ClassVar[int] = 50

    id: SessionIdStr = Field(default_factory=lambda: uuid4().hex)
    guild_id: DiscordSnowflake
    voice_channel_id: ChannelIdField
    text_channel_id: ChannelIdField
    created_by_user_id: DiscordSnowflake

    session_type: SessionType = SessionType.GENERAL
    is_cannabis_content: bool = False
    requires_21_plus: bool = False

    status: SessionStatus = SessionStatus.ACTIVE
    current_track_index: NonNegativeInt = 0
    volume_level: VolumePercent = DEFAULT_VOLUME
    metadata: dict[str, Any] = Field(default_factory=_default_session_metadata)

    started_at: UtcDatetimeField = Field(default_factory=utcnow)
    ended_at: UtcDatetimeField | None = None

    @model_validator(mode="after")
    def _check_classification(self) -> MusicSession:
        if self.session_type.is_cannabis_flagged and not self.is_cannabis_content:
            raise ValueError(ErrorMessages.SESSION_TYPE_REQUIRES_CANNABIS_FLAG)
        if self.is_cannabis_content and not self.requires_21_plus:
            raise ValueError(ErrorMessages.CANNABIS_SESSION_REQUIRES_21_PLUS)
        return self

    @property
    def is_live(self) -> bool:
        return self.status.is_live

    @property
    def is_paused(self) -> bool:
        return self.status == SessionStatus.PAUSED

    @property
    def loop_mode(self) -> LoopMode:
        return LoopMode(self.metadata.get("loop_mode", LoopMode.NONE.value))

    @property
    def end_reason(self) -> str | None:
        return self.metadata.get("end_reason")

    @property
    def duration_minutes(self) -> int:
        end = self.ended_at or utcnow()
        return max(0, int((end - self.started_at).total_seconds() // 60))

    def set_status(self, target: SessionStatus) -> None:
        if target == self.status:
            return
        if not self.status.can_transition_to(target):
            raise InvalidOperationError(f"set_status({target.value})", self.status.value)
        self.status = target

    def end(self, reason: EndReason | str, *, at: datetime | None = None) -> None:
        """Terminal transition; ``ended_at`` is written exactly once."""
        if self.status == SessionStatus.ENDED:
            raise InvalidOperationError("end", self.status.value)
        self.status = SessionStatus.ENDED
        self.ended_at = at or utcnow()
        self.metadata = {
            **self.metadata,
            "end_reason": str(reason),
            "final_track_index": self.current_track_index,
        }

    def advance_track_index(self) -> None:
        self.current_track_index += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "guild_id": self.guild_id,
            "voice_channel_id": self.voice_channel_id,
            "text_channel_id": self.text_channel_id,
            "session_type": self.session_type.value,
            "is_cannabis_content": self.is_cannabis_content,
            "requires_21_plus": self.requires_21_plus,
            "status": self.status.value,
            "current_track_index": self.current_track_index,
            "volume_level": self.volume_level,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }
