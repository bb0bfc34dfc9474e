"""Per-member music preferences."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from growmies_music.domain.shared.datetime_utils import utcnow
from growmies_music.domain.shared.types import DiscordSnowflake, UtcDatetimeField, VolumePercent
from growmies_music.domain.shared.validators import normalize_string_list


class UserPreference(BaseModel):
    """One row per (user, guild); created lazily on first access."""

    model_config = ConfigDict(validate_assignment=True)

    MAX_FAVORITE_GENRES: ClassVar[int] = 20
    MAX_BLOCKED_SOURCES: ClassVar[int] = 10

    user_id: DiscordSnowflake
    guild_id: DiscordSnowflake
    preferred_volume: VolumePercent = 50
    cannabis_music_enabled: bool = False
    auto_queue_enabled: bool = False
    meditation_mode_enabled: bool = False
    explicit_content_filter: bool = True
    favorite_genres: list[str] = Field(default_factory=list)
    blocked_sources: list[str] = Field(default_factory=list)
    created_at: UtcDatetimeField = Field(default_factory=utcnow)
    updated_at: UtcDatetimeField = Field(default_factory=utcnow)

    @field_validator("favorite_genres")
    @classmethod
    def _normalize_genres(cls, v: list[str]) -> list[str]:
        return normalize_string_list(v, limit=cls.MAX_FAVORITE_GENRES, lowercase=True)

    @field_validator("blocked_sources")
    @classmethod
    def _normalize_sources(cls, v: list[str]) -> list[str]:
        return normalize_string_list(v, limit=cls.MAX_BLOCKED_SOURCES)

    @classmethod
    def defaults_for(cls, user_id: int, guild_id: int, preferred_volume: int = 50) -> UserPreference:
        return cls(user_id=user_id, guild_id=guild_id, preferred_volume=preferred_volume)

    def is_source_blocked(self, source: str) -> bool:
        return source in self.blocked_sources

    def touch(self) -> None:
        self.updated_at = utcnow()
