"""Runtime configuration for the music bot.

One frozen ``Settings`` object is built from the environment (and ``.env``)
at startup. Each concern gets its own nested section, addressed in the
environment as ``SECTION__FIELD``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.constants import AudioConstants, LimitConstants, TimeConstants
from ..domain.shared.messages import ErrorMessages
from ..domain.shared.validators import validate_discord_snowflake

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class DatabaseSettings(BaseModel):
    """SQLite store location and connection tuning."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/growmies_music.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: int = Field(
        default=TimeConstants.DEFAULT_BUSY_TIMEOUT_MS,
        ge=1000,
        le=30000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: int = Field(
        default=10,
        ge=1,
        le=60,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Only SQLite URLs and ':memory:' are supported."""
        if not v.startswith("sqlite://") and v != ":memory:":
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class DiscordSettings(BaseModel):
    """Gateway token, command sync targets and bot owners."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=1,
        max_length=5,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    owner_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("owner_ids", "owners")
    )
    guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("guild_ids", "guilds")
    )
    sync_on_startup: bool = False

    @field_validator("owner_ids", "guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: tuple[int, ...] | list[int]) -> tuple[int, ...]:
        """Env vars arrive as JSON arrays; store them as tuples of valid IDs."""
        ids = tuple(v)
        for snowflake_id in ids:
            validate_discord_snowflake(snowflake_id)
        return ids


class AudioSettings(BaseModel):
    """Audio pipeline configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    default_volume: int = Field(
        default=LimitConstants.DEFAULT_VOLUME,
        ge=LimitConstants.MIN_VOLUME,
        le=LimitConstants.MAX_VOLUME,
    )
    ffmpeg_options: dict[str, str] = Field(
        default_factory=lambda: {
            "before_options": AudioConstants.FFMPEG_BEFORE_OPTIONS_DEFAULT,
            "options": AudioConstants.FFMPEG_OPTIONS_DEFAULT,
        }
    )
    ytdlp_format: str = AudioConstants.YTDLP_FORMAT_DEFAULT


class AccessSettings(BaseModel):
    """Age-verification gate configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    cache_ttl_seconds: int = Field(
        default=TimeConstants.ACCESS_CACHE_TTL,
        ge=0,
        validation_alias=AliasChoices("cache_ttl_seconds", "cache_ttl"),
    )


class PreferenceSettings(BaseModel):
    """User preference configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    cache_ttl_seconds: int = Field(
        default=TimeConstants.PREFERENCE_CACHE_TTL,
        ge=0,
        validation_alias=AliasChoices("cache_ttl_seconds", "cache_ttl"),
    )


class VotingSettings(BaseModel):
    """Skip-vote threshold, small-audience rule and vote lifetime."""

    model_config = SettingsConfigDict(frozen=True, strict=True)

    skip_threshold_percentage: float = Field(
        default=LimitConstants.DEFAULT_SKIP_THRESHOLD_PERCENTAGE, gt=0.0, le=1.0
    )
    auto_skip_listener_count: int = Field(
        default=LimitConstants.DEFAULT_AUTO_SKIP_LISTENER_COUNT, ge=0
    )
    expiration_minutes: int = Field(default=5, ge=1)


class PlaybackSettings(BaseModel):
    """Playback engine configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True)

    max_auto_advance_attempts: int = Field(
        default=LimitConstants.DEFAULT_AUTO_ADVANCE_ATTEMPTS, ge=1, le=20
    )
    connect_timeout_s: float = Field(default=TimeConstants.VOICE_CONNECT_TIMEOUT, gt=0.0, le=60.0)
    stats_window_days: int = Field(default=LimitConstants.DEFAULT_STATS_WINDOW_DAYS, ge=1)


class Settings(BaseSettings):
    """All configuration, read once from the environment.

    Variables:
    - ENVIRONMENT, DEBUG, LOG_LEVEL
    - DISCORD__TOKEN, DISCORD__GUILD_IDS, etc. (nested with ``__``)
    - DATABASE__URL, ACCESS__CACHE_TTL_SECONDS, VOTING__SKIP_THRESHOLD_PERCENTAGE, ...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        strict=True,
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    access: AccessSettings = Field(default_factory=AccessSettings)
    preferences: PreferenceSettings = Field(default_factory=PreferenceSettings)
    voting: VotingSettings = Field(default_factory=VotingSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=sorted(_LOG_LEVELS)))
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings; environment variables override ``.env``, which overrides defaults."""
    return Settings()


def clear_settings_cache() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
