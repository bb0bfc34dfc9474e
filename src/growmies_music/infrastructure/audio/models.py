"""Pydantic models for parsing yt-dlp output and building its options."""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from growmies_music.domain.shared.types import (
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeFloat,
    NonNegativeInt,
    PositiveInt,
)

INFO_CACHE_TTL: Final[int] = 3600
INFO_CACHE_MAX_SIZE: Final[int] = 500
DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
LOG_QUERY_TRUNCATE: Final[int] = 60


def _blank_to_none(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value


class AudioFormatInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None
    acodec: NonEmptyStr | None = None


class YtDlpTrackInfo(BaseModel):
    """The handful of extraction fields the bot needs; everything else is dropped."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    webpage_url: HttpUrlStr | None = None
    url: NonEmptyStr | None = None
    title: NonEmptyStr = "Unknown Track"
    duration: NonNegativeInt | None = None
    thumbnail: HttpUrlStr | None = None
    artist: NonEmptyStr | None = None
    uploader: NonEmptyStr | None = None
    extractor_key: NonEmptyStr | None = None
    formats: list[AudioFormatInfo] = Field(default_factory=list)

    @field_validator(
        "webpage_url", "url", "thumbnail", "artist", "uploader", "extractor_key", mode="before"
    )
    @classmethod
    def _coerce_blank(cls, v: Any) -> str | None:
        return _blank_to_none(v)

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        return _blank_to_none(v) or "Unknown Track"

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> int | None:
        """yt-dlp reports floats, strings or nothing at all; keep whole seconds."""
        if v is None:
            return None
        try:
            seconds = int(float(v))
        except (TypeError, ValueError):
            return None
        return seconds if seconds >= 0 else None

    @property
    def stream_url(self) -> str | None:
        if self.url:
            return self.url
        playable = [f.url for f in self.formats if f.acodec != "none" and f.url]
        return playable[-1] if playable else None


class InfoCacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    info: YtDlpTrackInfo | None = None
    cached_at: NonNegativeFloat


class YtDlpOpts(BaseModel):
    """Options handed to ``YoutubeDL(params=...)``."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    default_search: NonEmptyStr = "ytsearch"
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr | None = None
    skip_download: bool = True
