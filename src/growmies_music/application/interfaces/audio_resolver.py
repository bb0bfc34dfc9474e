"""Port interface for resolving audio from queries and URLs."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from growmies_music.domain.music.entities import TrackInfo
from growmies_music.domain.music.value_objects import TrackSource
from growmies_music.domain.shared.types import DurationSeconds, NonEmptyStr, TrackTitleStr


class AudioResource(BaseModel):
    """A resolved, streamable track."""

    model_config = ConfigDict(frozen=True)

    webpage_url: NonEmptyStr
    stream_url: NonEmptyStr
    title: TrackTitleStr = "Unknown Track"
    duration_seconds: DurationSeconds | None = None
    thumbnail_url: str | None = None
    artist: str | None = None
    source: TrackSource = TrackSource.YOUTUBE

    def to_track_info(self, requested_by_user_id: int, *, is_cannabis_content: bool = False) -> TrackInfo:
        return TrackInfo(
            url=self.webpage_url,
            title=self.title,
            duration_seconds=self.duration_seconds,
            requested_by_user_id=requested_by_user_id,
            source=self.source,
            is_cannabis_content=is_cannabis_content,
            thumbnail_url=self.thumbnail_url,
            artist=self.artist,
        )


class AudioResolver(ABC):
    """Interface for resolving URLs and search queries to playable audio."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr) -> AudioResource | None:
        """Resolve a query or URL; None when nothing playable was found."""
        ...

    @abstractmethod
    def is_url(self, query: NonEmptyStr) -> bool:
        ...
