"""AudioResolver implementation using yt-dlp for URL resolution and search."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from growmies_music.application.interfaces.audio_resolver import AudioResolver, AudioResource
from growmies_music.config.settings import AudioSettings
from growmies_music.domain.music.value_objects import TrackSource
from growmies_music.domain.shared.messages import LogTemplates
from growmies_music.infrastructure.audio.models import (
    INFO_CACHE_MAX_SIZE,
    INFO_CACHE_TTL,
    LOG_QUERY_TRUNCATE,
    InfoCacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"https?://"),
    re.compile(r"www\."),
]


class YtDlpResolver(AudioResolver):
    """Turns a URL or free-text search into a streamable :class:`AudioResource`.

    Extraction is blocking, so it runs in a worker thread. Results (including
    misses) are cached per query for an hour.
    """

    def __init__(
        self,
        settings: AudioSettings | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or AudioSettings()
        self._opts = YtDlpOpts(format=self._settings.ytdlp_format)
        self._clock = clock
        self._info_cache: dict[str, InfoCacheEntry] = {}

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)

    async def resolve(self, query: str) -> AudioResource | None:
        try:
            info = await asyncio.to_thread(self._extract_info_sync, query)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_RESOLVE, query)
            return None

        if info is None:
            return None
        return self._info_to_resource(info)

    def _extract_info_sync(self, query: str) -> YtDlpTrackInfo | None:
        now = self._clock()
        cached = self._info_cache.get(query)
        if cached is not None and now - cached.cached_at < INFO_CACHE_TTL:
            logger.debug(LogTemplates.CACHE_HIT, query[:LOG_QUERY_TRUNCATE])
            return cached.info

        target = query if self.is_url(query) else f"ytsearch1:{query}"
        with YoutubeDL(params=cast(Any, self._opts.model_dump())) as ydl:
            data = ydl.extract_info(target, download=False)

        info = self._parse(data)
        self._info_cache[query] = InfoCacheEntry(info=info, cached_at=now)
        self._evict_expired(now)
        return info

    @staticmethod
    def _parse(data: Any) -> YtDlpTrackInfo | None:
        if not isinstance(data, dict):
            return None
        # Searches wrap the hit in a one-element playlist
        if "entries" in data:
            entries = [e for e in data.get("entries") or [] if isinstance(e, dict)]
            if not entries:
                return None
            data = entries[0]
        return YtDlpTrackInfo.model_validate(dict(data))

    def _evict_expired(self, now: float) -> None:
        if len(self._info_cache) <= INFO_CACHE_MAX_SIZE:
            return
        expired = [k for k, entry in self._info_cache.items() if now - entry.cached_at >= INFO_CACHE_TTL]
        for key in expired:
            self._info_cache.pop(key, None)

    @staticmethod
    def _info_to_resource(info: YtDlpTrackInfo) -> AudioResource | None:
        webpage_url = info.webpage_url or info.url
        if not webpage_url:
            logger.warning(LogTemplates.YTDLP_NO_URL_IN_INFO_DICT)
            return None

        stream_url = info.stream_url
        if not stream_url:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, info.title)
            return None

        return AudioResource(
            webpage_url=webpage_url,
            stream_url=stream_url,
            title=info.title[:500],
            duration_seconds=min(info.duration, 86_400) if info.duration is not None else None,
            thumbnail_url=info.thumbnail,
            artist=info.artist or info.uploader,
            source=TrackSource.from_url(webpage_url),
        )
