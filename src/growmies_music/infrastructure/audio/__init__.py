"""Audio infrastructure - yt-dlp resolver."""

from growmies_music.infrastructure.audio.models import (
    AudioFormatInfo,
    InfoCacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)
from growmies_music.infrastructure.audio.ytdlp_resolver import YtDlpResolver

__all__ = [
    "AudioFormatInfo",
    "InfoCacheEntry",
    "YtDlpOpts",
    "YtDlpResolver",
    "YtDlpTrackInfo",
]
