"""
Unit Tests for the yt-dlp audio resolver

Tests for:
- URL detection
- Search vs direct URL extraction
- Info parsing: search wrappers, blank fields, durations, format fallback
- Per-query info cache
- Failure handling
"""

from unittest.mock import MagicMock, patch

import pytest

from growmies_music.domain.music.value_objects import TrackSource
from growmies_music.infrastructure.audio.models import YtDlpTrackInfo
from growmies_music.infrastructure.audio.ytdlp_resolver import YtDlpResolver

YOUTUBE_DL = "growmies_music.infrastructure.audio.ytdlp_resolver.YoutubeDL"

VIDEO_INFO = {
    "webpage_url": "https://www.youtube.com/watch?v=abc123",
    "url": "https://rr1.googlevideo.com/videoplayback?id=abc123",
    "title": "Chill Grow Beats",
    "duration": 245.6,
    "thumbnail": "https://i.ytimg.com/vi/abc123/hq.jpg",
    "uploader": "Growmies Radio",
}


def _patched_ydl(return_value=None, side_effect=None):
    """Patch YoutubeDL so the context manager yields a mock with extract_info."""
    ydl = MagicMock()
    ydl.extract_info.return_value = return_value
    ydl.extract_info.side_effect = side_effect
    factory = MagicMock()
    factory.return_value.__enter__.return_value = ydl
    factory.return_value.__exit__.return_value = False
    return patch(YOUTUBE_DL, factory), ydl


class TestIsUrl:
    """Unit tests for URL detection."""

    @pytest.mark.parametrize(
        "query",
        ["https://youtu.be/abc", "http://example.com/a.mp3", "www.youtube.com/watch?v=x"],
    )
    def test_urls(self, query):
        """Should recognise http(s) and www. prefixed input."""
        assert YtDlpResolver().is_url(query) is True

    def test_search_text(self):
        """Should treat free text as a search."""
        assert YtDlpResolver().is_url("lofi beats to grow to") is False


class TestResolve:
    """Unit tests for resolving queries."""

    @pytest.mark.asyncio
    async def test_resolve_url(self):
        """Should extract a URL directly and build a resource."""
        patcher, ydl = _patched_ydl(VIDEO_INFO)

        with patcher:
            resource = await YtDlpResolver().resolve(VIDEO_INFO["webpage_url"])

        ydl.extract_info.assert_called_once_with(VIDEO_INFO["webpage_url"], download=False)
        assert resource.title == "Chill Grow Beats"
        assert resource.stream_url == VIDEO_INFO["url"]
        assert resource.duration_seconds == 245
        assert resource.artist == "Growmies Radio"
        assert resource.source == TrackSource.YOUTUBE

    @pytest.mark.asyncio
    async def test_resolve_search_uses_first_hit(self):
        """Should prefix searches with ytsearch1: and take the first entry."""
        patcher, ydl = _patched_ydl({"entries": [VIDEO_INFO, {**VIDEO_INFO, "title": "Second"}]})

        with patcher:
            resource = await YtDlpResolver().resolve("chill grow beats")

        ydl.extract_info.assert_called_once_with("ytsearch1:chill grow beats", download=False)
        assert resource.title == "Chill Grow Beats"

    @pytest.mark.asyncio
    async def test_empty_search(self):
        """Should return None when the search has no entries."""
        patcher, _ = _patched_ydl({"entries": []})

        with patcher:
            assert await YtDlpResolver().resolve("nothing at all") is None

    @pytest.mark.asyncio
    async def test_extractor_error_returns_none(self):
        """Should log and return None when yt-dlp raises."""
        patcher, _ = _patched_ydl(side_effect=RuntimeError("Video unavailable"))

        with patcher:
            assert await YtDlpResolver().resolve("https://www.youtube.com/watch?v=gone") is None

    @pytest.mark.asyncio
    async def test_missing_stream_url(self):
        """Should return None when no playable stream is present."""
        info = {**VIDEO_INFO, "url": None, "formats": [{"url": "https://x/video", "acodec": "none"}]}
        patcher, _ = _patched_ydl(info)

        with patcher:
            assert await YtDlpResolver().resolve(VIDEO_INFO["webpage_url"]) is None

    @pytest.mark.asyncio
    async def test_results_are_cached(self):
        """Should reuse the cached info for a repeated query within the TTL."""
        now = [1000.0]
        patcher, ydl = _patched_ydl(VIDEO_INFO)
        resolver = YtDlpResolver(clock=lambda: now[0])

        with patcher:
            await resolver.resolve("chill grow beats")
            await resolver.resolve("chill grow beats")
            assert ydl.extract_info.call_count == 1

            now[0] += 3601
            await resolver.resolve("chill grow beats")
            assert ydl.extract_info.call_count == 2


class TestYtDlpTrackInfo:
    """Unit tests for parsing raw info dicts."""

    def test_blank_fields_become_none(self):
        """Should coerce blank strings to None and default the title."""
        info = YtDlpTrackInfo.model_validate({"title": "  ", "artist": "", "uploader": None})

        assert info.title == "Unknown Track"
        assert info.artist is None
        assert info.uploader is None

    @pytest.mark.parametrize(("raw", "expected"), [("12.9", 12), (None, None), ("live", None), (-3, None)])
    def test_duration_coercion(self, raw, expected):
        """Should keep whole, non-negative seconds only."""
        assert YtDlpTrackInfo.model_validate({"duration": raw}).duration == expected

    def test_stream_url_falls_back_to_last_audio_format(self):
        """Should pick the last format that carries audio."""
        info = YtDlpTrackInfo.model_validate(
            {
                "formats": [
                    {"url": "https://x/audio-low", "acodec": "opus"},
                    {"url": "https://x/video-only", "acodec": "none"},
                    {"url": "https://x/audio-high", "acodec": "opus"},
                ]
            }
        )

        assert info.stream_url == "https://x/audio-high"
