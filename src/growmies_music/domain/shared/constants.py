"""Shared constants: environment keys, SQLite pragmas, audio defaults and limits."""

from __future__ import annotations


class ConfigKeys:
    NO_COLOR = "NO_COLOR"


class SQLPragmas:
    """SQLite PRAGMA statements applied to each connection."""

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"


class DatabaseURLSchemes:
    SQLITE = "sqlite://"
    MEMORY = ":memory:"
    # Each in-memory Database gets its own named shared-cache DB
    MEMORY_SHARED_URI = "file:growmies-music-{name}?mode=memory&cache=shared"


class AudioConstants:
    # Reconnect on dropped HTTP streams; audio only
    FFMPEG_BEFORE_OPTIONS_DEFAULT = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    FFMPEG_OPTIONS_DEFAULT = "-vn"
    YTDLP_FORMAT_DEFAULT = "bestaudio/best"


class LimitConstants:
    """Numeric limits and defaults."""

    MIN_VOLUME = 0
    MAX_VOLUME = 100
    DEFAULT_VOLUME = 50

    MAX_FAVORITE_GENRES = 20
    MAX_BLOCKED_SOURCES = 10

    DEFAULT_SKIP_THRESHOLD_PERCENTAGE = 0.5
    DEFAULT_AUTO_SKIP_LISTENER_COUNT = 2

    DEFAULT_AUTO_ADVANCE_ATTEMPTS = 3
    DEFAULT_STATS_WINDOW_DAYS = 30


class TimeConstants:
    """Durations in seconds unless the name says otherwise."""

    VOICE_CONNECT_TIMEOUT = 10.0
    ACCESS_CACHE_TTL = 300
    PREFERENCE_CACHE_TTL = 600
    DEFAULT_BUSY_TIMEOUT_MS = 5000
