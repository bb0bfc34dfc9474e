"""Value objects and enumerations for the music bounded context."""

from __future__ import annotations

from enum import Enum, StrEnum


class SessionType(StrEnum):
    """Declared content classification of a music session."""

    GENERAL = "general"
    MEDITATION = "meditation"
    EDUCATIONAL = "educational"

    @property
    def is_cannabis_flagged(self) -> bool:
        """Meditation and educational sessions are cannabis content by definition."""
        return self in (SessionType.MEDITATION, SessionType.EDUCATIONAL)


class SessionStatus(StrEnum):
    """Persisted lifecycle status of a music session."""

    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"

    @property
    def is_live(self) -> bool:
        return self != SessionStatus.ENDED

    def can_transition_to(self, target: SessionStatus) -> bool:
        valid = {
            SessionStatus.ACTIVE: {SessionStatus.PAUSED, SessionStatus.ENDED},
            SessionStatus.PAUSED: {SessionStatus.ACTIVE, SessionStatus.ENDED},
            SessionStatus.ENDED: set(),
        }
        return target in valid.get(self, set())


class EngineState(Enum):
    """In-memory state of a guild's playback engine.

    ``READY`` is the connected-but-silent state: the session is open, the
    voice connection is live, and nothing is playing.
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"

    @property
    def has_resource(self) -> bool:
        """Whether an audio resource is currently bound to the player."""
        return self in (EngineState.PLAYING, EngineState.PAUSED)

    def can_transition_to(self, target: EngineState) -> bool:
        valid_transitions = {
            EngineState.IDLE: {EngineState.CONNECTING},
            EngineState.CONNECTING: {EngineState.READY, EngineState.IDLE},
            EngineState.READY: {EngineState.PLAYING, EngineState.IDLE},
            EngineState.PLAYING: {
                EngineState.PAUSED,
                EngineState.PLAYING,
                EngineState.READY,
                EngineState.IDLE,
            },
            EngineState.PAUSED: {
                EngineState.PLAYING,
                EngineState.READY,
                EngineState.IDLE,
            },
        }
        return target in valid_transitions.get(self, set())


class TrackSource(StrEnum):
    """Where a queued track comes from."""

    YOUTUBE = "youtube"
    SPOTIFY = "spotify"
    SOUNDCLOUD = "soundcloud"
    LOCAL = "local"
    URL = "url"

    @classmethod
    def from_url(cls, url: str) -> TrackSource:
        lowered = url.lower()
        if "youtube.com" in lowered or "youtu.be" in lowered:
            return cls.YOUTUBE
        if "spotify.com" in lowered:
            return cls.SPOTIFY
        if "soundcloud.com" in lowered:
            return cls.SOUNDCLOUD
        if lowered.startswith(("http://", "https://")):
            return cls.URL
        return cls.LOCAL


class LoopMode(StrEnum):
    NONE = "none"
    TRACK = "track"
    QUEUE = "queue"


class EndReason(StrEnum):
    """Why a session was ended; stored in the session metadata."""

    USER_DISCONNECT = "user_disconnect"
    USER_STOP = "user_stop"
    CONNECTION_LOST = "connection_lost"
    BOT_RESTART = "bot_restart"
    BOT_SHUTDOWN = "bot_shutdown"
