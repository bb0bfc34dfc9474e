"""
Music Bounded Context

Sessions, queue entries and the rules that order and classify them.
"""

from growmies_music.domain.music.entities import MusicSession, QueueEntry, QueueStats, TrackInfo
from growmies_music.domain.music.value_objects import (
    EndReason,
    EngineState,
    LoopMode,
    SessionStatus,
    SessionType,
    TrackSource,
)

__all__ = [
    "MusicSession",
    "QueueEntry",
    "QueueStats",
    "TrackInfo",
    "EndReason",
    "EngineState",
    "LoopMode",
    "SessionStatus",
    "SessionType",
    "TrackSource",
]
