"""In-memory per-guild player state and the lock that serializes it."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ...domain.music.entities import QueueEntry, TrackInfo
from ...domain.music.value_objects import EngineState
from ...domain.shared.datetime_utils import utcnow
from ...domain.shared.exceptions import InvalidOperationError

if TYPE_CHECKING:
    from ...domain.voting.entities import VoteSession
    from ..interfaces.audio_resolver import AudioResource


@dataclass
class NowPlaying:
    """The resource currently bound to a guild's player."""

    track: TrackInfo
    resource: AudioResource
    entry_id: int | None = None
    position: int | None = None
    started_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_entry(cls, entry: QueueEntry, resource: AudioResource) -> NowPlaying:
        return cls(
            track=entry.to_track_info(),
            resource=resource,
            entry_id=entry.id,
            position=entry.position,
        )

    @property
    def title(self) -> str:
        return self.track.title

    @property
    def requested_by_user_id(self) -> int:
        return self.track.requested_by_user_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "position": self.position,
            "title": self.track.title,
            "url": self.track.url,
            "duration_seconds": self.track.duration_seconds,
            "requested_by": self.track.requested_by_user_id,
            "is_cannabis_content": self.track.is_cannabis_content,
            "started_at": self.started_at.isoformat(),
        }


@dataclass
class GuildPlayer:
    """One guild's voice connection, audio player and skip-vote state.

    ``generation`` increases every time a resource is started, skipped or
    torn down. Track-end callbacks carry the generation they were issued
    for, and anything older than the current value is stale.
    """

    guild_id: int
    voice_channel_id: int
    text_channel_id: int
    session_id: str | None = None
    state: EngineState = EngineState.IDLE
    current: NowPlaying | None = None
    generation: int = 0
    volume: int = 50
    vote_session: VoteSession | None = None

    def transition(self, target: EngineState) -> None:
        if not self.state.can_transition_to(target):
            raise InvalidOperationError(f"transition({target.value})", self.state.value)
        self.state = target

    def next_generation(self) -> int:
        self.generation += 1
        return self.generation

    def clear_current(self) -> NowPlaying | None:
        finished = self.current
        self.current = None
        self.vote_session = None
        return finished


class GuildPlayerRegistry:
    """Holds every guild's player plus one ``asyncio.Lock`` per guild.

    Guilds never contend with each other; all work for one guild runs
    under that guild's lock.
    """

    def __init__(self) -> None:
        self._players: dict[int, GuildPlayer] = {}
        self._guild_locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def lock(self, guild_id: int) -> asyncio.Lock:
        return self._guild_locks[guild_id]

    def get(self, guild_id: int) -> GuildPlayer | None:
        return self._players.get(guild_id)

    def register(self, player: GuildPlayer) -> None:
        self._players[player.guild_id] = player

    def release(self, guild_id: int) -> GuildPlayer | None:
        player = self._players.pop(guild_id, None)
        if player is not None:
            player.state = EngineState.IDLE
            player.clear_current()
        return player

    def guild_ids(self) -> list[int]:
        return list(self._players)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._players

    def __len__(self) -> int:
        return len(self._players)
