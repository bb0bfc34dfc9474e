"""Query for retrieving a guild's queue and its statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from growmies_music.domain.music.entities import QueueEntry, QueueStats
from growmies_music.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.queue_service import QueueStore
    from ..services.session_registry import SessionRegistry


class GetQueueQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    include_history: bool = False


class QueueInfo(BaseModel):
    guild_id: DiscordSnowflake
    session_id: str | None = None
    entries: list[QueueEntry] = Field(default_factory=list)
    stats: QueueStats = Field(default_factory=QueueStats)

    @property
    def has_session(self) -> bool:
        return self.session_id is not None

    @property
    def pending(self) -> list[QueueEntry]:
        return [entry for entry in self.entries if entry.is_pending]

    @property
    def is_empty(self) -> bool:
        return not self.pending


class GetQueueHandler:
    def __init__(self, *, session_registry: SessionRegistry, queue_store: QueueStore) -> None:
        self._sessions = session_registry
        self._queue = queue_store

    async def handle(self, query: GetQueueQuery) -> QueueInfo:
        session = await self._sessions.get_active_session(query.guild_id)
        if session is None:
            return QueueInfo(guild_id=query.guild_id)

        entries = await self._queue.list_entries(session.id, include_history=query.include_history)
        return QueueInfo(
            guild_id=query.guild_id,
            session_id=session.id,
            entries=entries,
            stats=await self._queue.stats(session.id),
        )
