"""Commands and handler for editing a guild's queue (remove, clear, shuffle)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from growmies_music.application.services.results import FailureReason, OperationResult
from growmies_music.domain.shared.messages import ErrorMessages
from growmies_music.domain.shared.types import DiscordSnowflake, QueuePositionInt

if TYPE_CHECKING:
    from ..services.guild_registry import GuildPlayerRegistry
    from ..services.queue_service import QueueStore
    from ..services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class RemoveTrackCommand(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    user_id: DiscordSnowflake
    position: QueuePositionInt


class ClearQueueCommand(BaseModel):
    """Deleting every pending entry needs an explicit ``confirmed=True``."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    user_id: DiscordSnowflake
    confirmed: bool = False


class ShuffleQueueCommand(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    user_id: DiscordSnowflake


class ManageQueueHandler:
    """Resolves the guild's live session and applies queue edits under the guild lock."""

    def __init__(
        self,
        *,
        registry: GuildPlayerRegistry,
        session_registry: SessionRegistry,
        queue_store: QueueStore,
    ) -> None:
        self._registry = registry
        self._sessions = session_registry
        self._queue = queue_store

    async def remove(self, command: RemoveTrackCommand) -> OperationResult:
        async with self._registry.lock(command.guild_id):
            session_id = await self._session_id(command.guild_id)
            if session_id is None:
                return OperationResult.fail(FailureReason.NO_SESSION, ErrorMessages.NO_ACTIVE_SESSION)

            if not await self._queue.remove(session_id, command.position):
                return OperationResult.fail(FailureReason.NOT_FOUND, position=command.position)
            return OperationResult.ok(position=command.position)

    async def clear(self, command: ClearQueueCommand) -> OperationResult:
        if command.confirmed is not True:
            return OperationResult.fail(
                FailureReason.NOT_CONFIRMED, ErrorMessages.CLEAR_REQUIRES_CONFIRMATION
            )

        async with self._registry.lock(command.guild_id):
            session_id = await self._session_id(command.guild_id)
            if session_id is None:
                return OperationResult.fail(FailureReason.NO_SESSION, ErrorMessages.NO_ACTIVE_SESSION)

            count = await self._queue.clear(session_id, confirmed=True)
            return OperationResult.ok(cleared=count)

    async def shuffle(self, command: ShuffleQueueCommand) -> OperationResult:
        async with self._registry.lock(command.guild_id):
            session_id = await self._session_id(command.guild_id)
            if session_id is None:
                return OperationResult.fail(FailureReason.NO_SESSION, ErrorMessages.NO_ACTIVE_SESSION)

            if not await self._queue.shuffle(session_id):
                return OperationResult.fail(FailureReason.NOT_ENOUGH_TRACKS)
            return OperationResult.ok(shuffled=True)

    async def _session_id(self, guild_id: int) -> str | None:
        session = await self._sessions.get_active_session(guild_id)
        return session.id if session else None
