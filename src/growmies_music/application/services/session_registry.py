"""Session Registry - at most one live music session per guild."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ...domain.music.entities import MusicSession
from ...domain.music.services import SessionDomainService
from ...domain.music.value_objects import EndReason, SessionStatus, SessionType
from ...domain.shared.events import SessionEnded, SessionStarted, get_event_bus
from ...domain.shared.exceptions import SessionAlreadyActiveError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.validators import validate_volume_percent

if TYPE_CHECKING:
    from ...domain.music.repository import SessionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionOptions:
    """Caller-supplied options for a new session."""

    session_type: SessionType = SessionType.GENERAL
    is_cannabis_content: bool = False
    volume: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def requires_access_check(self) -> bool:
        return SessionDomainService.requires_access_check(self.session_type, self.is_cannabis_content)


class SessionRegistry:
    """Creates, looks up and ends guild music sessions.

    Check-then-create runs under a per-guild lock; the store's partial
    unique index catches anything that slips past it.
    """

    def __init__(
        self,
        *,
        session_repository: SessionRepository,
        default_volume: int = MusicSession.DEFAULT_VOLUME,
    ) -> None:
        self._session_repo = session_repository
        self._default_volume = default_volume
        self._guild_locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def create_session(
        self,
        guild_id: int,
        voice_channel_id: int,
        text_channel_id: int,
        user_id: int,
        options: SessionOptions | None = None,
    ) -> MusicSession:
        """Open a new session.

        Raises:
            SessionAlreadyActiveError: If the guild already has a live session.
        """
        options = options or SessionOptions()
        async with self._guild_locks[guild_id]:
            if await self._session_repo.get_active(guild_id) is not None:
                logger.info(LogTemplates.SESSION_ALREADY_ACTIVE, guild_id)
                raise SessionAlreadyActiveError(guild_id)

            session = SessionDomainService.build_session(
                guild_id=guild_id,
                voice_channel_id=voice_channel_id,
                text_channel_id=text_channel_id,
                user_id=user_id,
                session_type=options.session_type,
                is_cannabis_content=options.is_cannabis_content,
                volume=options.volume if options.volume is not None else self._default_volume,
                metadata=options.metadata,
            )
            await self._session_repo.add(session)

        logger.info(LogTemplates.SESSION_CREATED, session.session_type, session.id, guild_id)
        await get_event_bus().publish(
            SessionStarted(
                guild_id=guild_id,
                session_id=session.id,
                session_type=session.session_type.value,
                is_cannabis_content=session.is_cannabis_content,
                created_by_id=user_id,
            )
        )
        return session

    async def end_session(self, guild_id: int, reason: EndReason | str = EndReason.USER_DISCONNECT) -> bool:
        async with self._guild_locks[guild_id]:
            session = await self._session_repo.get_active(guild_id)
            if session is None:
                return False
            session.end(reason)
            await self._session_repo.save(session)

        logger.info(LogTemplates.SESSION_ENDED, session.id, guild_id, reason)
        await get_event_bus().publish(
            SessionEnded(
                guild_id=guild_id,
                session_id=session.id,
                reason=str(reason),
                final_track_index=session.current_track_index,
            )
        )
        return True

    async def get_active_session(self, guild_id: int) -> MusicSession | None:
        return await self._session_repo.get_active(guild_id)

    async def update_status(self, session_id: str, status: SessionStatus) -> bool:
        updated = await self._session_repo.update_status(session_id, status)
        if updated:
            logger.debug(LogTemplates.SESSION_STATUS_UPDATED, session_id, status)
        return updated

    async def update_volume(self, session_id: str, volume: int) -> bool:
        validate_volume_percent(volume)
        session = await self._session_repo.get(session_id)
        if session is None or not session.is_live:
            return False
        session.volume_level = volume
        await self._session_repo.save(session)
        logger.debug(LogTemplates.SESSION_VOLUME_UPDATED, session_id, volume)
        return True

    async def advance_track_index(self, session_id: str) -> int | None:
        session = await self._session_repo.get(session_id)
        if session is None or not session.is_live:
            return None
        session.advance_track_index()
        await self._session_repo.save(session)
        return session.current_track_index

    async def end_stale_sessions(self, reason: EndReason | str = EndReason.BOT_RESTART) -> int:
        """End every session a previous process left live."""
        sessions = await self._session_repo.get_all_active()
        for session in sessions:
            async with self._guild_locks[session.guild_id]:
                session.end(reason)
                await self._session_repo.save(session)
        if sessions:
            logger.info(LogTemplates.SESSION_STALE_ENDED, len(sessions), reason)
        return len(sessions)
