"""SQLite implementation of the session repository."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING, Any

from growmies_music.domain.music.entities import MusicSession
from growmies_music.domain.music.repository import SessionRepository
from growmies_music.domain.music.value_objects import SessionStatus, SessionType
from growmies_music.domain.shared.datetime_utils import UtcDateTime, to_iso
from growmies_music.domain.shared.exceptions import SessionAlreadyActiveError
from growmies_music.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteSessionRepository(SessionRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def add(self, session: MusicSession) -> None:
        try:
            await self._db.execute(
                """
                INSERT INTO music_sessions (
                    id, guild_id, voice_channel_id, text_channel_id, created_by_user_id,
                    session_type, is_cannabis_content, requires_21_plus, status,
                    current_track_index, volume_level, metadata, started_at, ended_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.id,
                    session.guild_id,
                    session.voice_channel_id,
                    session.text_channel_id,
                    session.created_by_user_id,
                    session.session_type.value,
                    int(session.is_cannabis_content),
                    int(session.requires_21_plus),
                    session.status.value,
                    session.current_track_index,
                    session.volume_level,
                    json.dumps(session.metadata),
                    UtcDateTime(session.started_at).iso,
                    to_iso(session.ended_at),
                ),
            )
        except sqlite3.IntegrityError as exc:
            logger.warning(LogTemplates.SESSION_ALREADY_ACTIVE, session.guild_id)
            raise SessionAlreadyActiveError(session.guild_id) from exc

    async def save(self, session: MusicSession) -> None:
        await self._db.execute(
            """
            UPDATE music_sessions SET
                voice_channel_id = ?,
                text_channel_id = ?,
                status = ?,
                current_track_index = ?,
                volume_level = ?,
                metadata = ?,
                ended_at = ?
            WHERE id = ?
            """,
            (
                session.voice_channel_id,
                session.text_channel_id,
                session.status.value,
                session.current_track_index,
                session.volume_level,
                json.dumps(session.metadata),
                to_iso(session.ended_at),
                session.id,
            ),
        )

    async def get(self, session_id: str) -> MusicSession | None:
        row = await self._db.fetch_one("SELECT * FROM music_sessions WHERE id = ?", (session_id,))
        return self._row_to_session(row) if row else None

    async def get_active(self, guild_id: int) -> MusicSession | None:
        row = await self._db.fetch_one(
            "SELECT * FROM music_sessions WHERE guild_id = ? AND status != 'ended'",
            (guild_id,),
        )
        return self._row_to_session(row) if row else None

    async def get_all_active(self) -> list[MusicSession]:
        rows = await self._db.fetch_all(
            "SELECT * FROM music_sessions WHERE status != 'ended' ORDER BY started_at ASC"
        )
        return [self._row_to_session(row) for row in rows]

    async def update_status(self, session_id: str, status: SessionStatus) -> bool:
        changed = await self._db.execute(
            "UPDATE music_sessions SET status = ? WHERE id = ? AND status != 'ended'",
            (status.value, session_id),
        )
        return changed > 0

    async def list_ended_since(self, guild_id: int, since: datetime) -> list[MusicSession]:
        rows = await self._db.fetch_all(
            """
            SELECT * FROM music_sessions
            WHERE guild_id = ? AND status = 'ended' AND started_at >= ?
            ORDER BY started_at ASC
            """,
            (guild_id, UtcDateTime(since).iso),
        )
        return [self._row_to_session(row) for row in rows]

    def _row_to_session(self, row: dict[str, Any]) -> MusicSession:
        return MusicSession(
            id=row["id"],
            guild_id=row["guild_id"],
            voice_channel_id=row["voice_channel_id"],
            text_channel_id=row["text_channel_id"],
            created_by_user_id=row["created_by_user_id"],
            session_type=SessionType(row["session_type"]),
            is_cannabis_content=bool(row["is_cannabis_content"]),
            requires_21_plus=bool(row["requires_21_plus"]),
            status=SessionStatus(row["status"]),
            current_track_index=row["current_track_index"],
            volume_level=row["volume_level"],
            metadata=json.loads(row["metadata"] or "{}"),
            started_at=UtcDateTime.from_iso(row["started_at"]).dt,
            ended_at=UtcDateTime.from_optional_iso(row["ended_at"]),
        )
