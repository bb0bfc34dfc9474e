"""SQLite implementation of the queue repository."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from growmies_music.domain.music.entities import QueueEntry, QueueStats, TrackInfo
from growmies_music.domain.music.repository import QueueRepository
from growmies_music.domain.music.value_objects import TrackSource
from growmies_music.domain.shared.datetime_utils import UtcDateTime, utcnow
from growmies_music.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)

_PENDING = "played_at IS NULL AND failed_at IS NULL"


class SQLiteQueueRepository(QueueRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def append(self, session_id: str, track: TrackInfo) -> QueueEntry:
        added_at = utcnow()
        async with self._db.transaction() as conn:
            # Position is computed inside the INSERT so concurrent appends
            # cannot pick the same value.
            cursor = await conn.execute(
                """
                INSERT INTO music_queue (
                    session_id, position, track_url, track_title, duration_seconds,
                    requested_by_user_id, track_source, is_cannabis_content,
                    thumbnail_url, artist, metadata, added_at
                )
                SELECT ?, COALESCE(MAX(position), 0) + 1, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?
                FROM music_queue WHERE session_id = ?
                """,
                (
                    session_id,
                    track.url,
                    track.title,
                    track.duration_seconds,
                    track.requested_by_user_id,
                    track.source.value,
                    int(track.is_cannabis_content),
                    track.thumbnail_url,
                    track.artist,
                    json.dumps(track.metadata),
                    UtcDateTime(added_at).iso,
                    session_id,
                ),
            )
            entry_id = cursor.lastrowid
            cursor = await conn.execute("SELECT * FROM music_queue WHERE id = ?", (entry_id,))
            row = await cursor.fetchone()

        return self._row_to_entry(dict(row))

    async def get(self, entry_id: int) -> QueueEntry | None:
        row = await self._db.fetch_one("SELECT * FROM music_queue WHERE id = ?", (entry_id,))
        return self._row_to_entry(row) if row else None

    async def next_pending(self, session_id: str) -> QueueEntry | None:
        row = await self._db.fetch_one(
            f"""
            SELECT * FROM music_queue
            WHERE session_id = ? AND {_PENDING}
            ORDER BY position ASC
            LIMIT 1
            """,  # noqa: S608
            (session_id,),
        )
        return self._row_to_entry(row) if row else None

    async def list_entries(self, session_id: str, *, include_history: bool = False) -> list[QueueEntry]:
        where = "session_id = ?" if include_history else f"session_id = ? AND {_PENDING}"
        rows = await self._db.fetch_all(
            f"SELECT * FROM music_queue WHERE {where} ORDER BY position ASC",  # noqa: S608
            (session_id,),
        )
        return [self._row_to_entry(row) for row in rows]

    async def mark_played(self, entry_id: int, played_at: datetime) -> bool:
        changed = await self._db.execute(
            "UPDATE music_queue SET played_at = ? WHERE id = ? AND played_at IS NULL",
            (UtcDateTime(played_at).iso, entry_id),
        )
        return changed > 0

    async def mark_failed(self, entry_id: int, failed_at: datetime, reason: str) -> bool:
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                "SELECT metadata FROM music_queue WHERE id = ? AND failed_at IS NULL",
                (entry_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                return False

            metadata = json.loads(row["metadata"] or "{}")
            metadata["failure_reason"] = reason
            await conn.execute(
                "UPDATE music_queue SET failed_at = ?, metadata = ? WHERE id = ?",
                (UtcDateTime(failed_at).iso, json.dumps(metadata), entry_id),
            )
        logger.debug(LogTemplates.TRACK_MARKED_FAILED, entry_id, reason)
        return True

    async def delete_pending_at(self, session_id: str, position: int) -> bool:
        changed = await self._db.execute(
            f"DELETE FROM music_queue WHERE session_id = ? AND position = ? AND {_PENDING}",  # noqa: S608
            (session_id, position),
        )
        return changed > 0

    async def delete(self, entry_id: int) -> bool:
        changed = await self._db.execute("DELETE FROM music_queue WHERE id = ?", (entry_id,))
        return changed > 0

    async def delete_pending(self, session_id: str) -> int:
        return await self._db.execute(
            f"DELETE FROM music_queue WHERE session_id = ? AND {_PENDING}",  # noqa: S608
            (session_id,),
        )

    async def reassign_positions(self, session_id: str, assignments: dict[int, int]) -> None:
        if not assignments:
            return
        async with self._db.transaction() as conn:
            # Two passes keep UNIQUE(session_id, position) satisfied mid-update.
            for entry_id in assignments:
                await conn.execute(
                    "UPDATE music_queue SET position = -position WHERE id = ? AND session_id = ?",
                    (entry_id, session_id),
                )
            for entry_id, position in assignments.items():
                await conn.execute(
                    "UPDATE music_queue SET position = ? WHERE id = ? AND session_id = ?",
                    (position, entry_id, session_id),
                )

    async def stats(self, session_id: str) -> QueueStats:
        row = await self._db.fetch_one(
            f"""
            SELECT
                COUNT(*) AS total,
                COALESCE(SUM(CASE WHEN played_at IS NOT NULL THEN 1 ELSE 0 END), 0) AS played,
                COALESCE(SUM(CASE WHEN {_PENDING} THEN 1 ELSE 0 END), 0) AS unplayed,
                COALESCE(SUM(CASE WHEN failed_at IS NOT NULL THEN 1 ELSE 0 END), 0) AS failed,
                COALESCE(SUM(CASE WHEN {_PENDING} THEN COALESCE(duration_seconds, 0) ELSE 0 END), 0)
                    AS pending_seconds
            FROM music_queue WHERE session_id = ?
            """,  # noqa: S608
            (session_id,),
        )
        if row is None:
            return QueueStats()
        return QueueStats(
            total_tracks=row["total"],
            played_tracks=row["played"],
            unplayed_tracks=row["unplayed"],
            failed_tracks=row["failed"],
            estimated_playtime_minutes=QueueStats.estimate_minutes(row["pending_seconds"]),
        )

    def _row_to_entry(self, row: dict[str, Any]) -> QueueEntry:
        return QueueEntry(
            id=row["id"],
            session_id=row["session_id"],
            position=row["position"],
            track_url=row["track_url"],
            track_title=row["track_title"],
            duration_seconds=row["duration_seconds"],
            requested_by_user_id=row["requested_by_user_id"],
            track_source=TrackSource(row["track_source"]),
            is_cannabis_content=bool(row["is_cannabis_content"]),
            thumbnail_url=row["thumbnail_url"],
            artist=row["artist"],
            metadata=json.loads(row["metadata"] or "{}"),
            added_at=UtcDateTime.from_iso(row["added_at"]).dt,
            played_at=UtcDateTime.from_optional_iso(row["played_at"]),
            failed_at=UtcDateTime.from_optional_iso(row["failed_at"]),
        )
