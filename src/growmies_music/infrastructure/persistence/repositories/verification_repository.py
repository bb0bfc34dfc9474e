"""SQLite read model over the verification workflow's ``users`` table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from growmies_music.domain.access.entities import AgeVerificationRecord
from growmies_music.domain.access.repository import AgeVerificationRepository
from growmies_music.domain.access.value_objects import VerificationStatus
from growmies_music.domain.shared.datetime_utils import UtcDateTime

if TYPE_CHECKING:
    from ..database import Database


class SQLiteAgeVerificationRepository(AgeVerificationRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, user_id: int, guild_id: int) -> AgeVerificationRecord | None:
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE user_id = ? AND guild_id = ? AND is_active = 1",
            (user_id, guild_id),
        )
        return self._row_to_record(row) if row else None

    async def upsert(self, record: AgeVerificationRecord) -> None:
        """Write a record; used by fixtures and local tooling."""
        await self._db.execute(
            """
            INSERT INTO users (
                user_id, guild_id, is_active, is_21_plus,
                verification_status, verification_expires
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, guild_id) DO UPDATE SET
                is_active = excluded.is_active,
                is_21_plus = excluded.is_21_plus,
                verification_status = excluded.verification_status,
                verification_expires = excluded.verification_expires
            """,
            (
                record.user_id,
                record.guild_id,
                int(record.is_active),
                int(record.is_21_plus),
                record.verification_status.value,
                UtcDateTime(record.verification_expires).iso if record.verification_expires else None,
            ),
        )

    def _row_to_record(self, row: dict[str, Any]) -> AgeVerificationRecord:
        return AgeVerificationRecord(
            user_id=row["user_id"],
            guild_id=row["guild_id"],
            is_active=bool(row["is_active"]),
            is_21_plus=bool(row["is_21_plus"]),
            verification_status=VerificationStatus(row["verification_status"]),
            verification_expires=UtcDateTime.from_optional_iso(row["verification_expires"]),
        )
