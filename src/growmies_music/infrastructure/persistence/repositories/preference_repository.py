"""SQLite implementation of the user preference repository."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from growmies_music.domain.preferences.entities import UserPreference
from growmies_music.domain.preferences.repository import PreferenceRepository
from growmies_music.domain.shared.datetime_utils import UtcDateTime

if TYPE_CHECKING:
    from ..database import Database


class SQLitePreferenceRepository(PreferenceRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, user_id: int, guild_id: int) -> UserPreference | None:
        row = await self._db.fetch_one(
            "SELECT * FROM user_music_preferences WHERE user_id = ? AND guild_id = ?",
            (user_id, guild_id),
        )
        return self._row_to_preference(row) if row else None

    async def get_or_create(self, defaults: UserPreference) -> UserPreference:
        await self._db.execute(
            f"""
            INSERT INTO user_music_preferences ({", ".join(self._columns())})
            VALUES ({", ".join("?" for _ in self._columns())})
            ON CONFLICT(user_id, guild_id) DO NOTHING
            """,  # noqa: S608
            self._to_params(defaults),
        )
        stored = await self.get(defaults.user_id, defaults.guild_id)
        return stored if stored is not None else defaults

    async def save(self, preference: UserPreference) -> None:
        await self._db.execute(
            f"""
            INSERT INTO user_music_preferences ({", ".join(self._columns())})
            VALUES ({", ".join("?" for _ in self._columns())})
            ON CONFLICT(user_id, guild_id) DO UPDATE SET
                preferred_volume = excluded.preferred_volume,
                cannabis_music_enabled = excluded.cannabis_music_enabled,
                auto_queue_enabled = excluded.auto_queue_enabled,
                meditation_mode_enabled = excluded.meditation_mode_enabled,
                explicit_content_filter = excluded.explicit_content_filter,
                favorite_genres = excluded.favorite_genres,
                blocked_sources = excluded.blocked_sources,
                updated_at = excluded.updated_at
            """,  # noqa: S608
            self._to_params(preference),
        )

    async def exists(self, user_id: int, guild_id: int) -> bool:
        row = await self._db.fetch_one(
            "SELECT 1 FROM user_music_preferences WHERE user_id = ? AND guild_id = ?",
            (user_id, guild_id),
        )
        return row is not None

    @staticmethod
    def _columns() -> tuple[str, ...]:
        return (
            "user_id",
            "guild_id",
            "preferred_volume",
            "cannabis_music_enabled",
            "auto_queue_enabled",
            "meditation_mode_enabled",
            "explicit_content_filter",
            "favorite_genres",
            "blocked_sources",
            "created_at",
            "updated_at",
        )

    @staticmethod
    def _to_params(pref: UserPreference) -> tuple[Any, ...]:
        return (
            pref.user_id,
            pref.guild_id,
            pref.preferred_volume,
            int(pref.cannabis_music_enabled),
            int(pref.auto_queue_enabled),
            int(pref.meditation_mode_enabled),
            int(pref.explicit_content_filter),
            json.dumps(pref.favorite_genres),
            json.dumps(pref.blocked_sources),
            UtcDateTime(pref.created_at).iso,
            UtcDateTime(pref.updated_at).iso,
        )

    def _row_to_preference(self, row: dict[str, Any]) -> UserPreference:
        return UserPreference(
            user_id=row["user_id"],
            guild_id=row["guild_id"],
            preferred_volume=row["preferred_volume"],
            cannabis_music_enabled=bool(row["cannabis_music_enabled"]),
            auto_queue_enabled=bool(row["auto_queue_enabled"]),
            meditation_mode_enabled=bool(row["meditation_mode_enabled"]),
            explicit_content_filter=bool(row["explicit_content_filter"]),
            favorite_genres=json.loads(row["favorite_genres"] or "[]"),
            blocked_sources=json.loads(row["blocked_sources"] or "[]"),
            created_at=UtcDateTime.from_iso(row["created_at"]).dt,
            updated_at=UtcDateTime.from_iso(row["updated_at"]).dt,
        )
