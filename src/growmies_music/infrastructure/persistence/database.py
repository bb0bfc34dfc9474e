"""aiosqlite access for sessions, queue entries, preferences and verification records.

Each operation opens its own connection (WAL, foreign keys on). A
``:memory:`` database is mapped to a uniquely named shared-cache URI and
held open by a keepalive connection, so every operation sees the same data.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import aiosqlite

from growmies_music.domain.shared.constants import DatabaseURLSchemes, SQLPragmas, TimeConstants
from growmies_music.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import DatabaseSettings

logger = logging.getLogger(__name__)

_SCHEMA: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS music_sessions (
        id TEXT PRIMARY KEY,
        guild_id INTEGER NOT NULL,
        voice_channel_id INTEGER NOT NULL,
        text_channel_id INTEGER NOT NULL,
        created_by_user_id INTEGER NOT NULL,
        session_type TEXT NOT NULL DEFAULT 'general',
        is_cannabis_content INTEGER NOT NULL DEFAULT 0,
        requires_21_plus INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'active',
        current_track_index INTEGER NOT NULL DEFAULT 0,
        volume_level INTEGER NOT NULL DEFAULT 50,
        metadata TEXT NOT NULL DEFAULT '{}',
        started_at TEXT NOT NULL,
        ended_at TEXT,
        CHECK (is_cannabis_content = 0 OR requires_21_plus = 1),
        CHECK (volume_level BETWEEN 0 AND 100)
    )
    """,
    # One live (non-ended) session per guild
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_music_sessions_one_live
    ON music_sessions(guild_id) WHERE status != 'ended'
    """,
    "CREATE INDEX IF NOT EXISTS idx_music_sessions_guild_started ON music_sessions(guild_id, started_at)",
    """
    CREATE TABLE IF NOT EXISTS music_queue (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id TEXT NOT NULL REFERENCES music_sessions(id) ON DELETE CASCADE,
        position INTEGER NOT NULL,
        track_url TEXT NOT NULL,
        track_title TEXT NOT NULL,
        duration_seconds INTEGER,
        requested_by_user_id INTEGER NOT NULL,
        track_source TEXT NOT NULL DEFAULT 'youtube',
        is_cannabis_content INTEGER NOT NULL DEFAULT 0,
        thumbnail_url TEXT,
        artist TEXT,
        metadata TEXT NOT NULL DEFAULT '{}',
        added_at TEXT NOT NULL,
        played_at TEXT,
        failed_at TEXT,
        UNIQUE (session_id, position)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_music_queue_session_pending
    ON music_queue(session_id, played_at, failed_at, position)
    """,
    """
    CREATE TABLE IF NOT EXISTS user_music_preferences (
        user_id INTEGER NOT NULL,
        guild_id INTEGER NOT NULL,
        preferred_volume INTEGER NOT NULL DEFAULT 50,
        cannabis_music_enabled INTEGER NOT NULL DEFAULT 0,
        auto_queue_enabled INTEGER NOT NULL DEFAULT 0,
        meditation_mode_enabled INTEGER NOT NULL DEFAULT 0,
        explicit_content_filter INTEGER NOT NULL DEFAULT 1,
        favorite_genres TEXT NOT NULL DEFAULT '[]',
        blocked_sources TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (user_id, guild_id)
    )
    """,
    # Written by the verification workflow; the music side only reads it
    """
    CREATE TABLE IF NOT EXISTS users (
        user_id INTEGER NOT NULL,
        guild_id INTEGER NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        is_21_plus INTEGER NOT NULL DEFAULT 0,
        verification_status TEXT NOT NULL DEFAULT 'pending',
        verification_expires TEXT,
        PRIMARY KEY (user_id, guild_id)
    )
    """,
)


class Database:
    def __init__(self, url: str, settings: DatabaseSettings | None = None) -> None:
        self._db_path = url.removeprefix("sqlite:///")
        self._memory_uri = DatabaseURLSchemes.MEMORY_SHARED_URI.format(name=uuid4().hex)
        self._keepalive: aiosqlite.Connection | None = None
        self._initialized = False
        self._busy_timeout = settings.busy_timeout_ms if settings else TimeConstants.DEFAULT_BUSY_TIMEOUT_MS
        self._connect_timeout = settings.connection_timeout_s if settings else 10

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_memory(self) -> bool:
        return self._db_path == DatabaseURLSchemes.MEMORY

    async def initialize(self) -> None:
        """Create the schema. Safe to call more than once."""
        if self._initialized:
            return

        if self.is_memory:
            if self._keepalive is None:
                self._keepalive = await self._connect()
        else:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        async with self.transaction() as conn:
            for statement in _SCHEMA:
                await conn.execute(statement)

        self._initialized = True
        logger.info(LogTemplates.DATABASE_INITIALIZED, self._db_path)

    async def _connect(self) -> aiosqlite.Connection:
        target, uri = (self._memory_uri, True) if self.is_memory else (self._db_path, False)
        # Timestamps are ISO strings with a 'T'; keep sqlite3's converters off
        conn = await aiosqlite.connect(target, detect_types=0, uri=uri, timeout=self._connect_timeout)
        conn.row_factory = aiosqlite.Row
        for pragma in (
            SQLPragmas.JOURNAL_MODE_WAL,
            SQLPragmas.FOREIGN_KEYS_ON,
            SQLPragmas.BUSY_TIMEOUT.format(timeout=self._busy_timeout),
        ):
            await conn.execute(pragma)
        return conn

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        conn = await self._connect()
        try:
            yield conn
        finally:
            await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Connection that commits on exit and rolls back if the block raises."""
        async with self.connection() as conn:
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()

    async def execute(self, sql: str, parameters: tuple[Any, ...] | None = None) -> int:
        """Run one statement in its own transaction and return the affected row count."""
        async with self.transaction() as conn:
            cursor = await conn.execute(sql, parameters or ())
            return cursor.rowcount

    async def fetch_one(self, sql: str, parameters: tuple[Any, ...] | None = None) -> dict[str, Any] | None:
        async with self.connection() as conn:
            cursor = await conn.execute(sql, parameters or ())
            row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, parameters: tuple[Any, ...] | None = None) -> list[dict[str, Any]]:
        async with self.connection() as conn:
            cursor = await conn.execute(sql, parameters or ())
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def close(self) -> None:
        """Release the keepalive connection; an in-memory database is gone afterwards."""
        keepalive, self._keepalive = self._keepalive, None
        self._initialized = False
        if keepalive is not None:
            await keepalive.close()
        logger.info(LogTemplates.DATABASE_CLOSED)
