"""
Unit Tests for sessions and their persistence

Tests for:
- MusicSession: classification invariants, status transitions, end()
- SessionRegistry: one live session per guild, end, volume, stale cleanup
- SQLiteSessionRepository: round trip and the one-live-session index
- GetSessionStatsHandler: per-type aggregates over ended sessions
"""

import asyncio
from datetime import timedelta

import pytest
from pydantic import ValidationError

from conftest import GUILD_ID, OTHER_USER_ID, TEXT_CHANNEL_ID, USER_ID, VOICE_CHANNEL_ID
from growmies_music.application.queries.session_stats import GetSessionStatsHandler, GetSessionStatsQuery
from growmies_music.application.services.session_registry import SessionOptions
from growmies_music.domain.music.entities import MusicSession
from growmies_music.domain.music.services import SessionDomainService
from growmies_music.domain.music.value_objects import EndReason, SessionStatus, SessionType
from growmies_music.domain.shared.datetime_utils import utcnow
from growmies_music.domain.shared.events import SessionStarted, get_event_bus
from growmies_music.domain.shared.exceptions import InvalidOperationError, SessionAlreadyActiveError


def _session(**overrides):
    fields = {
        "guild_id": GUILD_ID,
        "voice_channel_id": VOICE_CHANNEL_ID,
        "text_channel_id": TEXT_CHANNEL_ID,
        "created_by_user_id": USER_ID,
    }
    fields.update(overrides)
    return MusicSession(**fields)


# =============================================================================
# MusicSession Entity Tests
# =============================================================================


class TestMusicSession:
    """Unit tests for the MusicSession entity."""

    def test_defaults(self):
        """Should start active at the default volume with no loop mode."""
        session = _session()

        assert session.status == SessionStatus.ACTIVE
        assert session.volume_level == 50
        assert session.metadata["loop_mode"] == "none"
        assert session.is_live is True

    def test_meditation_requires_cannabis_flag(self):
        """Should reject a meditation session not flagged as cannabis content."""
        with pytest.raises(ValidationError):
            _session(session_type=SessionType.MEDITATION)

    def test_cannabis_requires_21_plus(self):
        """Should reject cannabis content that is not 21+."""
        with pytest.raises(ValidationError):
            _session(is_cannabis_content=True, requires_21_plus=False)

    @pytest.mark.parametrize(
        ("session_type", "flag", "expected"),
        [
            (SessionType.GENERAL, False, (False, False)),
            (SessionType.GENERAL, True, (True, True)),
            (SessionType.MEDITATION, False, (True, True)),
            (SessionType.EDUCATIONAL, False, (True, True)),
        ],
    )
    def test_classify(self, session_type, flag, expected):
        """Should force meditation and educational sessions to 21+ cannabis content."""
        assert SessionDomainService.classify(session_type, flag) == expected

    def test_pause_and_resume_transitions(self):
        """Should move between active and paused."""
        session = _session()

        session.set_status(SessionStatus.PAUSED)
        assert session.is_paused is True
        session.set_status(SessionStatus.ACTIVE)
        assert session.status == SessionStatus.ACTIVE

    def test_end_is_terminal(self):
        """Should set ended_at once and refuse further changes."""
        session = _session()
        session.end(EndReason.USER_STOP)

        assert session.status == SessionStatus.ENDED
        assert session.ended_at is not None
        assert session.end_reason == "user_stop"
        with pytest.raises(InvalidOperationError):
            session.end(EndReason.USER_STOP)
        with pytest.raises(InvalidOperationError):
            session.set_status(SessionStatus.ACTIVE)

    def test_volume_bounds(self):
        """Should reject a volume outside 0-100."""
        with pytest.raises(ValidationError):
            _session(volume_level=101)


# =============================================================================
# SessionRegistry Tests
# =============================================================================


class TestSessionRegistry:
    """Unit tests for SessionRegistry."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, session_registry):
        """Should create a session that is then the guild's active one."""
        session = await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)

        active = await session_registry.get_active_session(GUILD_ID)
        assert active.id == session.id
        assert active.created_by_user_id == USER_ID

    @pytest.mark.asyncio
    async def test_create_classifies_meditation(self, session_registry):
        """Should store a meditation session as 21+ cannabis content."""
        session = await session_registry.create_session(
            GUILD_ID,
            VOICE_CHANNEL_ID,
            TEXT_CHANNEL_ID,
            USER_ID,
            SessionOptions(session_type=SessionType.MEDITATION),
        )

        assert session.is_cannabis_content is True
        assert session.requires_21_plus is True

    @pytest.mark.asyncio
    async def test_second_session_rejected(self, session_registry):
        """Should raise SessionAlreadyActiveError while a session is live."""
        await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)

        with pytest.raises(SessionAlreadyActiveError):
            await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, OTHER_USER_ID)

    @pytest.mark.asyncio
    async def test_concurrent_creates(self, session_registry, session_repository):
        """Should let exactly one of several concurrent creates succeed."""
        results = await asyncio.gather(
            *(
                session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)
                for _ in range(5)
            ),
            return_exceptions=True,
        )

        created = [r for r in results if isinstance(r, MusicSession)]
        rejected = [r for r in results if isinstance(r, SessionAlreadyActiveError)]
        assert len(created) == 1
        assert len(rejected) == 4
        assert len(await session_repository.get_all_active()) == 1

    @pytest.mark.asyncio
    async def test_publishes_session_started(self, session_registry):
        """Should publish SessionStarted after creating."""
        events = []

        async def handler(event):
            events.append(event)

        get_event_bus().subscribe(SessionStarted, handler)
        session = await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)

        assert [e.session_id for e in events] == [session.id]

    @pytest.mark.asyncio
    async def test_end_session(self, session_registry, session_repository):
        """Should end the live session and report False the second time."""
        session = await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)

        assert await session_registry.end_session(GUILD_ID, EndReason.USER_STOP) is True
        assert await session_registry.end_session(GUILD_ID) is False

        stored = await session_repository.get(session.id)
        assert stored.status == SessionStatus.ENDED
        assert stored.metadata["end_reason"] == "user_stop"

    @pytest.mark.asyncio
    async def test_update_volume(self, session_registry, session_repository):
        """Should persist a valid volume on a live session."""
        session = await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)

        assert await session_registry.update_volume(session.id, 0) is True
        assert (await session_repository.get(session.id)).volume_level == 0

    @pytest.mark.asyncio
    async def test_update_volume_invalid(self, session_registry):
        """Should raise for a level outside 0-100."""
        session = await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)

        with pytest.raises(ValueError):
            await session_registry.update_volume(session.id, 150)

    @pytest.mark.asyncio
    async def test_update_volume_ended_session(self, session_registry):
        """Should refuse to change an ended session."""
        session = await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)
        await session_registry.end_session(GUILD_ID)

        assert await session_registry.update_volume(session.id, 40) is False

    @pytest.mark.asyncio
    async def test_advance_track_index(self, session_registry):
        """Should increment the index on each call."""
        session = await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)

        assert await session_registry.advance_track_index(session.id) == 1
        assert await session_registry.advance_track_index(session.id) == 2

    @pytest.mark.asyncio
    async def test_end_stale_sessions(self, session_registry, session_repository):
        """Should end every live session left by a previous process."""
        await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)
        await session_registry.create_session(GUILD_ID + 1, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)

        assert await session_registry.end_stale_sessions() == 2
        assert await session_repository.get_all_active() == []


# =============================================================================
# SQLiteSessionRepository Tests
# =============================================================================


class TestSQLiteSessionRepository:
    """Tests against the in-memory SQLite store."""

    @pytest.mark.asyncio
    async def test_round_trip(self, session_repository):
        """Should read back exactly what was written."""
        session = _session(
            session_type=SessionType.EDUCATIONAL,
            is_cannabis_content=True,
            requires_21_plus=True,
            volume_level=65,
        )
        await session_repository.add(session)

        stored = await session_repository.get(session.id)

        assert stored.session_type == SessionType.EDUCATIONAL
        assert stored.is_cannabis_content is True
        assert stored.volume_level == 65
        assert stored.started_at == session.started_at

    @pytest.mark.asyncio
    async def test_store_rejects_second_live_session(self, session_repository):
        """Should enforce one live session per guild even without the registry."""
        await session_repository.add(_session())

        with pytest.raises(SessionAlreadyActiveError):
            await session_repository.add(_session())

    @pytest.mark.asyncio
    async def test_ended_sessions_do_not_block(self, session_repository):
        """Should allow a new live session once the previous one ended."""
        first = _session()
        await session_repository.add(first)
        first.end(EndReason.USER_STOP)
        await session_repository.save(first)

        await session_repository.add(_session())

        assert len(await session_repository.get_all_active()) == 1


# =============================================================================
# GetSessionStatsHandler Tests
# =============================================================================


class TestSessionStats:
    """Unit tests for the per-type stats query."""

    @pytest.mark.asyncio
    async def test_aggregates_ended_sessions_by_type(self, session_repository):
        """Should count and average durations per session type."""
        now = utcnow()
        for minutes, session_type in [(30, SessionType.GENERAL), (10, SessionType.GENERAL), (20, SessionType.MEDITATION)]:
            cannabis = session_type.is_cannabis_flagged
            session = _session(
                session_type=session_type,
                is_cannabis_content=cannabis,
                requires_21_plus=cannabis,
                started_at=now - timedelta(minutes=minutes),
            )
            await session_repository.add(session)
            session.end(EndReason.USER_STOP, at=now)
            await session_repository.save(session)

        stats = await GetSessionStatsHandler(session_repository=session_repository).handle(
            GetSessionStatsQuery(guild_id=GUILD_ID, days=7)
        )

        general = stats.by_type[SessionType.GENERAL]
        assert general.count == 2
        assert general.total_duration_minutes == 40
        assert general.avg_duration_minutes == 20.0
        assert stats.by_type[SessionType.MEDITATION].count == 1
        assert stats.total_sessions == 3

    @pytest.mark.asyncio
    async def test_excludes_live_and_old_sessions(self, session_repository):
        """Should ignore live sessions and those started before the window."""
        old = _session(started_at=utcnow() - timedelta(days=40))
        await session_repository.add(old)
        old.end(EndReason.USER_STOP)
        await session_repository.save(old)
        await session_repository.add(_session())

        stats = await GetSessionStatsHandler(session_repository=session_repository).handle(
            GetSessionStatsQuery(guild_id=GUILD_ID, days=30)
        )

        assert stats.total_sessions == 0
        assert stats.to_dict() == {}
