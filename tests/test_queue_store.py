"""
Unit Tests for the Queue Store and queue commands/queries

Tests for:
- QueueStore: FIFO dequeue, stable positions, shuffle, clear, stats
- ManageQueueHandler: remove / clear / shuffle results
- GetQueueHandler: pending listing and history
"""

import random

import pytest
import pytest_asyncio

from conftest import GUILD_ID, TEXT_CHANNEL_ID, USER_ID, VOICE_CHANNEL_ID, make_track
from growmies_music.application.commands.manage_queue import (
    ClearQueueCommand,
    ManageQueueHandler,
    RemoveTrackCommand,
    ShuffleQueueCommand,
)
from growmies_music.application.queries.get_queue import GetQueueHandler, GetQueueQuery
from growmies_music.application.services.queue_service import QueueStore
from growmies_music.application.services.results import FailureReason
from growmies_music.domain.shared.exceptions import ValidationError


@pytest_asyncio.fixture
async def session_id(session_registry, guild_registry):
    """A live session with a registered player, without a voice connection."""
    from growmies_music.application.services.guild_registry import GuildPlayer

    session = await session_registry.create_session(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)
    guild_registry.register(
        GuildPlayer(
            guild_id=GUILD_ID,
            voice_channel_id=VOICE_CHANNEL_ID,
            text_channel_id=TEXT_CHANNEL_ID,
            session_id=session.id,
        )
    )
    return session.id


async def _fill(queue_store, session_id, *slugs, duration=180):
    return [await queue_store.enqueue(session_id, make_track(slug, duration)) for slug in slugs]


# =============================================================================
# QueueStore Tests
# =============================================================================


class TestQueueStore:
    """Unit tests for QueueStore."""

    @pytest.mark.asyncio
    async def test_enqueue_assigns_increasing_positions(self, queue_store, session_id):
        """Should assign positions 1, 2, 3 in insertion order."""
        entries = await _fill(queue_store, session_id, "a", "b", "c")

        assert [e.position for e in entries] == [1, 2, 3]
        assert all(e.is_pending for e in entries)

    @pytest.mark.asyncio
    async def test_dequeue_is_fifo(self, queue_store, session_id):
        """Should return the lowest pending position without mutating it."""
        first, second = await _fill(queue_store, session_id, "a", "b")

        assert (await queue_store.dequeue_next(session_id)).id == first.id
        assert (await queue_store.dequeue_next(session_id)).id == first.id

        await queue_store.mark_played(first.id)
        assert (await queue_store.dequeue_next(session_id)).id == second.id

    @pytest.mark.asyncio
    async def test_dequeue_empty(self, queue_store, session_id):
        """Should return None when nothing is pending."""
        assert await queue_store.dequeue_next(session_id) is None

    @pytest.mark.asyncio
    async def test_mark_played_once(self, queue_store, session_id):
        """Should set played_at on the first call only."""
        (entry,) = await _fill(queue_store, session_id, "a")

        assert await queue_store.mark_played(entry.id) is True
        first_played_at = (await queue_store.get_entry(entry.id)).played_at
        assert await queue_store.mark_played(entry.id) is False
        assert (await queue_store.get_entry(entry.id)).played_at == first_played_at

    @pytest.mark.asyncio
    async def test_mark_failed_records_reason(self, queue_store, session_id):
        """Should set failed_at and store the reason in metadata."""
        (entry,) = await _fill(queue_store, session_id, "a")

        assert await queue_store.mark_failed(entry.id, "ffmpeg exited") is True

        stored = await queue_store.get_entry(entry.id)
        assert stored.failed_at is not None
        assert stored.metadata["failure_reason"] == "ffmpeg exited"
        assert await queue_store.dequeue_next(session_id) is None

    @pytest.mark.asyncio
    async def test_remove_keeps_other_positions(self, queue_store, session_id):
        """Should delete one pending entry and leave the rest numbered as before."""
        await _fill(queue_store, session_id, "a", "b", "c")

        assert await queue_store.remove(session_id, 2) is True

        remaining = await queue_store.list_entries(session_id)
        assert [(e.position, e.track_title) for e in remaining] == [(1, "a"), (3, "c")]

    @pytest.mark.asyncio
    async def test_remove_played_entry_refused(self, queue_store, session_id):
        """Should not remove an entry that was already played."""
        (entry,) = await _fill(queue_store, session_id, "a")
        await queue_store.mark_played(entry.id)

        assert await queue_store.remove(session_id, 1) is False

    @pytest.mark.asyncio
    async def test_append_after_remove_uses_next_position(self, queue_store, session_id):
        """Should append after the highest position even when gaps exist."""
        await _fill(queue_store, session_id, "a", "b", "c")
        await queue_store.remove(session_id, 2)

        (entry,) = await _fill(queue_store, session_id, "d")

        assert entry.position == 4

    @pytest.mark.asyncio
    async def test_clear_requires_confirmation(self, queue_store, session_id):
        """Should refuse to clear without explicit confirmation."""
        await _fill(queue_store, session_id, "a")

        with pytest.raises(ValidationError):
            await queue_store.clear(session_id)

        assert len(await queue_store.list_entries(session_id)) == 1

    @pytest.mark.asyncio
    async def test_clear_keeps_history(self, queue_store, session_id):
        """Should delete pending entries and keep played ones."""
        played, *_ = await _fill(queue_store, session_id, "a", "b", "c")
        await queue_store.mark_played(played.id)

        assert await queue_store.clear(session_id, confirmed=True) == 2

        history = await queue_store.list_entries(session_id, include_history=True)
        assert [e.id for e in history] == [played.id]

    @pytest.mark.asyncio
    async def test_shuffle_permutes_pending_positions_only(self, queue_repository, session_id):
        """Should reuse the same pending positions and never move played entries."""
        store = QueueStore(queue_repository=queue_repository, rng=random.Random(7))
        played, *pending = await _fill(store, session_id, "a", "b", "c", "d", "e")
        await store.mark_played(played.id)

        assert await store.shuffle(session_id) is True

        after = await store.list_entries(session_id, include_history=True)
        by_id = {e.id: e for e in after}
        assert by_id[played.id].position == 1
        assert sorted(e.position for e in after if e.is_pending) == [2, 3, 4, 5]
        assert {e.id for e in after if e.is_pending} == {e.id for e in pending}

    @pytest.mark.asyncio
    async def test_shuffle_needs_two_pending(self, queue_store, session_id):
        """Should report False with fewer than two pending entries."""
        await _fill(queue_store, session_id, "a")

        assert await queue_store.shuffle(session_id) is False

    @pytest.mark.asyncio
    async def test_stats(self, queue_store, session_id):
        """Should count played, failed and pending entries and round playtime up."""
        a, b, _c, _d = await _fill(queue_store, session_id, "a", "b", "c", "d", duration=90)
        await queue_store.mark_played(a.id)
        await queue_store.mark_failed(b.id, "gone")

        stats = await queue_store.stats(session_id)

        assert stats.total_tracks == 4
        assert stats.played_tracks == 1
        assert stats.failed_tracks == 1
        assert stats.unplayed_tracks == 2
        assert stats.estimated_playtime_minutes == 3

    @pytest.mark.asyncio
    async def test_stats_empty_session(self, queue_store, session_id):
        """Should return zeroes for an empty queue."""
        stats = await queue_store.stats(session_id)

        assert stats.to_dict() == {
            "totalTracks": 0,
            "playedTracks": 0,
            "unplayedTracks": 0,
            "failedTracks": 0,
            "estimatedPlaytimeMinutes": 0,
        }

    @pytest.mark.asyncio
    async def test_unknown_duration_counts_as_zero(self, queue_store, session_id):
        """Should ignore tracks with no known duration in the playtime estimate."""
        await _fill(queue_store, session_id, "live-stream", duration=None)

        assert (await queue_store.stats(session_id)).estimated_playtime_minutes == 0


# =============================================================================
# ManageQueueHandler Tests
# =============================================================================


@pytest.fixture
def manage_handler(guild_registry, session_registry, queue_store):
    return ManageQueueHandler(
        registry=guild_registry, session_registry=session_registry, queue_store=queue_store
    )


class TestManageQueueHandler:
    """Unit tests for queue management commands."""

    @pytest.mark.asyncio
    async def test_remove_success(self, manage_handler, queue_store, session_id):
        """Should remove the entry at the given position."""
        await _fill(queue_store, session_id, "a", "b")

        result = await manage_handler.remove(RemoveTrackCommand(guild_id=GUILD_ID, user_id=USER_ID, position=2))

        assert result.success is True
        assert result.position == 2

    @pytest.mark.asyncio
    async def test_remove_missing_position(self, manage_handler, session_id):
        """Should fail with NOT_FOUND for an empty position."""
        result = await manage_handler.remove(RemoveTrackCommand(guild_id=GUILD_ID, user_id=USER_ID, position=9))

        assert result.reason == FailureReason.NOT_FOUND
        assert result.get("position") == 9

    @pytest.mark.asyncio
    async def test_remove_without_session(self, manage_handler):
        """Should fail with NO_SESSION."""
        result = await manage_handler.remove(RemoveTrackCommand(guild_id=GUILD_ID, user_id=USER_ID, position=1))

        assert result.reason == FailureReason.NO_SESSION

    @pytest.mark.asyncio
    async def test_clear_not_confirmed(self, manage_handler, queue_store, session_id):
        """Should fail with NOT_CONFIRMED and keep the queue."""
        await _fill(queue_store, session_id, "a")

        result = await manage_handler.clear(ClearQueueCommand(guild_id=GUILD_ID, user_id=USER_ID))

        assert result.reason == FailureReason.NOT_CONFIRMED
        assert len(await queue_store.list_entries(session_id)) == 1

    @pytest.mark.asyncio
    async def test_clear_confirmed(self, manage_handler, queue_store, session_id):
        """Should report how many entries were cleared."""
        await _fill(queue_store, session_id, "a", "b")

        result = await manage_handler.clear(ClearQueueCommand(guild_id=GUILD_ID, user_id=USER_ID, confirmed=True))

        assert result.success is True
        assert result.cleared == 2

    @pytest.mark.asyncio
    async def test_shuffle_not_enough_tracks(self, manage_handler, session_id):
        """Should fail with NOT_ENOUGH_TRACKS on an empty queue."""
        result = await manage_handler.shuffle(ShuffleQueueCommand(guild_id=GUILD_ID, user_id=USER_ID))

        assert result.reason == FailureReason.NOT_ENOUGH_TRACKS

    @pytest.mark.asyncio
    async def test_shuffle_success(self, manage_handler, queue_store, session_id):
        """Should shuffle two or more pending entries."""
        await _fill(queue_store, session_id, "a", "b", "c")

        result = await manage_handler.shuffle(ShuffleQueueCommand(guild_id=GUILD_ID, user_id=USER_ID))

        assert result.success is True

    def test_remove_command_rejects_position_zero(self):
        """Should validate that positions are one-based."""
        from pydantic import ValidationError as PydanticValidationError

        with pytest.raises(PydanticValidationError):
            RemoveTrackCommand(guild_id=GUILD_ID, user_id=USER_ID, position=0)


# =============================================================================
# GetQueueHandler Tests
# =============================================================================


class TestGetQueueHandler:
    """Unit tests for the queue listing query."""

    @pytest.mark.asyncio
    async def test_lists_pending_entries(self, session_registry, queue_store, session_id):
        """Should list pending entries in position order with stats."""
        first, _ = await _fill(queue_store, session_id, "a", "b")
        await queue_store.mark_played(first.id)
        handler = GetQueueHandler(session_registry=session_registry, queue_store=queue_store)

        info = await handler.handle(GetQueueQuery(guild_id=GUILD_ID))

        assert info.has_session is True
        assert [e.track_title for e in info.entries] == ["b"]
        assert info.stats.played_tracks == 1

    @pytest.mark.asyncio
    async def test_includes_history(self, session_registry, queue_store, session_id):
        """Should include played entries when asked."""
        first, _ = await _fill(queue_store, session_id, "a", "b")
        await queue_store.mark_played(first.id)
        handler = GetQueueHandler(session_registry=session_registry, queue_store=queue_store)

        info = await handler.handle(GetQueueQuery(guild_id=GUILD_ID, include_history=True))

        assert [e.track_title for e in info.entries] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_no_session(self, session_registry, queue_store):
        """Should return an empty result without a session."""
        handler = GetQueueHandler(session_registry=session_registry, queue_store=queue_store)

        info = await handler.handle(GetQueueQuery(guild_id=GUILD_ID))

        assert info.has_session is False
        assert info.is_empty is True
