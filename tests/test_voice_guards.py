"""
Unit Tests for voice guards and reply formatting

Tests for:
- send_ephemeral: fresh vs already-responded interactions
- check_user_in_voice / get_member_voice_channel
- can_force_skip: administrators and owners
- format_duration / truncate
- describe_failure / describe_skip
"""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from conftest import GUILD_ID, USER_ID, VOICE_CHANNEL_ID
from growmies_music.application.services.results import FailureReason, OperationResult
from growmies_music.domain.shared.messages import DiscordUIMessages
from growmies_music.infrastructure.discord.guards.voice_guards import (
    can_force_skip,
    check_user_in_voice,
    get_member_voice_channel,
    send_ephemeral,
)
from growmies_music.utils.reply import describe_failure, describe_skip, format_duration, truncate


def _interaction(user=None, *, responded=False, bot_channel_id=None):
    interaction = MagicMock()
    interaction.user = user
    interaction.guild = MagicMock()
    interaction.response.is_done.return_value = responded
    interaction.response.send_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    guild = MagicMock()
    if bot_channel_id is None:
        guild.voice_client = None
    else:
        guild.voice_client.channel.id = bot_channel_id
    interaction.client.get_guild.return_value = guild
    return interaction


def _member(*, channel_id=None, admin=False, user_id=USER_ID):
    member = MagicMock(spec=discord.Member)
    member.id = user_id
    member.guild_permissions = MagicMock(administrator=admin)
    if channel_id is None:
        member.voice = None
    else:
        member.voice = MagicMock()
        member.voice.channel.id = channel_id
    return member


def _sent(interaction):
    """The text of the single ephemeral reply, whichever path sent it."""
    call = interaction.followup.send.call_args or interaction.response.send_message.call_args
    assert call.kwargs["ephemeral"] is True
    return call.args[0]


# =============================================================================
# Guard Tests
# =============================================================================


class TestSendEphemeral:
    """Tests for replying privately."""

    @pytest.mark.asyncio
    async def test_fresh_interaction(self):
        """Should use the initial response when nothing was sent yet."""
        interaction = _interaction()

        await send_ephemeral(interaction, "hi")

        interaction.response.send_message.assert_awaited_once_with("hi", ephemeral=True)
        interaction.followup.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_already_responded(self):
        """Should fall back to a followup once the interaction was answered."""
        interaction = _interaction(responded=True)

        await send_ephemeral(interaction, "hi")

        interaction.followup.send.assert_awaited_once_with("hi", ephemeral=True)


class TestVoicePresence:
    """Tests for the voice-channel checks."""

    @pytest.mark.asyncio
    async def test_user_not_in_voice(self):
        """Should refuse and explain when the member is not in voice."""
        interaction = _interaction(_member())

        assert await check_user_in_voice(interaction, GUILD_ID) is False
        assert _sent(interaction) == DiscordUIMessages.STATE_MUST_BE_IN_VOICE

    @pytest.mark.asyncio
    async def test_user_in_other_channel(self):
        """Should refuse a member sitting in a different channel from the bot."""
        interaction = _interaction(_member(channel_id=1), bot_channel_id=VOICE_CHANNEL_ID)

        assert await check_user_in_voice(interaction, GUILD_ID) is False

    @pytest.mark.asyncio
    async def test_user_with_bot(self):
        """Should pass a member in the bot's channel."""
        interaction = _interaction(_member(channel_id=VOICE_CHANNEL_ID), bot_channel_id=VOICE_CHANNEL_ID)

        assert await check_user_in_voice(interaction, GUILD_ID) is True

    @pytest.mark.asyncio
    async def test_bot_not_connected(self):
        """Should pass any member in voice while the bot is not connected."""
        interaction = _interaction(_member(channel_id=VOICE_CHANNEL_ID))

        assert await check_user_in_voice(interaction, GUILD_ID) is True

    @pytest.mark.asyncio
    async def test_member_voice_channel_outside_guild(self):
        """Should refuse direct messages."""
        interaction = _interaction(_member(channel_id=VOICE_CHANNEL_ID))
        interaction.guild = None

        assert await get_member_voice_channel(interaction) is None
        assert _sent(interaction) == DiscordUIMessages.STATE_SERVER_ONLY

    @pytest.mark.asyncio
    async def test_member_voice_channel(self):
        """Should return the member's current channel."""
        member = _member(channel_id=VOICE_CHANNEL_ID)

        channel = await get_member_voice_channel(_interaction(member))

        assert channel.id == VOICE_CHANNEL_ID


class TestCanForceSkip:
    """Tests for force-skip permission."""

    def test_administrator(self):
        """Should allow server administrators."""
        assert can_force_skip(_member(admin=True), owner_ids=[]) is True

    def test_owner(self):
        """Should allow configured bot owners."""
        assert can_force_skip(_member(), owner_ids=[USER_ID]) is True

    def test_regular_member(self):
        """Should refuse everyone else."""
        assert can_force_skip(_member(), owner_ids=[1]) is False


# =============================================================================
# Reply Formatting Tests
# =============================================================================


class TestFormatting:
    """Tests for duration and title formatting."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(None, "–"), (0, "0:00"), (65, "1:05"), (3600, "1:00:00"), (3725.9, "1:02:05")],
    )
    def test_format_duration(self, seconds, expected):
        """Should render m:ss below an hour and h:mm:ss above."""
        assert format_duration(seconds) == expected

    def test_truncate(self):
        """Should cut long text with an ellipsis and leave short text alone."""
        assert truncate("short") == "short"
        assert truncate("x" * 20, max_length=10) == "x" * 9 + "…"


class TestDescribeResults:
    """Tests for turning operation results into replies."""

    def test_access_denied_uses_error(self):
        """Should surface the gate's own message."""
        result = OperationResult.fail(FailureReason.ACCESS_DENIED, "Verify first")

        assert describe_failure(result) == "🔞 Verify first"

    def test_track_not_found(self):
        """Should name the query that found nothing."""
        result = OperationResult.fail(FailureReason.TRACK_NOT_FOUND, query="nothing")

        assert describe_failure(result) == DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query="nothing")

    def test_position_not_found(self):
        """Should name the missing queue position."""
        result = OperationResult.fail(FailureReason.NOT_FOUND, position=4)

        assert describe_failure(result) == DiscordUIMessages.ERROR_NO_TRACK_AT_POSITION.format(position=4)

    def test_mapped_reason(self):
        """Should use the canned message for simple reasons."""
        assert describe_failure(OperationResult.fail(FailureReason.NO_SESSION)) == DiscordUIMessages.STATE_NO_SESSION

    def test_vote_recorded(self):
        """Should report progress for a counted vote."""
        result = OperationResult.ok(skipped=False, votes=1, needed=3)

        assert describe_skip(result) == DiscordUIMessages.VOTE_RECORDED.format(votes_current=1, votes_needed=3)

    def test_skip_with_next(self):
        """Should name both the skipped and the next track."""
        result = OperationResult.ok(skipped=True, skipped_track={"title": "A"}, next_track={"title": "B"})

        assert describe_skip(result) == DiscordUIMessages.ACTION_SKIPPED_NEXT.format(title="A", next_title="B")

    def test_skip_end_of_queue(self):
        """Should name only the skipped track when the queue is empty."""
        result = OperationResult.ok(skipped=True, skipped_track={"title": "A"}, next_track=None)

        assert describe_skip(result) == DiscordUIMessages.ACTION_SKIPPED.format(title="A")
