"""Slash-command music cog delegating to the playback engine and queue handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import discord
from discord import app_commands
from discord.ext import commands

from growmies_music.application.commands.manage_queue import (
    ClearQueueCommand,
    RemoveTrackCommand,
    ShuffleQueueCommand,
)
from growmies_music.application.interfaces.voice_transport import (
    PlaybackStartError,
    VoiceConnectionError,
)
from growmies_music.application.queries.get_queue import GetQueueQuery
from growmies_music.application.queries.session_stats import GetSessionStatsQuery
from growmies_music.application.services.playback_engine import PlayRequest
from growmies_music.application.services.results import FailureReason, OperationResult
from growmies_music.application.services.session_registry import SessionOptions
from growmies_music.domain.music.value_objects import EndReason, SessionType
from growmies_music.domain.shared.events import TrackStarted, get_event_bus
from growmies_music.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from growmies_music.infrastructure.discord.guards.voice_guards import (
    can_force_skip,
    check_user_in_voice,
    get_member,
    get_member_voice_channel,
    send_ephemeral,
)
from growmies_music.infrastructure.discord.views.music_controls_view import MusicControlsView
from growmies_music.utils.reply import describe_failure, describe_skip, format_duration, truncate

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)

QUEUE_PER_PAGE = 10


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def cog_load(self) -> None:
        get_event_bus().subscribe(TrackStarted, self._on_track_started)

    async def cog_unload(self) -> None:
        get_event_bus().unsubscribe(TrackStarted, self._on_track_started)

    # ── Session ─────────────────────────────────────────────────────

    async def _join(
        self,
        interaction: discord.Interaction,
        channel: discord.VoiceChannel | discord.StageChannel,
        options: SessionOptions,
    ) -> OperationResult | None:
        """Join ``channel``; replies and returns None when the voice connection fails."""
        assert interaction.guild is not None
        try:
            return await self.container.playback_engine.join(
                interaction.guild.id,
                channel.id,
                interaction.channel_id or channel.id,
                interaction.user.id,
                options,
            )
        except VoiceConnectionError as exc:
            logger.warning(LogTemplates.COMMAND_JOIN_FAILED, interaction.guild.id, exc)
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)
            return None

    async def _start_session(
        self,
        interaction: discord.Interaction,
        session_type: SessionType,
        cannabis: bool,
    ) -> None:
        channel = await get_member_voice_channel(interaction)
        if channel is None:
            return

        await interaction.response.defer()
        result = await self._join(
            interaction,
            channel,
            SessionOptions(session_type=session_type, is_cannabis_content=cannabis),
        )
        if result is None:
            return
        if not result.is_success:
            await send_ephemeral(interaction, describe_failure(result))
            return

        session = result.get("session", {})
        template = (
            DiscordUIMessages.SESSION_STARTED_CANNABIS
            if session.get("is_cannabis_content")
            else DiscordUIMessages.SESSION_STARTED
        )
        await interaction.followup.send(
            template.format(channel=channel.name, session_type=session_type.value)
        )

    @app_commands.command(name="join", description="Join your voice channel and start a music session.")
    @app_commands.describe(
        session_type="Kind of session",
        cannabis="Flag the session as 21+ cannabis content",
    )
    async def join(
        self,
        interaction: discord.Interaction,
        session_type: SessionType = SessionType.GENERAL,
        cannabis: bool = False,
    ) -> None:
        await self._start_session(interaction, session_type, cannabis)

    @app_commands.command(name="meditation", description="Start a 21+ meditation session.")
    async def meditation(self, interaction: discord.Interaction) -> None:
        await self._start_session(interaction, SessionType.MEDITATION, True)

    @app_commands.command(name="stop", description="Stop playback, leave voice and end the session.")
    async def stop(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        if await self.container.playback_engine.leave(interaction.guild.id, EndReason.USER_STOP):
            await interaction.response.send_message(DiscordUIMessages.SESSION_ENDED)
        else:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NO_SESSION)

    # ── Playback ────────────────────────────────────────────────────

    @app_commands.command(name="play", description="Play a song by URL or search query.")
    @app_commands.describe(
        query="YouTube URL or search query",
        cannabis="Flag this track as 21+ cannabis content",
        session_type="Session type if a new session has to be started",
    )
    async def play(
        self,
        interaction: discord.Interaction,
        query: str,
        cannabis: bool = False,
        session_type: SessionType = SessionType.GENERAL,
    ) -> None:
        channel = await get_member_voice_channel(interaction)
        if channel is None:
            return
        assert interaction.guild is not None
        guild_id = interaction.guild.id

        # Resolution and voice connection can exceed the 3-second interaction deadline
        await interaction.response.defer()

        engine = self.container.playback_engine
        if await self.container.session_registry.get_active_session(guild_id) is None:
            joined = await self._join(
                interaction,
                channel,
                SessionOptions(session_type=session_type, is_cannabis_content=cannabis),
            )
            if joined is None:
                return
            # Losing a join race to another /play still leaves a session to play into
            if not joined.is_success and joined.reason != FailureReason.ALREADY_ACTIVE:
                await send_ephemeral(interaction, describe_failure(joined))
                return

        try:
            result = await engine.play(
                guild_id, query, PlayRequest(user_id=interaction.user.id, is_cannabis_content=cannabis)
            )
        except PlaybackStartError as exc:
            logger.warning(LogTemplates.COMMAND_PLAY_FAILED, guild_id, exc)
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_OCCURRED.format(error=exc))
            return

        if not result.is_success:
            await send_ephemeral(interaction, describe_failure(result))
            return

        if result.get("queued"):
            await interaction.followup.send(
                DiscordUIMessages.ACTION_QUEUED.format(
                    title=truncate(result.get("title", "")), position=result.get("position")
                )
            )
            return

        embed = self._build_now_playing_embed(result.get("now_playing", {}))
        view = MusicControlsView(guild_id=guild_id, container=self.container)
        sent = await interaction.followup.send(embed=embed, view=view, wait=True)
        view.set_message(sent)

    @app_commands.command(name="pause", description="Pause the current track.")
    async def pause(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        if await self.container.playback_engine.pause(interaction.guild.id):
            await interaction.response.send_message(DiscordUIMessages.ACTION_PAUSED)
        else:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING_OR_PAUSED)

    @app_commands.command(name="resume", description="Resume paused playback.")
    async def resume(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        if await self.container.playback_engine.resume(interaction.guild.id):
            await interaction.response.send_message(DiscordUIMessages.ACTION_RESUMED)
        else:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PAUSED)

    @app_commands.command(name="skip", description="Skip the current track (or vote to skip it).")
    @app_commands.describe(force="Skip without a vote (admins only)")
    async def skip(self, interaction: discord.Interaction, force: bool = False) -> None:
        member = await get_member(interaction)
        if member is None:
            return
        assert interaction.guild is not None
        if not await check_user_in_voice(interaction, interaction.guild.id):
            return

        await interaction.response.defer()
        engine = self.container.playback_engine
        if force and can_force_skip(member, self.container.settings.discord.owner_ids):
            result = await engine.skip(interaction.guild.id)
        else:
            result = await engine.request_skip(interaction.guild.id, member.id)

        if result.is_success:
            await interaction.followup.send(describe_skip(result))
        else:
            await send_ephemeral(interaction, describe_failure(result))

    @app_commands.command(name="volume", description="Set the session volume.")
    @app_commands.describe(level="Volume from 0 to 100")
    async def volume(self, interaction: discord.Interaction, level: int) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        result = await self.container.playback_engine.set_volume(interaction.guild.id, level)
        if not result.is_success:
            await send_ephemeral(interaction, describe_failure(result))
            return

        template = (
            DiscordUIMessages.ACTION_VOLUME_SET
            if result.get("applied_live")
            else DiscordUIMessages.ACTION_VOLUME_SET_NEXT_TRACK
        )
        await interaction.response.send_message(template.format(level=level))

    @app_commands.command(name="nowplaying", description="Show the current track.")
    async def nowplaying(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        result = await self.container.playback_engine.get_status(interaction.guild.id)
        if not result.is_success:
            await send_ephemeral(interaction, describe_failure(result))
            return

        current = result.get("current_track")
        if not current:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING)
            return

        view = MusicControlsView(guild_id=interaction.guild.id, container=self.container)
        await interaction.response.send_message(embed=self._build_now_playing_embed(current), view=view)
        view.set_message(await interaction.original_response())

    # ── Queue ───────────────────────────────────────────────────────

    @app_commands.command(name="queue", description="Show the upcoming tracks.")
    @app_commands.describe(page="Page number")
    async def queue(self, interaction: discord.Interaction, page: int = 1) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        info = await self.container.get_queue_handler.handle(GetQueueQuery(guild_id=interaction.guild.id))
        if not info.has_session:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NO_SESSION)
            return
        if info.is_empty:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_QUEUE_EMPTY)
            return

        pending = info.pending
        total_pages = max(1, -(-len(pending) // QUEUE_PER_PAGE))
        page = max(1, min(page, total_pages))
        start = (page - 1) * QUEUE_PER_PAGE

        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_QUEUE.format(
                total_tracks=info.stats.unplayed_tracks,
                minutes=info.stats.estimated_playtime_minutes,
            ),
            color=discord.Color.green(),
        )
        for entry in pending[start : start + QUEUE_PER_PAGE]:
            marker = " 🌿" if entry.is_cannabis_content else ""
            embed.add_field(
                name=f"{entry.position}. {truncate(entry.track_title)}{marker}",
                value=f"{entry.duration_formatted} · requested by <@{entry.requested_by_user_id}>",
                inline=False,
            )
        embed.set_footer(text=f"Page {page}/{total_pages}")
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="shuffle", description="Shuffle the upcoming tracks.")
    async def shuffle(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        result = await self.container.manage_queue_handler.shuffle(
            ShuffleQueueCommand(guild_id=interaction.guild.id, user_id=interaction.user.id)
        )
        if result.is_success:
            await interaction.response.send_message(DiscordUIMessages.ACTION_SHUFFLED)
        else:
            await send_ephemeral(interaction, describe_failure(result))

    @app_commands.command(name="remove", description="Remove a track from the queue.")
    @app_commands.describe(position="Queue position shown by /queue")
    async def remove(self, interaction: discord.Interaction, position: app_commands.Range[int, 1]) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        result = await self.container.manage_queue_handler.remove(
            RemoveTrackCommand(
                guild_id=interaction.guild.id, user_id=interaction.user.id, position=position
            )
        )
        if result.is_success:
            await interaction.response.send_message(
                DiscordUIMessages.ACTION_TRACK_REMOVED.format(position=position), ephemeral=True
            )
        else:
            await send_ephemeral(interaction, describe_failure(result))

    @app_commands.command(name="clear", description="Remove every upcoming track.")
    @app_commands.describe(confirm="Must be True to clear the queue")
    async def clear(self, interaction: discord.Interaction, confirm: bool = False) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        result = await self.container.manage_queue_handler.clear(
            ClearQueueCommand(
                guild_id=interaction.guild.id, user_id=interaction.user.id, confirmed=confirm
            )
        )
        if result.is_success:
            await interaction.response.send_message(
                DiscordUIMessages.ACTION_QUEUE_CLEARED.format(count=result.get("cleared", 0)),
                ephemeral=True,
            )
        else:
            await send_ephemeral(interaction, describe_failure(result))

    # ── Preferences and stats ───────────────────────────────────────

    @app_commands.command(name="musicprefs", description="View or update your music preferences.")
    @app_commands.describe(
        volume="Preferred starting volume (0-100)",
        cannabis_music="Allow cannabis-themed music for you",
    )
    async def musicprefs(
        self,
        interaction: discord.Interaction,
        volume: app_commands.Range[int, 0, 100] | None = None,
        cannabis_music: bool | None = None,
    ) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        prefs = self.container.preference_service
        user_id, guild_id = interaction.user.id, interaction.guild.id
        changed = False
        if volume is not None:
            changed |= await prefs.set_preferred_volume(user_id, guild_id, volume)
        if cannabis_music is not None:
            changed |= await prefs.set_cannabis_music(user_id, guild_id, cannabis_music)

        pref = await prefs.get_or_create(user_id, guild_id)
        embed = discord.Embed(title=DiscordUIMessages.EMBED_PREFERENCES, color=discord.Color.green())
        embed.add_field(name="Volume", value=f"{pref.preferred_volume}%")
        embed.add_field(name="Cannabis music", value="on" if pref.cannabis_music_enabled else "off")
        embed.add_field(name="Meditation mode", value="on" if pref.meditation_mode_enabled else "off")
        if pref.favorite_genres:
            embed.add_field(name="Favorite genres", value=", ".join(pref.favorite_genres), inline=False)

        content = DiscordUIMessages.ACTION_PREFERENCES_UPDATED if changed else None
        await interaction.response.send_message(content=content, embed=embed, ephemeral=True)

    @app_commands.command(name="musicstats", description="Session statistics for this server.")
    @app_commands.describe(days="How many days back to look")
    async def musicstats(self, interaction: discord.Interaction, days: app_commands.Range[int, 1, 365] = 30) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        stats = await self.container.session_stats_handler.handle(
            GetSessionStatsQuery(guild_id=interaction.guild.id, days=days)
        )
        embed = discord.Embed(
            title=f"🎶 Music sessions, last {days} days ({stats.total_sessions} total)",
            color=discord.Color.green(),
        )
        for session_type, type_stats in stats.by_type.items():
            embed.add_field(
                name=session_type.value.title(),
                value=f"{type_stats.count} sessions · avg {type_stats.avg_duration_minutes:.0f} min",
            )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    # ── Listeners ───────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        if self.bot.user is None or member.id != self.bot.user.id:
            return
        if before.channel is None or after.channel is not None:
            return
        await self.container.voice_transport.handle_bot_voice_state(member.guild.id, None)

    async def _on_track_started(self, event: TrackStarted) -> None:
        """Announce tracks that started on their own in the session's text channel."""
        if not event.automatic:
            return
        session = await self.container.session_registry.get_active_session(event.guild_id)
        if session is None:
            return

        channel = self.bot.get_channel(session.text_channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            return
        try:
            await channel.send(DiscordUIMessages.ACTION_NOW_PLAYING.format(title=truncate(event.track_title)))
        except discord.HTTPException as exc:
            logger.debug(LogTemplates.ANNOUNCE_FAILED, event.guild_id, exc)

    # ── Rendering ───────────────────────────────────────────────────

    @staticmethod
    def _build_now_playing_embed(track: dict[str, Any]) -> discord.Embed:
        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_NOW_PLAYING,
            description=f"**{truncate(track.get('title', 'Unknown Track'))}**",
            url=track.get("url"),
            color=discord.Color.green(),
        )
        embed.add_field(name="Duration", value=format_duration(track.get("duration_seconds")))
        if track.get("requested_by"):
            embed.add_field(name="Requested by", value=f"<@{track['requested_by']}>")
        if track.get("position") is not None:
            embed.add_field(name="Position", value=str(track["position"]))
        if track.get("is_cannabis_content"):
            embed.set_footer(text="🌿 21+ content")
        return embed


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
