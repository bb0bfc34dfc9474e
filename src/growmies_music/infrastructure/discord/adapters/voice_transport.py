"""Discord voice transport: one VoiceClient plus FFmpeg pipeline per guild."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from typing import TYPE_CHECKING

import discord

from growmies_music.application.interfaces.voice_transport import (
    ConnectionLostCallback,
    PlaybackStartError,
    TrackEndCallback,
    VoiceConnectionError,
    VoiceTransport,
)
from growmies_music.config.settings import AudioSettings
from growmies_music.domain.shared.constants import TimeConstants
from growmies_music.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ....application.interfaces.audio_resolver import AudioResource

logger = logging.getLogger(__name__)

# PCMVolumeTransformer accepts up to 2.0; levels above 1.0 distort
MAX_VOLUME_MULTIPLIER: float = 1.0


class DiscordVoiceTransport(VoiceTransport):
    def __init__(
        self,
        bot: discord.Client,
        settings: AudioSettings | None = None,
        *,
        connect_timeout: float = TimeConstants.VOICE_CONNECT_TIMEOUT,
    ) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._ffmpeg_options = self._settings.ffmpeg_options
        self._connect_timeout = connect_timeout
        self._on_connection_lost: ConnectionLostCallback | None = None
        # Guilds we disconnected on purpose; their voice-state drop is not a loss
        self._leaving: set[int] = set()
        # Guilds whose drop is being reported right now
        self._lost: set[int] = set()

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def connect(self, guild_id: int, channel_id: int) -> None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.VOICE_GUILD_NOT_FOUND, guild_id)
            raise VoiceConnectionError(guild_id, channel_id, self._connect_error(channel_id, "unknown guild"))

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.VOICE_CHANNEL_NOT_VOICE, channel_id)
            raise VoiceConnectionError(guild_id, channel_id, self._connect_error(channel_id, "not a voice channel"))

        vc = self._get_voice_client(guild_id)
        if vc and not vc.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild_id)
            await self.disconnect(guild_id)
            vc = None
        # A new connection starts with no pending intentional drop
        self._leaving.discard(guild_id)

        try:
            async with asyncio.timeout(self._connect_timeout):
                if vc is not None:
                    await vc.move_to(channel)
                    logger.info(LogTemplates.VOICE_MOVED, channel.name)
                else:
                    await channel.connect(self_deaf=True)
                    logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        except TimeoutError as exc:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise VoiceConnectionError(guild_id, channel_id, self._connect_error(channel_id, "timed out")) from exc
        except discord.Forbidden as exc:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise VoiceConnectionError(guild_id, channel_id, self._connect_error(channel_id, "missing permission")) from exc
        except discord.ClientException as exc:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, exc)
            raise VoiceConnectionError(guild_id, channel_id, self._connect_error(channel_id, exc)) from exc

        await self._ensure_self_deaf(guild, channel)

    @staticmethod
    def _connect_error(channel_id: int, error: object) -> str:
        return ErrorMessages.VOICE_CONNECT_FAILED.format(channel_id=channel_id, error=error)

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> None:
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except discord.HTTPException as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    async def disconnect(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        if guild_id not in self._lost:
            self._leaving.add(guild_id)
        try:
            await vc.disconnect(force=True)
        except discord.ClientException:
            logger.exception(LogTemplates.VOICE_DISCONNECT_FAILED, guild_id)
            return False
        logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        return True

    async def play(
        self,
        guild_id: int,
        resource: AudioResource,
        *,
        volume: float,
        on_finished: TrackEndCallback,
    ) -> None:
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.is_connected():
            logger.warning(LogTemplates.VOICE_NOT_CONNECTED, guild_id)
            raise PlaybackStartError(
                guild_id, resource.title, ErrorMessages.VOICE_NOT_CONNECTED.format(guild_id=guild_id)
            )

        if vc.is_playing() or vc.is_paused():
            vc.stop()

        loop = asyncio.get_running_loop()

        def after_callback(error: Exception | None = None) -> None:
            # Runs on the FFmpeg reader thread
            future = asyncio.run_coroutine_threadsafe(on_finished(error), loop)
            future.add_done_callback(lambda f: self._log_callback_failure(guild_id, f))

        try:
            source = discord.FFmpegPCMAudio(
                resource.stream_url,
                before_options=self._ffmpeg_options.get("before_options", ""),
                options=self._ffmpeg_options.get("options", ""),
            )
            vc.play(
                discord.PCMVolumeTransformer(source, volume=self._clamp(volume)),
                after=after_callback,
            )
        except discord.ClientException as exc:
            raise PlaybackStartError(
                guild_id,
                resource.title,
                ErrorMessages.PLAYBACK_START_FAILED.format(title=resource.title, error=exc),
            ) from exc

    @staticmethod
    def _log_callback_failure(guild_id: int, future: concurrent.futures.Future[None]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(LogTemplates.PLAYBACK_CALLBACK_ERROR, guild_id, exc_info=exc)

    async def stop(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc or not (vc.is_playing() or vc.is_paused()):
            return False
        vc.stop()
        logger.info(LogTemplates.PLAYBACK_STOPPED, guild_id)
        return True

    async def pause(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.is_playing():
            return False
        vc.pause()
        return True

    async def resume(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.is_paused():
            return False
        vc.resume()
        return True

    async def set_volume(self, guild_id: int, volume: float) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc or not isinstance(vc.source, discord.PCMVolumeTransformer):
            return False
        vc.source.volume = self._clamp(volume)
        return True

    @staticmethod
    def _clamp(volume: float) -> float:
        return max(0.0, min(MAX_VOLUME_MULTIPLIER, volume))

    def is_connected(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_connected()

    async def get_listeners(self, guild_id: int) -> list[int]:
        """Return user IDs of non-bot, non-deafened members in the voice channel."""
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.channel:
            return []

        listeners: list[int] = []
        for member in vc.channel.members:
            if member.bot:
                continue
            if member.voice and (member.voice.deaf or member.voice.self_deaf):
                continue
            listeners.append(member.id)
        return listeners

    def set_on_connection_lost(self, callback: ConnectionLostCallback) -> None:
        self._on_connection_lost = callback

    async def handle_bot_voice_state(self, guild_id: int, channel_id: int | None) -> None:
        """Fed from ``on_voice_state_update`` for the bot's own member.

        A drop to ``channel_id=None`` that we did not ask for is reported to
        the connection-lost handler.
        """
        if channel_id is not None:
            return
        if guild_id in self._leaving:
            self._leaving.discard(guild_id)
            return
        if self._on_connection_lost is None:
            return
        self._lost.add(guild_id)
        try:
            await self._on_connection_lost(guild_id)
        finally:
            self._lost.discard(guild_id)
