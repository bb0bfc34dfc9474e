"""Discord client that owns the container and loads the music cog."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import TYPE_CHECKING, Any

import discord
from discord.ext import commands

from growmies_music.domain.music.value_objects import EndReason
from growmies_music.domain.shared.messages import DiscordUIMessages, LogTemplates
from growmies_music.infrastructure.discord.guards.voice_guards import send_ephemeral

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS: tuple[str, ...] = ("growmies_music.infrastructure.discord.cogs.music_cog",)


class MusicBot(commands.Bot):
    """Slash-command bot for guild music sessions.

    Startup order matters: the store is opened, sessions left live by a
    previous process are ended (their voice connections are gone), and
    only then are commands registered.
    """

    def __init__(self, container: Container, settings: Settings, **kwargs: Any) -> None:
        intents = discord.Intents.default()
        intents.voice_states = True
        intents.members = True

        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=intents,
            help_command=None,
            owner_ids=set(settings.discord.owner_ids) or None,
            **kwargs,
        )
        self.container = container
        self.settings = settings
        container.set_bot(self)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)
        await self.container.initialize()
        logger.info(LogTemplates.BOT_CONTAINER_INITIALIZED)

        ended = await self.container.session_registry.end_stale_sessions(EndReason.BOT_RESTART)
        logger.info(LogTemplates.BOT_STALE_SESSIONS_RESET, ended)

        for extension in COGS:
            await self.load_extension(extension)
            logger.info(LogTemplates.BOT_COG_LOADED, extension)

        self.tree.on_error = self._on_app_command_error
        if self.settings.discord.sync_on_startup:
            await self.sync_commands()
        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def sync_commands(self) -> int:
        """Sync slash commands to the configured guilds, or globally if none are set.

        Returns the number of commands synced; 0 when Discord refused.
        """
        targets = [discord.Object(id=gid) for gid in self.settings.discord.guild_ids] or [None]
        total = 0
        for guild in targets:
            if guild is not None:
                self.tree.copy_global_to(guild=guild)
            try:
                synced = await self.tree.sync(guild=guild)
            except discord.HTTPException as e:
                logger.warning(LogTemplates.BOT_SYNC_FAILED, e)
                continue
            total += len(synced)
            logger.info(LogTemplates.BOT_SYNCED, len(synced), guild.id if guild else "global")
        return total

    async def _on_app_command_error(
        self, interaction: discord.Interaction, error: discord.app_commands.AppCommandError
    ) -> None:
        original = getattr(error, "original", error)
        logger.error(
            LogTemplates.BOT_SLASH_COMMAND_ERROR,
            getattr(interaction.command, "name", "<unknown>"),
            original,
            exc_info=original,
        )
        try:
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_COMMAND_FAILED)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    async def on_ready(self) -> None:
        assert self.user is not None
        logger.info(LogTemplates.BOT_READY, self.user, self.user.id, len(self.guilds))
        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.listening, name="/play")
        )

    async def close(self) -> None:
        """Leave every voice channel and close the store before the gateway."""
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)
        try:
            await self.container.shutdown()
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)
        await super().close()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until SIGINT/SIGTERM, then close within ``shutdown_timeout`` seconds."""

        async def runner() -> None:
            stop = asyncio.Event()
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, stop.set)

            async with self:
                client = asyncio.create_task(self.start(token))
                waiter = asyncio.create_task(stop.wait())
                await asyncio.wait({client, waiter}, return_when=asyncio.FIRST_COMPLETED)
                waiter.cancel()
                if client.done():
                    client.result()
                    return
                try:
                    await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
                except TimeoutError:
                    logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, shutdown_timeout)
                client.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await client

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> MusicBot:
    return MusicBot(container=container, settings=settings)
