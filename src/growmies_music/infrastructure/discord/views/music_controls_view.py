"""Pause / resume / skip / stop buttons attached to now-playing messages."""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from growmies_music.domain.music.value_objects import EndReason
from growmies_music.domain.shared.messages import DiscordUIMessages
from growmies_music.infrastructure.discord.guards.voice_guards import (
    can_force_skip,
    check_user_in_voice,
    send_ephemeral,
)
from growmies_music.infrastructure.discord.views.base_view import BaseInteractiveView
from growmies_music.utils.reply import describe_skip

if TYPE_CHECKING:
    from ....config.container import Container


class MusicControlsView(BaseInteractiveView):
    """Buttons act on the guild's engine; only listeners in the bot's channel may press them."""

    def __init__(self, *, guild_id: int, container: Container, timeout: float | None = 600.0) -> None:
        super().__init__(timeout=timeout)
        self.guild_id = guild_id
        self.container = container

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await check_user_in_voice(interaction, self.guild_id)

    @discord.ui.button(label="⏸️ Pause", style=discord.ButtonStyle.secondary)
    async def pause_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[MusicControlsView]
    ) -> None:
        if await self.container.playback_engine.pause(self.guild_id):
            await send_ephemeral(interaction, DiscordUIMessages.ACTION_PAUSED)
        else:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING_OR_PAUSED)

    @discord.ui.button(label="▶️ Resume", style=discord.ButtonStyle.secondary)
    async def resume_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[MusicControlsView]
    ) -> None:
        if await self.container.playback_engine.resume(self.guild_id):
            await send_ephemeral(interaction, DiscordUIMessages.ACTION_RESUMED)
        else:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PAUSED)

    @discord.ui.button(label="⏭️ Skip", style=discord.ButtonStyle.primary)
    async def skip_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[MusicControlsView]
    ) -> None:
        engine = self.container.playback_engine
        user = interaction.user
        owner_ids = self.container.settings.discord.owner_ids
        if isinstance(user, discord.Member) and can_force_skip(user, owner_ids):
            result = await engine.skip(self.guild_id)
        else:
            result = await engine.request_skip(self.guild_id, user.id)
        await send_ephemeral(interaction, describe_skip(result))

    @discord.ui.button(label="⏹️ Stop", style=discord.ButtonStyle.danger)
    async def stop_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[MusicControlsView]
    ) -> None:
        if await self.container.playback_engine.leave(self.guild_id, EndReason.USER_STOP):
            self.stop()
            await send_ephemeral(interaction, DiscordUIMessages.SESSION_ENDED)
            await self.deactivate()
        else:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NO_SESSION)
