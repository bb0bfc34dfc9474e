"""Checks shared by the music cog and its button views.

Each takes the interaction explicitly and replies ephemerally when the
check fails, so callers only need to return on a falsy result.
"""

from __future__ import annotations

from collections.abc import Collection

import discord

from growmies_music.domain.shared.messages import DiscordUIMessages


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Reply privately, falling back to a followup once the interaction has been answered."""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """The interacting guild member, or None (with a reply) outside a server."""
    if not interaction.guild or not isinstance(interaction.user, discord.Member):
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None
    return interaction.user


async def get_member_voice_channel(
    interaction: discord.Interaction,
) -> discord.VoiceChannel | discord.StageChannel | None:
    """The voice channel the interacting member sits in, or None (with a reply)."""
    member = await get_member(interaction)
    if member is None:
        return None

    if not member.voice or not member.voice.channel:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_MUST_BE_IN_VOICE)
        return None
    return member.voice.channel


async def check_user_in_voice(interaction: discord.Interaction, guild_id: int) -> bool:
    """Whether the member shares the bot's voice channel (any channel if the bot is idle)."""
    user = interaction.user
    if not isinstance(user, discord.Member) or not user.voice or not user.voice.channel:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_MUST_BE_IN_VOICE)
        return False

    guild = interaction.client.get_guild(guild_id)
    if guild and guild.voice_client and guild.voice_client.channel:
        if user.voice.channel.id != guild.voice_client.channel.id:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_MUST_BE_IN_VOICE)
            return False

    return True


def can_force_skip(user: discord.Member, owner_ids: Collection[int]) -> bool:
    """Admins and bot owners skip without a vote."""
    return user.guild_permissions.administrator or user.id in owner_ids
