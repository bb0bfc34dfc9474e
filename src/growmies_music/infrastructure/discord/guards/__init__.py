"""Voice channel guard functions for Discord cogs."""

from growmies_music.infrastructure.discord.guards.voice_guards import (
    can_force_skip,
    check_user_in_voice,
    get_member,
    get_member_voice_channel,
    send_ephemeral,
)

__all__ = [
    "can_force_skip",
    "check_user_in_voice",
    "get_member",
    "get_member_voice_channel",
    "send_ephemeral",
]
