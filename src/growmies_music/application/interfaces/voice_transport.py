"""Port interface for a guild's voice connection and audio player."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from growmies_music.domain.shared.types import ChannelIdField, DiscordSnowflake

if TYPE_CHECKING:
    from .audio_resolver import AudioResource

TrackEndCallback = Callable[[Exception | None], Awaitable[None]]
"""Invoked once when a started resource stops (``None``) or errors."""

ConnectionLostCallback = Callable[[DiscordSnowflake], Awaitable[None]]


class VoiceConnectionError(Exception):
    """Raised when the bot cannot join or stay in a voice channel."""

    def __init__(self, guild_id: int, channel_id: int | None, message: str) -> None:
        super().__init__(message)
        self.guild_id = guild_id
        self.channel_id = channel_id


class PlaybackStartError(Exception):
    """Raised when the transport refuses to start an audio resource."""

    def __init__(self, guild_id: int, title: str, message: str) -> None:
        super().__init__(message)
        self.guild_id = guild_id
        self.title = title


class VoiceTransport(ABC):
    """Interface for the per-guild voice connection plus audio player."""

    @abstractmethod
    async def connect(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> None:
        """Join (or move to) a voice channel.

        Raises:
            VoiceConnectionError: If the connection could not be established.
        """
        ...

    @abstractmethod
    async def disconnect(self, guild_id: DiscordSnowflake) -> bool:
        """Disconnect from voice in a guild. Returns False if not connected."""
        ...

    @abstractmethod
    async def play(
        self,
        guild_id: DiscordSnowflake,
        resource: AudioResource,
        *,
        volume: float,
        on_finished: TrackEndCallback,
    ) -> None:
        """Start a resource at ``volume`` (0.0-1.0).

        ``on_finished`` is awaited on the event loop when the resource ends.

        Raises:
            PlaybackStartError: If the resource could not be started.
        """
        ...

    @abstractmethod
    async def stop(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def pause(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def resume(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def set_volume(self, guild_id: DiscordSnowflake, volume: float) -> bool:
        """Apply a volume to the live resource. False if it cannot be changed mid-stream."""
        ...

    @abstractmethod
    def is_connected(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def get_listeners(self, guild_id: DiscordSnowflake) -> list[DiscordSnowflake]:
        """Get listener user IDs in the voice channel, excluding bots."""
        ...

    @abstractmethod
    def set_on_connection_lost(self, callback: ConnectionLostCallback) -> None:
        """Register the handler for an unexpected disconnect."""
        ...
