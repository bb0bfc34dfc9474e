"""Session, playback and vote events plus the in-process bus that carries them."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from growmies_music.domain.shared.datetime_utils import utcnow
from growmies_music.domain.shared.messages import LogTemplates
from growmies_music.domain.shared.types import (
    DiscordSnowflake,
    NonEmptyStr,
    NonNegativeInt,
    UtcDatetimeField,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]


class DomainEvent(BaseModel):
    """Immutable record of something that already happened."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: UtcDatetimeField = Field(default_factory=utcnow)


# === Session Events ===


class SessionStarted(DomainEvent):
    guild_id: DiscordSnowflake
    session_id: str
    session_type: str
    is_cannabis_content: bool = False
    created_by_id: DiscordSnowflake


class SessionEnded(DomainEvent):
    guild_id: DiscordSnowflake
    session_id: str
    reason: str = ""
    final_track_index: NonNegativeInt = 0


# === Playback Events ===


class TrackStarted(DomainEvent):
    guild_id: DiscordSnowflake
    session_id: str
    entry_id: NonNegativeInt | None = None
    track_title: str = ""
    track_url: str = ""
    requested_by_id: DiscordSnowflake
    automatic: bool = False


class TrackSkipped(DomainEvent):
    guild_id: DiscordSnowflake
    entry_id: NonNegativeInt | None = None
    track_title: str = ""
    via_vote: bool = False


class QueueExhausted(DomainEvent):
    guild_id: DiscordSnowflake
    session_id: str


# === Vote Events ===


class SkipVoteCast(DomainEvent):
    guild_id: DiscordSnowflake
    voter_id: DiscordSnowflake
    current_votes: NonNegativeInt = 0
    votes_needed: NonNegativeInt = 0


# === Event Bus ===


class EventBus:
    """In-process pub/sub keyed on the exact event class.

    ``publish`` awaits every handler for the event concurrently. A failing
    handler is logged and does not affect the others or the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: defaultdict[type[DomainEvent], list[EventHandler[Any]]] = defaultdict(list)

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        with contextlib.suppress(ValueError):
            self._subscribers[event_type].remove(handler)

    async def publish(self, event: DomainEvent) -> None:
        handlers = tuple(self._subscribers.get(type(event), ()))
        if handlers:
            await asyncio.gather(*(self._deliver(handler, event) for handler in handlers))

    @staticmethod
    async def _deliver(handler: EventHandler[Any], event: DomainEvent) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception(LogTemplates.EVENT_HANDLER_FAILED, type(event).__name__)

    def clear(self) -> None:
        self._subscribers.clear()


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Process-wide bus shared by the engine, registries and cogs."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Drop the bus and all subscriptions; tests start from a clean one."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
