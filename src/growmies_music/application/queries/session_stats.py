"""Query for per-session-type listening statistics of a guild."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from growmies_music.domain.music.value_objects import SessionType
from growmies_music.domain.shared.datetime_utils import utcnow
from growmies_music.domain.shared.types import DiscordSnowflake, NonNegativeFloat, NonNegativeInt, PositiveInt

if TYPE_CHECKING:
    from ...domain.music.repository import SessionRepository


class GetSessionStatsQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    days: PositiveInt = 30


class SessionTypeStats(BaseModel):
    count: NonNegativeInt = 0
    avg_duration_minutes: NonNegativeFloat = 0.0
    total_duration_minutes: NonNegativeInt = 0


class SessionStats(BaseModel):
    guild_id: DiscordSnowflake
    days: PositiveInt
    by_type: dict[SessionType, SessionTypeStats] = Field(default_factory=dict)

    @property
    def total_sessions(self) -> int:
        return sum(s.count for s in self.by_type.values())

    def to_dict(self) -> dict[str, dict[str, float | int]]:
        return {session_type.value: stats.model_dump() for session_type, stats in self.by_type.items()}


class GetSessionStatsHandler:
    """Aggregates ended sessions started within the last ``days`` days."""

    def __init__(self, *, session_repository: SessionRepository) -> None:
        self._session_repo = session_repository

    async def handle(self, query: GetSessionStatsQuery) -> SessionStats:
        since = utcnow() - timedelta(days=query.days)
        sessions = await self._session_repo.list_ended_since(query.guild_id, since)

        durations: dict[SessionType, list[int]] = {}
        for session in sessions:
            durations.setdefault(session.session_type, []).append(session.duration_minutes)

        by_type = {
            session_type: SessionTypeStats(
                count=len(values),
                avg_duration_minutes=round(sum(values) / len(values), 2),
                total_duration_minutes=sum(values),
            )
            for session_type, values in durations.items()
        }
        return SessionStats(guild_id=query.guild_id, days=query.days, by_type=by_type)
