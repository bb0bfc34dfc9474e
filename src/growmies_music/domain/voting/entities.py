"""Skip-vote tally for the track a guild is currently playing."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, Field, model_validator

from growmies_music.domain.shared.datetime_utils import utcnow
from growmies_music.domain.shared.messages import ErrorMessages
from growmies_music.domain.shared.types import DiscordSnowflake, NonNegativeInt, PositiveInt


class VoteSession(BaseModel):
    """Skip votes cast against one started track in a guild.

    Held in memory by the guild player and bound to its playback
    generation; a new generation means a new tally.
    """

    guild_id: DiscordSnowflake
    generation: NonNegativeInt
    threshold: PositiveInt
    expiration_minutes: PositiveInt = 5
    voters: set[int] = Field(default_factory=set)
    started_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime | None = None

    @model_validator(mode="after")
    def _default_expiry(self) -> VoteSession:
        if self.expires_at is None:
            self.expires_at = self.started_at + timedelta(minutes=self.expiration_minutes)
        return self

    @property
    def vote_count(self) -> int:
        return len(self.voters)

    @property
    def votes_needed(self) -> int:
        return max(0, self.threshold - self.vote_count)

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and utcnow() > self.expires_at

    def has_voted(self, user_id: int) -> bool:
        return user_id in self.voters

    def add_vote(self, user_id: int) -> bool:
        """Count ``user_id`` once. True when this vote reaches the threshold."""
        if user_id in self.voters:
            return False
        self.voters.add(user_id)
        return self.vote_count >= self.threshold

    def reset(self) -> None:
        self.voters.clear()
        self.started_at = utcnow()
        self.expires_at = self.started_at + timedelta(minutes=self.expiration_minutes)

    def update_threshold(self, threshold: int) -> None:
        # Listeners join and leave between votes
        if threshold < 1:
            raise ValueError(ErrorMessages.INVALID_THRESHOLD)
        self.threshold = threshold

    def get_progress_string(self) -> str:
        return f"{self.vote_count}/{self.threshold} votes"
