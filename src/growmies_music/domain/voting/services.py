"""
Voting Domain Services

Skip-vs-owner rules: the requester skips outright, everyone else votes.
"""

import math

from growmies_music.domain.voting.entities import VoteSession
from growmies_music.domain.voting.value_objects import VoteResult


class VotingDomainService:
    """Domain service for voting-related business rules.

    Encapsulates threshold calculation, auto-skip rules and vote evaluation.
    """

    MINIMUM_THRESHOLD = 1
    DEFAULT_THRESHOLD_PERCENTAGE = 0.5
    SMALL_AUDIENCE_SIZE = 2  # If <= this many listeners, anyone can skip

    @classmethod
    def calculate_threshold(
        cls, listener_count: int, percentage: float = DEFAULT_THRESHOLD_PERCENTAGE
    ) -> int:
        """Calculate the vote threshold based on listener count.

        ``ceil(listeners * percentage)``, never below one vote.

        Args:
            listener_count: Number of listeners in the voice channel
                           (excluding bots).
            percentage: Fraction of listeners that must agree.

        Returns:
            The number of votes required to pass.
        """
        if listener_count <= 0:
            return cls.MINIMUM_THRESHOLD
        return max(cls.MINIMUM_THRESHOLD, math.ceil(listener_count * percentage))

    @classmethod
    def can_auto_skip(
        cls,
        user_id: int,
        requester_id: int | None,
        listener_count: int,
        small_audience: int = SMALL_AUDIENCE_SIZE,
    ) -> bool:
        """Check if a user can skip without voting.

        Allowed for the requester of the current track, or when the
        audience is small enough that a vote would be pointless.
        """
        if requester_id is not None and requester_id == user_id:
            return True
        return listener_count <= small_audience

    @classmethod
    def evaluate_vote(
        cls,
        session: VoteSession,
        user_id: int,
        requester_id: int | None,
        listener_count: int,
        small_audience: int = SMALL_AUDIENCE_SIZE,
    ) -> VoteResult:
        """Evaluate a skip request against the current vote session.

        Args:
            session: Vote session bound to the current track.
            user_id: The ID of the user asking to skip.
            requester_id: Who requested the current track.
            listener_count: Number of listeners in the channel.
            small_audience: Audience size at or below which anyone skips.

        Returns:
            The outcome; ``action_executed`` tells the caller to skip.
        """
        if requester_id is not None and requester_id == user_id:
            return VoteResult.REQUESTER_SKIP

        if listener_count <= small_audience:
            return VoteResult.AUTO_SKIP

        if session.is_expired:
            session.reset()

        if session.has_voted(user_id):
            return VoteResult.ALREADY_VOTED

        if session.add_vote(user_id):
            return VoteResult.THRESHOLD_MET

        return VoteResult.VOTE_RECORDED

    @classmethod
    def should_reset_session(cls, session: VoteSession, current_generation: int) -> bool:
        """Sessions are reset when the track changes or they expire."""
        return session.generation != current_generation or session.is_expired
