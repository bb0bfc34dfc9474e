"""
Voting Domain Value Objects

Immutable value objects for the skip-vote policy.
"""

from enum import Enum


class VoteResult(Enum):
    """Results of attempting to skip the current track.

    These results indicate what happened when a user asked to skip.
    """

    # Successful outcomes
    VOTE_RECORDED = "vote_recorded"  # Vote was counted
    THRESHOLD_MET = "threshold_met"  # Vote hit threshold, skip executed
    REQUESTER_SKIP = "requester_skip"  # Requester skipped their own track
    AUTO_SKIP = "auto_skip"  # Small-audience rule triggered the skip

    # Vote not counted outcomes
    ALREADY_VOTED = "already_voted"
    NO_PLAYING = "no_playing"

    # Error outcomes
    VOTE_EXPIRED = "vote_expired"

    @property
    def is_success(self) -> bool:
        return self in {
            VoteResult.VOTE_RECORDED,
            VoteResult.THRESHOLD_MET,
            VoteResult.REQUESTER_SKIP,
            VoteResult.AUTO_SKIP,
        }

    @property
    def action_executed(self) -> bool:
        """Check if this result means the skip should be carried out."""
        return self in {
            VoteResult.THRESHOLD_MET,
            VoteResult.REQUESTER_SKIP,
            VoteResult.AUTO_SKIP,
        }

    def get_message(self, votes: int = 0, needed: int = 0) -> str:
        messages = {
            VoteResult.VOTE_RECORDED: f"Vote recorded! ({votes}/{needed} votes to skip)",
            VoteResult.THRESHOLD_MET: "Vote threshold met! Track skipped.",
            VoteResult.REQUESTER_SKIP: "Track skipped by the requester.",
            VoteResult.AUTO_SKIP: "Auto-skipped (small audience rule).",
            VoteResult.ALREADY_VOTED: "You've already voted!",
            VoteResult.NO_PLAYING: "Nothing is currently playing.",
            VoteResult.VOTE_EXPIRED: "The voting session has expired.",
        }
        return messages.get(self, "Unknown vote result.")
