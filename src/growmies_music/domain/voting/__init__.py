"""
Voting Bounded Context

Domain logic for skip voting.
"""

from growmies_music.domain.voting.entities import VoteSession
from growmies_music.domain.voting.services import VotingDomainService
from growmies_music.domain.voting.value_objects import VoteResult

__all__ = [
    "VoteSession",
    "VoteResult",
    "VotingDomainService",
]
