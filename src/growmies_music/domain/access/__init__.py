"""Age-verification access context."""

from growmies_music.domain.access.entities import AccessDecision, AgeVerificationRecord
from growmies_music.domain.access.value_objects import AccessDenialReason, VerificationStatus

__all__ = [
    "AccessDecision",
    "AgeVerificationRecord",
    "AccessDenialReason",
    "VerificationStatus",
]
