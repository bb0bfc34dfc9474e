"""Entities for the age-verification access context."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from growmies_music.domain.access.value_objects import AccessDenialReason, VerificationStatus
from growmies_music.domain.shared.datetime_utils import utcnow
from growmies_music.domain.shared.types import DiscordSnowflake, UtcDatetimeField


class AgeVerificationRecord(BaseModel):
    """Read model of a member's verification state in one guild."""

    model_config = ConfigDict(frozen=True)

    user_id: DiscordSnowflake
    guild_id: DiscordSnowflake
    is_active: bool = True
    is_21_plus: bool = False
    verification_status: VerificationStatus = VerificationStatus.PENDING
    verification_expires: UtcDatetimeField | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.verification_status == VerificationStatus.EXPIRED:
            return True
        if self.verification_expires is None:
            return False
        return (now or utcnow()) > self.verification_expires

    def evaluate(self, now: datetime | None = None) -> AccessDecision:
        """Apply the 21+ rule to this record."""
        if not self.is_active:
            return AccessDecision.deny(AccessDenialReason.NOT_FOUND)
        if self.is_expired(now):
            return AccessDecision.deny(AccessDenialReason.EXPIRED)
        if not self.is_21_plus or self.verification_status != VerificationStatus.VERIFIED:
            return AccessDecision.deny(AccessDenialReason.NOT_VERIFIED)
        return AccessDecision.grant()


class AccessDecision(BaseModel):
    """Outcome of a cannabis access check."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: AccessDenialReason | None = None
    message: str | None = None

    @classmethod
    def grant(cls) -> AccessDecision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: AccessDenialReason) -> AccessDecision:
        return cls(allowed=False, reason=reason, message=reason.message)
