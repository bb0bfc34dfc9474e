"""Value objects for the age-verification access context."""

from __future__ import annotations

from enum import StrEnum


class VerificationStatus(StrEnum):
    """Status written by the verification workflow on the user record."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    EXPIRED = "expired"


class AccessDenialReason(StrEnum):
    """Machine-readable reason a user may not access cannabis content."""

    NOT_FOUND = "not_found"
    NOT_VERIFIED = "not_verified"
    EXPIRED = "expired"

    @property
    def message(self) -> str:
        return {
            AccessDenialReason.NOT_FOUND: (
                "User not found. Please use /verify to verify your age."
            ),
            AccessDenialReason.NOT_VERIFIED: (
                "Cannabis content requires 21+ age verification. Please use /verify."
            ),
            AccessDenialReason.EXPIRED: (
                "Your age verification has expired. Please use /verify again."
            ),
        }[self]
