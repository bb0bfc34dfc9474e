"""Repository interface for reading age-verification state."""

from abc import ABC, abstractmethod

from growmies_music.domain.access.entities import AgeVerificationRecord


class AgeVerificationRepository(ABC):
    """Read-only view of the verification subsystem's user records."""

    @abstractmethod
    async def get(self, user_id: int, guild_id: int) -> AgeVerificationRecord | None:
        """Return the member's active verification record, or None if unknown.

        Infrastructure errors propagate; only "no record" maps to None.
        """
        ...
