"""
Music Domain Repository Interfaces

Abstract base classes defining the contracts for data persistence.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from growmies_music.domain.music.entities import MusicSession, QueueEntry, QueueStats, TrackInfo
from growmies_music.domain.music.value_objects import SessionStatus


class SessionRepository(ABC):
    """Abstract repository for music sessions.

    Sessions are soft-ended, never deleted, so there is no ``delete``.
    """

    @abstractmethod
    async def add(self, session: MusicSession) -> None:
        """Insert a new session.

        Raises:
            SessionAlreadyActiveError: If the guild already has a live session.
        """
        ...

    @abstractmethod
    async def save(self, session: MusicSession) -> None:
        """Persist the mutable fields of an existing session."""
        ...

    @abstractmethod
    async def get(self, session_id: str) -> MusicSession | None:
        ...

    @abstractmethod
    async def get_active(self, guild_id: int) -> MusicSession | None:
        """Return the guild's live (active or paused) session, if any."""
        ...

    @abstractmethod
    async def get_all_active(self) -> list[MusicSession]:
        ...

    @abstractmethod
    async def update_status(self, session_id: str, status: SessionStatus) -> bool:
        """Update only the status column. Returns False for unknown or ended sessions."""
        ...

    @abstractmethod
    async def list_ended_since(self, guild_id: int, since: datetime) -> list[MusicSession]:
        """Ended sessions of a guild that started at or after ``since``."""
        ...


class QueueRepository(ABC):
    """Abstract repository for persisted queue entries of a session."""

    @abstractmethod
    async def append(self, session_id: str, track: TrackInfo) -> QueueEntry:
        """Insert at ``max(position) + 1`` (or 1) atomically and return the entry."""
        ...

    @abstractmethod
    async def get(self, entry_id: int) -> QueueEntry | None:
        ...

    @abstractmethod
    async def next_pending(self, session_id: str) -> QueueEntry | None:
        """Lowest-position entry that has neither played nor failed."""
        ...

    @abstractmethod
    async def list_entries(self, session_id: str, *, include_history: bool = False) -> list[QueueEntry]:
        """Entries ordered by position; pending only unless ``include_history``."""
        ...

    @abstractmethod
    async def mark_played(self, entry_id: int, played_at: datetime) -> bool:
        """Set ``played_at`` if it is still null. Returns True if the row changed."""
        ...

    @abstractmethod
    async def mark_failed(self, entry_id: int, failed_at: datetime, reason: str) -> bool:
        ...

    @abstractmethod
    async def delete_pending_at(self, session_id: str, position: int) -> bool:
        """Delete the pending entry at ``position``; positions are not renumbered."""
        ...

    @abstractmethod
    async def delete(self, entry_id: int) -> bool:
        ...

    @abstractmethod
    async def delete_pending(self, session_id: str) -> int:
        """Delete every pending entry and return how many were removed."""
        ...

    @abstractmethod
    async def reassign_positions(self, session_id: str, assignments: dict[int, int]) -> None:
        """Apply ``{entry_id: new_position}`` in one transaction."""
        ...

    @abstractmethod
    async def stats(self, session_id: str) -> QueueStats:
        ...
