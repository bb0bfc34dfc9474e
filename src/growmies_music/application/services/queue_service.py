"""Queue Store - persisted, position-ordered playlist per session."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from ...domain.music.entities import QueueEntry, QueueStats, TrackInfo
from ...domain.music.services import QueueDomainService
from ...domain.shared.datetime_utils import utcnow
from ...domain.shared.exceptions import ValidationError
from ...domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ...domain.music.repository import QueueRepository

logger = logging.getLogger(__name__)


class QueueStore:
    """Enqueue, dequeue, mark, remove, clear, shuffle and report on a session's queue.

    Entries are never renumbered: ``position`` identifies an entry for its
    whole life, and only :meth:`shuffle` reassigns positions of pending
    entries among themselves.
    """

    def __init__(
        self,
        *,
        queue_repository: QueueRepository,
        rng: random.Random | None = None,
    ) -> None:
        self._queue_repo = queue_repository
        self._rng = rng

    async def enqueue(self, session_id: str, track: TrackInfo) -> QueueEntry:
        entry = await self._queue_repo.append(session_id, track)
        logger.info(LogTemplates.QUEUE_ENQUEUED, entry.track_title, entry.position, session_id)
        return entry

    async def dequeue_next(self, session_id: str) -> QueueEntry | None:
        """Lowest-position pending entry. Does not mutate it."""
        return await self._queue_repo.next_pending(session_id)

    async def mark_played(self, entry_id: int) -> bool:
        """Set ``played_at`` once; repeated calls are no-ops."""
        return await self._queue_repo.mark_played(entry_id, utcnow())

    async def mark_failed(self, entry_id: int, reason: str) -> bool:
        return await self._queue_repo.mark_failed(entry_id, utcnow(), reason)

    async def remove(self, session_id: str, position: int) -> bool:
        removed = await self._queue_repo.delete_pending_at(session_id, position)
        if removed:
            logger.info(LogTemplates.QUEUE_REMOVED, position, session_id)
        return removed

    async def clear(self, session_id: str, confirmed: bool = False) -> int:
        """Delete every pending entry; played history is kept.

        Raises:
            ValidationError: If ``confirmed`` is not True.
        """
        if confirmed is not True:
            raise ValidationError(ErrorMessages.CLEAR_REQUIRES_CONFIRMATION, field="confirmed")
        count = await self._queue_repo.delete_pending(session_id)
        logger.info(LogTemplates.QUEUE_CLEARED, count, session_id)
        return count

    async def shuffle(self, session_id: str) -> bool:
        pending = await self._queue_repo.list_entries(session_id)
        if len(pending) < 2:
            return False

        assignments = QueueDomainService.shuffle_assignments(pending, self._rng)
        await self._queue_repo.reassign_positions(session_id, assignments)
        logger.info(LogTemplates.QUEUE_SHUFFLED, len(pending), session_id)
        return True

    async def stats(self, session_id: str) -> QueueStats:
        return await self._queue_repo.stats(session_id)

    async def list_entries(self, session_id: str, include_history: bool = False) -> list[QueueEntry]:
        return await self._queue_repo.list_entries(session_id, include_history=include_history)

    async def get_entry(self, entry_id: int) -> QueueEntry | None:
        return await self._queue_repo.get(entry_id)

    async def delete_entry(self, entry_id: int) -> bool:
        return await self._queue_repo.delete(entry_id)
