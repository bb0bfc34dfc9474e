"""Access Gate - 21+ verification check for cannabis-flagged content."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...domain.access.entities import AccessDecision
from ...domain.access.value_objects import AccessDenialReason
from ...domain.shared.messages import LogTemplates
from .ttl_cache import TtlCache

if TYPE_CHECKING:
    from ...domain.access.repository import AgeVerificationRepository

logger = logging.getLogger(__name__)


class AccessGate:
    """Answers "may this member hear cannabis content in this guild?".

    Decisions, allowed or denied, are cached per (user, guild) for a short
    TTL. Ineligibility is returned, never raised; repository failures
    propagate to the caller.
    """

    def __init__(
        self,
        *,
        verification_repository: AgeVerificationRepository,
        cache_ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._verification_repo = verification_repository
        self._cache: TtlCache[tuple[int, int], AccessDecision] = TtlCache(
            cache_ttl_seconds, clock=clock
        )

    async def validate_cannabis_access(self, user_id: int, guild_id: int) -> AccessDecision:
        key = (user_id, guild_id)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(LogTemplates.ACCESS_CACHE_HIT, user_id, guild_id)
            return cached

        record = await self._verification_repo.get(user_id, guild_id)
        if record is None:
            decision = AccessDecision.deny(AccessDenialReason.NOT_FOUND)
        else:
            decision = record.evaluate()

        if decision.allowed:
            logger.debug(LogTemplates.ACCESS_GRANTED, user_id, guild_id)
        else:
            logger.info(LogTemplates.ACCESS_DENIED, user_id, guild_id, decision.reason)

        self._cache.set(key, decision)
        return decision

    def invalidate(self, user_id: int, guild_id: int) -> bool:
        return self._cache.pop((user_id, guild_id))

    def clear_guild(self, guild_id: int) -> int:
        removed = self._cache.pop_where(lambda key: key[1] == guild_id)
        if removed:
            logger.debug(LogTemplates.ACCESS_CACHE_CLEARED, removed, guild_id)
        return removed
