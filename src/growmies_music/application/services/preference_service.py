"""User Preferences - lazily created per-(user, guild) settings."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...domain.preferences.entities import UserPreference
from ...domain.shared.messages import LogTemplates
from .ttl_cache import TtlCache

if TYPE_CHECKING:
    from ...domain.preferences.repository import PreferenceRepository

logger = logging.getLogger(__name__)


class PreferenceService:
    """Reads and updates member music preferences with a short TTL cache."""

    def __init__(
        self,
        *,
        preference_repository: PreferenceRepository,
        cache_ttl_seconds: float = 600,
        default_volume: int = 50,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._preference_repo = preference_repository
        self._default_volume = default_volume
        self._cache: TtlCache[tuple[int, int], UserPreference] = TtlCache(
            cache_ttl_seconds, clock=clock
        )

    async def get_or_create(self, user_id: int, guild_id: int) -> UserPreference:
        key = (user_id, guild_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached.model_copy(deep=True)

        existing = await self._preference_repo.get(user_id, guild_id)
        if existing is None:
            existing = await self._preference_repo.get_or_create(
                UserPreference.defaults_for(user_id, guild_id, self._default_volume)
            )
            logger.info(LogTemplates.PREFERENCES_CREATED, user_id, guild_id)

        self._cache.set(key, existing)
        return existing.model_copy(deep=True)

    async def set_preferred_volume(self, user_id: int, guild_id: int, volume: int) -> bool:
        if not 0 <= volume <= 100:
            return False
        pref = await self.get_or_create(user_id, guild_id)
        pref.preferred_volume = volume
        await self._save(pref, "preferred_volume")
        return True

    async def set_cannabis_music(self, user_id: int, guild_id: int, enabled: bool) -> bool:
        pref = await self.get_or_create(user_id, guild_id)
        pref.cannabis_music_enabled = enabled
        await self._save(pref, "cannabis_music_enabled")
        return True

    async def set_meditation_mode(self, user_id: int, guild_id: int, enabled: bool) -> bool:
        pref = await self.get_or_create(user_id, guild_id)
        pref.meditation_mode_enabled = enabled
        await self._save(pref, "meditation_mode_enabled")
        return True

    async def set_auto_queue(self, user_id: int, guild_id: int, enabled: bool) -> bool:
        pref = await self.get_or_create(user_id, guild_id)
        pref.auto_queue_enabled = enabled
        await self._save(pref, "auto_queue_enabled")
        return True

    async def set_explicit_filter(self, user_id: int, guild_id: int, enabled: bool) -> bool:
        pref = await self.get_or_create(user_id, guild_id)
        pref.explicit_content_filter = enabled
        await self._save(pref, "explicit_content_filter")
        return True

    async def update_favorite_genres(self, user_id: int, guild_id: int, genres: list[str]) -> list[str]:
        """Store genres lowercased, de-duplicated and trimmed to the limit."""
        pref = await self.get_or_create(user_id, guild_id)
        pref.favorite_genres = genres
        await self._save(pref, "favorite_genres")
        return list(pref.favorite_genres)

    async def update_blocked_sources(self, user_id: int, guild_id: int, sources: list[str]) -> list[str]:
        pref = await self.get_or_create(user_id, guild_id)
        pref.blocked_sources = sources
        await self._save(pref, "blocked_sources")
        return list(pref.blocked_sources)

    async def reset(self, user_id: int, guild_id: int) -> bool:
        """Restore defaults. False when the member has no stored row."""
        existing = await self._preference_repo.get(user_id, guild_id)
        if existing is None:
            return False

        fresh = UserPreference.defaults_for(user_id, guild_id, self._default_volume)
        fresh.created_at = existing.created_at
        await self._preference_repo.save(fresh)
        self._cache.pop((user_id, guild_id))
        logger.info(LogTemplates.PREFERENCES_RESET, user_id, guild_id)
        return True

    def invalidate(self, user_id: int, guild_id: int) -> None:
        self._cache.pop((user_id, guild_id))

    async def _save(self, pref: UserPreference, field: str) -> None:
        pref.touch()
        await self._preference_repo.save(pref)
        self._cache.set((pref.user_id, pref.guild_id), pref.model_copy(deep=True))
        logger.debug(LogTemplates.PREFERENCES_UPDATED, field, pref.user_id, pref.guild_id)
