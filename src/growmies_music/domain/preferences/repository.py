"""Repository interface for user music preferences."""

from abc import ABC, abstractmethod

from growmies_music.domain.preferences.entities import UserPreference


class PreferenceRepository(ABC):
    """Abstract repository for per-(user, guild) preference rows."""

    @abstractmethod
    async def get(self, user_id: int, guild_id: int) -> UserPreference | None:
        ...

    @abstractmethod
    async def get_or_create(self, defaults: UserPreference) -> UserPreference:
        """Insert ``defaults`` unless a row exists, then return the stored row."""
        ...

    @abstractmethod
    async def save(self, preference: UserPreference) -> None:
        """Upsert every preference column."""
        ...

    @abstractmethod
    async def exists(self, user_id: int, guild_id: int) -> bool:
        ...
