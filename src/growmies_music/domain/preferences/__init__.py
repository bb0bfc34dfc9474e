"""User preferences bounded context."""

from growmies_music.domain.preferences.entities import UserPreference

__all__ = ["UserPreference"]
