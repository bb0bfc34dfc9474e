"""SQLite repository implementations."""

from growmies_music.infrastructure.persistence.repositories.preference_repository import (
    SQLitePreferenceRepository,
)
from growmies_music.infrastructure.persistence.repositories.queue_repository import (
    SQLiteQueueRepository,
)
from growmies_music.infrastructure.persistence.repositories.session_repository import (
    SQLiteSessionRepository,
)
from growmies_music.infrastructure.persistence.repositories.verification_repository import (
    SQLiteAgeVerificationRepository,
)

__all__ = [
    "SQLiteSessionRepository",
    "SQLiteQueueRepository",
    "SQLitePreferenceRepository",
    "SQLiteAgeVerificationRepository",
]
