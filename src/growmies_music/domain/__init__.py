# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, messages and exceptions
- music/: Session, queue and playback rules
- access/: Age-verification gate for cannabis content
- preferences/: Per-member music preferences
- voting/: Skip-vote rules
"""

from growmies_music.domain.shared.exceptions import DomainError

__all__ = ["DomainError"]
