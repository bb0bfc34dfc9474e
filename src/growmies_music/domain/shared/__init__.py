"""
Shared Domain Kernel

Types, messages and errors used by every bounded context.
"""

from growmies_music.domain.shared.exceptions import (
    DomainError,
    InvalidOperationError,
    SessionAlreadyActiveError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "InvalidOperationError",
    "SessionAlreadyActiveError",
    "ValidationError",
]
