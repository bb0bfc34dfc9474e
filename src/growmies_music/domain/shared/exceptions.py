"""Domain errors raised by session, queue and player state rules."""

from __future__ import annotations


class DomainError(Exception):
    """Root of every error the domain raises on purpose."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """An argument was rejected before any state changed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidOperationError(DomainError):
    """The session or player is in a state that does not allow the operation.

    ``operation`` names what was attempted, ``current_state`` is the state
    value at the time (``"ended"``, ``"idle"``, ...).
    """

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Cannot {operation} while {current_state}",
            code="INVALID_OPERATION",
        )
        self.operation = operation
        self.current_state = current_state


class SessionAlreadyActiveError(DomainError):
    """A guild already has a live (active or paused) music session.

    Raised by the session registry and by the store's unique index, so a
    racing insert fails the same way as a checked one.
    """

    def __init__(self, guild_id: int) -> None:
        super().__init__(
            f"Guild {guild_id} already has an active music session",
            code="SESSION_ALREADY_ACTIVE",
        )
        self.guild_id = guild_id
