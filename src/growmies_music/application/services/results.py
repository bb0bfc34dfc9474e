"""Uniform result type returned by engine and queue operations."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class FailureReason(StrEnum):
    """Machine-readable reasons an operation did not succeed."""

    ALREADY_ACTIVE = "already_active"
    ACCESS_DENIED = "access_denied"
    NO_SESSION = "no_session"
    TRACK_NOT_FOUND = "track_not_found"
    NOTHING_PLAYING = "nothing_playing"
    INVALID_VOLUME = "invalid_volume"
    ALREADY_VOTED = "already_voted"
    NOT_FOUND = "not_found"
    NOT_ENOUGH_TRACKS = "not_enough_tracks"
    NOT_CONFIRMED = "not_confirmed"


class OperationResult(BaseModel):
    """Success flag plus either a payload or a failure reason.

    Payload keys are stored as extra fields, so ``result.position`` and
    ``result.to_dict()["position"]`` both work.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    success: bool
    reason: FailureReason | None = None
    error: str | None = None

    @property
    def is_success(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, **payload: Any) -> OperationResult:
        return cls(success=True, **payload)

    @classmethod
    def fail(cls, reason: FailureReason, error: str | None = None, **payload: Any) -> OperationResult:
        return cls(success=False, reason=reason, error=error, **payload)

    def get(self, key: str, default: Any = None) -> Any:
        return (self.model_extra or {}).get(key, default)

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        if self.reason is not None:
            data["reason"] = self.reason.value
        return data
