"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING

from growmies_music.application.services.results import FailureReason
from growmies_music.domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from growmies_music.application.services.results import OperationResult


_FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.ALREADY_ACTIVE: DiscordUIMessages.ERROR_ALREADY_ACTIVE,
    FailureReason.NO_SESSION: DiscordUIMessages.STATE_NO_SESSION,
    FailureReason.NOTHING_PLAYING: DiscordUIMessages.STATE_NOTHING_PLAYING,
    FailureReason.INVALID_VOLUME: DiscordUIMessages.ERROR_INVALID_VOLUME,
    FailureReason.NOT_ENOUGH_TRACKS: DiscordUIMessages.STATE_NOT_ENOUGH_TRACKS_TO_SHUFFLE,
    FailureReason.NOT_CONFIRMED: DiscordUIMessages.ERROR_CLEAR_NOT_CONFIRMED,
}


@cache
def format_duration(seconds: int | float | None) -> str:
    if seconds is None:
        return "–"

    total_seconds = int(seconds)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def describe_failure(result: OperationResult) -> str:
    """User-facing text for a failed engine or queue operation."""
    reason = result.reason
    if reason == FailureReason.ACCESS_DENIED:
        return f"🔞 {result.error}" if result.error else DiscordUIMessages.ERROR_COMMAND_FAILED
    if reason == FailureReason.TRACK_NOT_FOUND:
        return DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query=result.get("query", "that query"))
    if reason == FailureReason.NOT_FOUND and result.get("position") is not None:
        return DiscordUIMessages.ERROR_NO_TRACK_AT_POSITION.format(position=result.get("position"))
    if reason == FailureReason.ALREADY_VOTED:
        return DiscordUIMessages.VOTE_ALREADY_VOTED.format(
            votes_current=result.get("votes", 0), votes_needed=result.get("needed", 0)
        )
    if reason is not None and reason in _FAILURE_MESSAGES:
        return _FAILURE_MESSAGES[reason]
    return DiscordUIMessages.ERROR_COMMAND_FAILED


def describe_skip(result: OperationResult) -> str:
    """User-facing text for ``skip`` / ``request_skip`` results."""
    if not result.is_success:
        return describe_failure(result)

    if not result.get("skipped", False):
        return DiscordUIMessages.VOTE_RECORDED.format(
            votes_current=result.get("votes", 0), votes_needed=result.get("needed", 0)
        )

    skipped = result.get("skipped_track") or {}
    next_track = result.get("next_track")
    title = truncate(skipped.get("title", "Unknown Track"))
    if next_track:
        return DiscordUIMessages.ACTION_SKIPPED_NEXT.format(
            title=title, next_title=truncate(next_track.get("title", "Unknown Track"))
        )
    return DiscordUIMessages.ACTION_SKIPPED.format(title=title)
