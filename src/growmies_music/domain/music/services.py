"""
Music Domain Services

Domain services containing business logic that doesn't naturally fit
within a single entity or value object.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Any

from growmies_music.domain.music.entities import MusicSession, QueueEntry
from growmies_music.domain.music.value_objects import SessionType


class SessionDomainService:
    """Business rules for creating and classifying music sessions."""

    @classmethod
    def classify(
        cls, session_type: SessionType, is_cannabis_content: bool
    ) -> tuple[bool, bool]:
        """Resolve the ``(is_cannabis_content, requires_21_plus)`` pair.

        Meditation and educational sessions are always cannabis content, and
        any cannabis session is 21+ only.

        Args:
            session_type: Declared session type.
            is_cannabis_content: Explicit flag from the caller.

        Returns:
            The effective cannabis flag and 21+ flag.
        """
        cannabis = is_cannabis_content or session_type.is_cannabis_flagged
        return cannabis, cannabis

    @classmethod
    def requires_access_check(cls, session_type: SessionType, is_cannabis_content: bool) -> bool:
        cannabis, _ = cls.classify(session_type, is_cannabis_content)
        return cannabis

    @classmethod
    def build_session(
        cls,
        *,
        guild_id: int,
        voice_channel_id: int,
        text_channel_id: int,
        user_id: int,
        session_type: SessionType,
        is_cannabis_content: bool,
        volume: int,
        metadata: dict[str, Any] | None = None,
    ) -> MusicSession:
        cannabis, adults_only = cls.classify(session_type, is_cannabis_content)
        session = MusicSession(
            guild_id=guild_id,
            voice_channel_id=voice_channel_id,
            text_channel_id=text_channel_id,
            created_by_user_id=user_id,
            session_type=session_type,
            is_cannabis_content=cannabis,
            requires_21_plus=adults_only,
            volume_level=volume,
        )
        if metadata:
            session.metadata = {**session.metadata, **metadata}
        return session


class QueueDomainService:
    """Domain service for queue ordering rules."""

    @classmethod
    def shuffle_assignments(
        cls, pending: Sequence[QueueEntry], rng: random.Random | None = None
    ) -> dict[int, int]:
        """Randomly permute the existing positions of pending entries.

        Played history is not passed in and therefore never moves. The set of
        position values is preserved, so positions stay unique within the
        session.

        Args:
            pending: Pending entries of one session.
            rng: Optional random source (tests pass a seeded one).

        Returns:
            ``{entry_id: new_position}`` for every pending entry.
        """
        positions = [entry.position for entry in pending]
        shuffled = list(positions)
        (rng or random).shuffle(shuffled)
        return {entry.id: position for entry, position in zip(pending, shuffled, strict=True)}

    @classmethod
    def start_volume(cls, session: MusicSession) -> float:
        """Volume multiplier handed to the audio pipeline at track start."""
        return session.volume_level / 100
