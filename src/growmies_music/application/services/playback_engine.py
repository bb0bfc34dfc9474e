"""Playback Engine - one voice connection and one audio player per guild."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from ...domain.music.services import QueueDomainService
from ...domain.music.value_objects import EndReason, EngineState, SessionStatus
from ...domain.shared.events import QueueExhausted, SkipVoteCast, TrackSkipped, TrackStarted, get_event_bus
from ...domain.shared.exceptions import SessionAlreadyActiveError
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.voting.entities import VoteSession
from ...domain.voting.services import VotingDomainService
from ...domain.voting.value_objects import VoteResult
from .guild_registry import GuildPlayer, NowPlaying
from .results import FailureReason, OperationResult
from .session_registry import SessionOptions

if TYPE_CHECKING:
    from ...domain.music.entities import MusicSession
    from ..interfaces.audio_resolver import AudioResolver
    from ..interfaces.voice_transport import TrackEndCallback, VoiceTransport
    from .access_gate import AccessGate
    from .guild_registry import GuildPlayerRegistry
    from .preference_service import PreferenceService
    from .queue_service import QueueStore
    from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayRequest:
    """Who is asking to play, and how the track should be handled.

    ``entry_id`` replays an existing queue entry instead of creating one.
    ``skip_queue`` starts the track without persisting it, replacing
    whatever is currently playing.
    """

    user_id: int
    is_cannabis_content: bool = False
    skip_queue: bool = False
    entry_id: int | None = None


@dataclass(frozen=True)
class EngineConfig:
    max_auto_advance_attempts: int = 3
    skip_threshold_percentage: float = 0.5
    auto_skip_listener_count: int = 2
    vote_expiration_minutes: int = 5


class PlaybackEngine:
    """Drives join / play / pause / resume / skip / volume / leave for every guild.

    Every public operation and every transport callback for a guild runs
    under that guild's lock from :class:`GuildPlayerRegistry`, so within a
    guild all transitions are strictly sequential.
    """

    def __init__(
        self,
        *,
        registry: GuildPlayerRegistry,
        session_registry: SessionRegistry,
        queue_store: QueueStore,
        access_gate: AccessGate,
        voice_transport: VoiceTransport,
        audio_resolver: AudioResolver,
        preference_service: PreferenceService | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._registry = registry
        self._sessions = session_registry
        self._queue = queue_store
        self._gate = access_gate
        self._transport = voice_transport
        self._resolver = audio_resolver
        self._preferences = preference_service
        self._config = config or EngineConfig()

        self._transport.set_on_connection_lost(self._on_connection_lost)

    # ── Lifecycle ───────────────────────────────────────────────────

    async def join(
        self,
        guild_id: int,
        voice_channel_id: int,
        text_channel_id: int,
        user_id: int,
        options: SessionOptions | None = None,
    ) -> OperationResult:
        """Connect to voice and open a session.

        Raises:
            VoiceConnectionError: If the transport cannot connect.
        """
        options = options or SessionOptions()
        async with self._registry.lock(guild_id):
            if guild_id in self._registry or await self._sessions.get_active_session(guild_id):
                return OperationResult.fail(
                    FailureReason.ALREADY_ACTIVE, ErrorMessages.SESSION_ALREADY_ACTIVE
                )

            if options.requires_access_check:
                decision = await self._gate.validate_cannabis_access(user_id, guild_id)
                if not decision.allowed:
                    return OperationResult.fail(
                        FailureReason.ACCESS_DENIED,
                        decision.message,
                        access_reason=decision.reason.value if decision.reason else None,
                    )

            if options.volume is None and self._preferences is not None:
                pref = await self._preferences.get_or_create(user_id, guild_id)
                options = replace(options, volume=pref.preferred_volume)

            player = GuildPlayer(
                guild_id=guild_id,
                voice_channel_id=voice_channel_id,
                text_channel_id=text_channel_id,
            )
            player.transition(EngineState.CONNECTING)
            self._registry.register(player)

            try:
                await self._transport.connect(guild_id, voice_channel_id)
            except BaseException:
                await self._transport.disconnect(guild_id)
                self._registry.release(guild_id)
                raise

            try:
                session = await self._sessions.create_session(
                    guild_id, voice_channel_id, text_channel_id, user_id, options
                )
            except SessionAlreadyActiveError:
                await self._transport.disconnect(guild_id)
                self._registry.release(guild_id)
                return OperationResult.fail(
                    FailureReason.ALREADY_ACTIVE, ErrorMessages.SESSION_ALREADY_ACTIVE
                )
            except BaseException:
                await self._transport.disconnect(guild_id)
                self._registry.release(guild_id)
                raise

            player.session_id = session.id
            player.volume = session.volume_level
            player.transition(EngineState.READY)

        return OperationResult.ok(session_id=session.id, session=session.to_dict())

    async def leave(self, guild_id: int, reason: EndReason | str = EndReason.USER_DISCONNECT) -> bool:
        """Stop, disconnect and end the session. False if there was nothing to leave."""
        async with self._registry.lock(guild_id):
            player = self._registry.get(guild_id)
            if player is None:
                return False

            player.next_generation()
            try:
                if player.state.has_resource:
                    await self._transport.stop(guild_id)
                await self._transport.disconnect(guild_id)
                await self._sessions.end_session(guild_id, reason)
            finally:
                self._registry.release(guild_id)
                self._gate.clear_guild(guild_id)

        return True

    # ── Playback ────────────────────────────────────────────────────

    async def play(self, guild_id: int, track_ref: str, request: PlayRequest) -> OperationResult:
        """Queue a track, or start it when nothing is playing and nothing older is pending.

        Raises:
            PlaybackStartError: If the transport refuses the resource. The
                entry created by this call is removed before re-raising.
        """
        async with self._registry.lock(guild_id):
            player = self._registry.get(guild_id)
            session = await self._live_session(player)
            if player is None or session is None:
                return OperationResult.fail(FailureReason.NO_SESSION, ErrorMessages.NO_ACTIVE_SESSION)

            entry = None
            if request.entry_id is not None:
                entry = await self._queue.get_entry(request.entry_id)
                if entry is None or entry.session_id != session.id:
                    return OperationResult.fail(FailureReason.NOT_FOUND, entry_id=request.entry_id)

            cannabis = request.is_cannabis_content or (entry is not None and entry.is_cannabis_content)
            if cannabis:
                decision = await self._gate.validate_cannabis_access(request.user_id, guild_id)
                if not decision.allowed:
                    return OperationResult.fail(
                        FailureReason.ACCESS_DENIED,
                        decision.message,
                        access_reason=decision.reason.value if decision.reason else None,
                    )

            resource = await self._resolver.resolve(entry.track_url if entry else track_ref)
            if resource is None:
                return OperationResult.fail(
                    FailureReason.TRACK_NOT_FOUND,
                    ErrorMessages.TRACK_NOT_FOUND.format(query=track_ref),
                    query=track_ref,
                )

            created = False
            if entry is None and not request.skip_queue:
                track = resource.to_track_info(request.user_id, is_cannabis_content=cannabis)
                entry = await self._queue.enqueue(session.id, track)
                created = True

            if not request.skip_queue and entry is not None:
                if player.state.has_resource:
                    return OperationResult.ok(
                        queued=True,
                        entry_id=entry.id,
                        position=entry.position,
                        title=entry.track_title,
                    )
                head = await self._queue.dequeue_next(session.id) if created else None
                if head is not None and head.id != entry.id:
                    # Older entries left pending after auto-advance gave up go first
                    started = await self._advance(player)
                    return OperationResult.ok(
                        queued=True,
                        entry_id=entry.id,
                        position=entry.position,
                        title=entry.track_title,
                        now_playing=started.to_dict() if started else None,
                    )

            if entry is not None:
                now = NowPlaying.from_entry(entry, resource)
            else:
                now = NowPlaying(
                    track=resource.to_track_info(request.user_id, is_cannabis_content=cannabis),
                    resource=resource,
                )

            if player.state.has_resource:
                player.next_generation()
                await self._transport.stop(guild_id)
                replaced = player.clear_current()
                player.transition(EngineState.READY)
                if replaced is not None and replaced.entry_id is not None:
                    await self._queue.mark_played(replaced.entry_id)

            try:
                await self._start(player, session, now)
            except Exception:
                if created and entry is not None:
                    await self._queue.delete_entry(entry.id)
                    logger.info(LogTemplates.PLAYBACK_ROLLED_BACK, entry.id, guild_id)
                raise

            return OperationResult.ok(
                queued=False,
                entry_id=now.entry_id,
                position=now.position,
                title=now.title,
                now_playing=now.to_dict(),
            )

    async def pause(self, guild_id: int) -> bool:
        async with self._registry.lock(guild_id):
            player = self._registry.get(guild_id)
            if player is None or player.state != EngineState.PLAYING:
                return False
            if not await self._transport.pause(guild_id):
                return False
            player.transition(EngineState.PAUSED)
            if player.session_id:
                await self._sessions.update_status(player.session_id, SessionStatus.PAUSED)

        logger.debug(LogTemplates.PLAYBACK_PAUSED, guild_id)
        return True

    async def resume(self, guild_id: int) -> bool:
        async with self._registry.lock(guild_id):
            player = self._registry.get(guild_id)
            if player is None or player.state != EngineState.PAUSED:
                return False
            if not await self._transport.resume(guild_id):
                return False
            player.transition(EngineState.PLAYING)
            if player.session_id:
                await self._sessions.update_status(player.session_id, SessionStatus.ACTIVE)

        logger.debug(LogTemplates.PLAYBACK_RESUMED, guild_id)
        return True

    async def skip(self, guild_id: int) -> OperationResult:
        async with self._registry.lock(guild_id):
            return await self._skip_locked(self._registry.get(guild_id), via_vote=False)

    async def request_skip(self, guild_id: int, user_id: int) -> OperationResult:
        """Requester (or a small audience) skips outright; anyone else votes."""
        async with self._registry.lock(guild_id):
            player = self._registry.get(guild_id)
            if player is None:
                return OperationResult.fail(FailureReason.NO_SESSION, ErrorMessages.NO_ACTIVE_SESSION)
            if player.current is None:
                return OperationResult.fail(FailureReason.NOTHING_PLAYING, ErrorMessages.NOTHING_PLAYING)

            listeners = await self._transport.get_listeners(guild_id)
            threshold = VotingDomainService.calculate_threshold(
                len(listeners), self._config.skip_threshold_percentage
            )
            vote = player.vote_session
            if vote is None or VotingDomainService.should_reset_session(vote, player.generation):
                vote = VoteSession(
                    guild_id=guild_id,
                    generation=player.generation,
                    threshold=threshold,
                    expiration_minutes=self._config.vote_expiration_minutes,
                )
                player.vote_session = vote
            else:
                vote.update_threshold(threshold)

            result = VotingDomainService.evaluate_vote(
                vote,
                user_id,
                player.current.requested_by_user_id,
                len(listeners),
                self._config.auto_skip_listener_count,
            )

            if result == VoteResult.ALREADY_VOTED:
                return OperationResult.fail(
                    FailureReason.ALREADY_VOTED,
                    result.get_message(),
                    votes=vote.vote_count,
                    needed=vote.threshold,
                )

            if result.action_executed:
                if result == VoteResult.THRESHOLD_MET:
                    logger.info(LogTemplates.VOTE_THRESHOLD_MET, guild_id)
                skipped = await self._skip_locked(player, via_vote=result == VoteResult.THRESHOLD_MET)
                return skipped.model_copy(update={"vote_result": result.value})

            logger.info(LogTemplates.VOTE_RECORDED, user_id, guild_id, vote.vote_count, vote.threshold)
            await get_event_bus().publish(
                SkipVoteCast(
                    guild_id=guild_id,
                    voter_id=user_id,
                    current_votes=vote.vote_count,
                    votes_needed=vote.threshold,
                )
            )
            return OperationResult.ok(
                skipped=False,
                vote_result=result.value,
                votes=vote.vote_count,
                needed=vote.threshold,
            )

    async def set_volume(self, guild_id: int, level: int) -> OperationResult:
        """Persist a 0-100 level and apply it live where the pipeline allows."""
        if isinstance(level, bool) or not isinstance(level, int) or not 0 <= level <= 100:
            return OperationResult.fail(
                FailureReason.INVALID_VOLUME, ErrorMessages.INVALID_VOLUME.format(volume=level)
            )

        async with self._registry.lock(guild_id):
            player = self._registry.get(guild_id)
            if player is None or player.session_id is None:
                return OperationResult.fail(FailureReason.NO_SESSION, ErrorMessages.NO_ACTIVE_SESSION)

            await self._sessions.update_volume(player.session_id, level)
            player.volume = level

            applied_live = False
            if player.state.has_resource:
                applied_live = await self._transport.set_volume(guild_id, level / 100)
                if not applied_live:
                    logger.info(LogTemplates.VOICE_LIVE_VOLUME_UNSUPPORTED, guild_id)

        return OperationResult.ok(volume=level, applied_live=applied_live)

    async def get_status(self, guild_id: int) -> OperationResult:
        async with self._registry.lock(guild_id):
            player = self._registry.get(guild_id)
            session = await self._live_session(player)
            if player is None or session is None:
                return OperationResult.fail(FailureReason.NO_SESSION, ErrorMessages.NO_ACTIVE_SESSION)

            entries = await self._queue.list_entries(session.id)
            stats = await self._queue.stats(session.id)
            return OperationResult.ok(
                current_track=player.current.to_dict() if player.current else None,
                is_playing=player.state == EngineState.PLAYING,
                is_paused=player.state == EngineState.PAUSED,
                state=player.state.value,
                queue=[entry.to_dict() for entry in entries],
                stats=stats.to_dict(),
                session=session.to_dict(),
            )

    def state_of(self, guild_id: int) -> EngineState:
        player = self._registry.get(guild_id)
        return player.state if player else EngineState.IDLE

    async def shutdown(self) -> None:
        """Leave every guild; used when the bot process stops."""
        for guild_id in self._registry.guild_ids():
            await self.leave(guild_id, EndReason.BOT_SHUTDOWN)

    # ── Internals (guild lock held) ─────────────────────────────────

    async def _live_session(self, player: GuildPlayer | None) -> MusicSession | None:
        if player is None or player.session_id is None:
            return None
        session = await self._sessions.get_active_session(player.guild_id)
        if session is None or session.id != player.session_id:
            return None
        return session

    async def _start(
        self,
        player: GuildPlayer,
        session: MusicSession,
        now: NowPlaying,
        *,
        automatic: bool = False,
    ) -> None:
        """Hand ``now`` to the transport and record it as current.

        In-memory state is restored if the transport refuses the resource or
        a store write fails after it started; the resource is stopped then.
        ``automatic`` marks a start that followed the previous track ending.
        """
        previous_state, previous_current = player.state, player.current
        generation = player.next_generation()
        try:
            await self._transport.play(
                player.guild_id,
                now.resource,
                volume=QueueDomainService.start_volume(session),
                on_finished=self._track_end_handler(player.guild_id, generation),
            )
        except Exception as exc:
            player.state, player.current = previous_state, previous_current
            logger.warning(LogTemplates.PLAYBACK_FAILED_START, now.title, player.guild_id, exc)
            raise

        try:
            if now.entry_id is not None:
                await self._queue.mark_played(now.entry_id)
            if session.status != SessionStatus.ACTIVE:
                await self._sessions.update_status(session.id, SessionStatus.ACTIVE)
            await self._sessions.advance_track_index(session.id)
        except Exception:
            # The resource is already playing; silence it and drop its callback
            player.next_generation()
            await self._transport.stop(player.guild_id)
            player.state, player.current = previous_state, previous_current
            raise

        player.clear_current()
        player.current = now
        player.volume = session.volume_level
        player.state = EngineState.PLAYING

        logger.info(LogTemplates.PLAYBACK_STARTED, now.title, player.guild_id, generation)
        await get_event_bus().publish(
            TrackStarted(
                guild_id=player.guild_id,
                session_id=session.id,
                entry_id=now.entry_id,
                track_title=now.title,
                track_url=now.track.url,
                requested_by_id=now.requested_by_user_id,
                automatic=automatic,
            )
        )

    async def _skip_locked(self, player: GuildPlayer | None, *, via_vote: bool) -> OperationResult:
        if player is None:
            return OperationResult.fail(FailureReason.NO_SESSION, ErrorMessages.NO_ACTIVE_SESSION)
        if player.current is None:
            return OperationResult.fail(FailureReason.NOTHING_PLAYING, ErrorMessages.NOTHING_PLAYING)

        player.next_generation()
        await self._transport.stop(player.guild_id)
        skipped = player.clear_current()
        player.transition(EngineState.READY)
        if skipped is not None and skipped.entry_id is not None:
            await self._queue.mark_played(skipped.entry_id)

        logger.info(LogTemplates.TRACK_SKIPPED, skipped.title if skipped else None, player.guild_id)
        await get_event_bus().publish(
            TrackSkipped(
                guild_id=player.guild_id,
                entry_id=skipped.entry_id if skipped else None,
                track_title=skipped.title if skipped else "",
                via_vote=via_vote,
            )
        )

        next_track = await self._advance(player)
        return OperationResult.ok(
            skipped=True,
            skipped_track=skipped.to_dict() if skipped else None,
            next_track=next_track.to_dict() if next_track else None,
        )

    async def _advance(self, player: GuildPlayer, *, automatic: bool = False) -> NowPlaying | None:
        """Start the next pending entry, marking failures and moving on."""
        session = await self._live_session(player)
        if session is None:
            return None

        for _ in range(self._config.max_auto_advance_attempts):
            entry = await self._queue.dequeue_next(session.id)
            if entry is None:
                logger.info(LogTemplates.QUEUE_EMPTY, player.guild_id)
                await get_event_bus().publish(
                    QueueExhausted(guild_id=player.guild_id, session_id=session.id)
                )
                return None

            if entry.is_cannabis_content:
                decision = await self._gate.validate_cannabis_access(
                    entry.requested_by_user_id, player.guild_id
                )
                if not decision.allowed:
                    reason = decision.reason.value if decision.reason else FailureReason.ACCESS_DENIED.value
                    logger.info(LogTemplates.PLAYBACK_ENTRY_DENIED, entry.id, player.guild_id, reason)
                    await self._queue.mark_failed(entry.id, reason)
                    continue

            resource = await self._resolver.resolve(entry.track_url)
            if resource is None:
                await self._queue.mark_failed(entry.id, FailureReason.TRACK_NOT_FOUND.value)
                continue

            try:
                await self._start(player, session, NowPlaying.from_entry(entry, resource), automatic=automatic)
            except Exception as exc:
                await self._queue.mark_failed(entry.id, str(exc))
                continue
            return player.current

        logger.error(
            LogTemplates.PLAYBACK_AUTO_ADVANCE_GAVE_UP,
            self._config.max_auto_advance_attempts,
            player.guild_id,
        )
        return None

    # ── Transport callbacks ─────────────────────────────────────────

    def _track_end_handler(self, guild_id: int, generation: int) -> TrackEndCallback:
        async def on_finished(error: Exception | None) -> None:
            await self._on_track_end(guild_id, generation, error)

        return on_finished

    async def _on_track_end(self, guild_id: int, generation: int, error: Exception | None) -> None:
        async with self._registry.lock(guild_id):
            player = self._registry.get(guild_id)
            if player is None or player.generation != generation or player.current is None:
                logger.debug(
                    LogTemplates.PLAYBACK_IGNORING_CALLBACK,
                    guild_id,
                    generation,
                    player.generation if player else None,
                )
                return

            if error is not None:
                logger.warning(LogTemplates.PLAYBACK_TRACK_ERROR, guild_id, error)

            finished = player.clear_current()
            player.transition(EngineState.READY)
            logger.debug(LogTemplates.TRACK_FINISHED, finished.title if finished else None, guild_id)
            await self._advance(player, automatic=True)

    async def _on_connection_lost(self, guild_id: int) -> None:
        logger.warning(LogTemplates.VOICE_CONNECTION_LOST, guild_id)
        await self.leave(guild_id, EndReason.CONNECTION_LOST)
