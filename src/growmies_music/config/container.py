"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for repositories, services, adapters and handlers.
Components are created on first access and cached for reuse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.manage_queue import ManageQueueHandler
    from ..application.interfaces.audio_resolver import AudioResolver
    from ..application.queries.get_queue import GetQueueHandler
    from ..application.queries.session_stats import GetSessionStatsHandler
    from ..application.services.access_gate import AccessGate
    from ..application.services.guild_registry import GuildPlayerRegistry
    from ..application.services.playback_engine import PlaybackEngine
    from ..application.services.preference_service import PreferenceService
    from ..application.services.queue_service import QueueStore
    from ..application.services.session_registry import SessionRegistry
    from ..domain.access.repository import AgeVerificationRepository
    from ..domain.music.repository import QueueRepository, SessionRepository
    from ..domain.preferences.repository import PreferenceRepository
    from ..infrastructure.discord.adapters.voice_transport import DiscordVoiceTransport
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Persistence layer
    _database: Database | None = None
    _session_repository: SessionRepository | None = None
    _queue_repository: QueueRepository | None = None
    _preference_repository: PreferenceRepository | None = None
    _verification_repository: AgeVerificationRepository | None = None

    # Infrastructure adapters
    _audio_resolver: AudioResolver | None = None
    _voice_transport: DiscordVoiceTransport | None = None

    # Application services
    _session_registry: SessionRegistry | None = None
    _queue_store: QueueStore | None = None
    _access_gate: AccessGate | None = None
    _preference_service: PreferenceService | None = None
    _guild_registry: GuildPlayerRegistry | None = None
    _playback_engine: PlaybackEngine | None = None

    # Command / query handlers
    _manage_queue_handler: ManageQueueHandler | None = None
    _get_queue_handler: GetQueueHandler | None = None
    _session_stats_handler: GetSessionStatsHandler | None = None

    def set_bot(self, bot: Bot) -> None:
        self._bot = bot

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError("Bot not initialized. Call set_bot() first.")
        return self._bot

    # === Database ===

    @property
    def database(self) -> Database:
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    # === Repositories ===

    @property
    def session_repository(self) -> SessionRepository:
        if self._session_repository is None:
            from ..infrastructure.persistence.repositories.session_repository import (
                SQLiteSessionRepository,
            )

            self._session_repository = SQLiteSessionRepository(self.database)
        return self._session_repository

    @property
    def queue_repository(self) -> QueueRepository:
        if self._queue_repository is None:
            from ..infrastructure.persistence.repositories.queue_repository import (
                SQLiteQueueRepository,
            )

            self._queue_repository = SQLiteQueueRepository(self.database)
        return self._queue_repository

    @property
    def preference_repository(self) -> PreferenceRepository:
        if self._preference_repository is None:
            from ..infrastructure.persistence.repositories.preference_repository import (
                SQLitePreferenceRepository,
            )

            self._preference_repository = SQLitePreferenceRepository(self.database)
        return self._preference_repository

    @property
    def verification_repository(self) -> AgeVerificationRepository:
        if self._verification_repository is None:
            from ..infrastructure.persistence.repositories.verification_repository import (
                SQLiteAgeVerificationRepository,
            )

            self._verification_repository = SQLiteAgeVerificationRepository(self.database)
        return self._verification_repository

    # === Adapters ===

    @property
    def audio_resolver(self) -> AudioResolver:
        if self._audio_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._audio_resolver = YtDlpResolver(self.settings.audio)
        return self._audio_resolver

    @property
    def voice_transport(self) -> DiscordVoiceTransport:
        if self._voice_transport is None:
            from ..infrastructure.discord.adapters.voice_transport import DiscordVoiceTransport

            self._voice_transport = DiscordVoiceTransport(
                self.bot,
                self.settings.audio,
                connect_timeout=self.settings.playback.connect_timeout_s,
            )
        return self._voice_transport

    # === Application services ===

    @property
    def session_registry(self) -> SessionRegistry:
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry(
                session_repository=self.session_repository,
                default_volume=self.settings.audio.default_volume,
            )
        return self._session_registry

    @property
    def queue_store(self) -> QueueStore:
        if self._queue_store is None:
            from ..application.services.queue_service import QueueStore

            self._queue_store = QueueStore(queue_repository=self.queue_repository)
        return self._queue_store

    @property
    def access_gate(self) -> AccessGate:
        if self._access_gate is None:
            from ..application.services.access_gate import AccessGate

            self._access_gate = AccessGate(
                verification_repository=self.verification_repository,
                cache_ttl_seconds=self.settings.access.cache_ttl_seconds,
            )
        return self._access_gate

    @property
    def preference_service(self) -> PreferenceService:
        if self._preference_service is None:
            from ..application.services.preference_service import PreferenceService

            self._preference_service = PreferenceService(
                preference_repository=self.preference_repository,
                cache_ttl_seconds=self.settings.preferences.cache_ttl_seconds,
                default_volume=self.settings.audio.default_volume,
            )
        return self._preference_service

    @property
    def guild_registry(self) -> GuildPlayerRegistry:
        if self._guild_registry is None:
            from ..application.services.guild_registry import GuildPlayerRegistry

            self._guild_registry = GuildPlayerRegistry()
        return self._guild_registry

    @property
    def playback_engine(self) -> PlaybackEngine:
        if self._playback_engine is None:
            from ..application.services.playback_engine import EngineConfig, PlaybackEngine

            voting = self.settings.voting
            self._playback_engine = PlaybackEngine(
                registry=self.guild_registry,
                session_registry=self.session_registry,
                queue_store=self.queue_store,
                access_gate=self.access_gate,
                voice_transport=self.voice_transport,
                audio_resolver=self.audio_resolver,
                preference_service=self.preference_service,
                config=EngineConfig(
                    max_auto_advance_attempts=self.settings.playback.max_auto_advance_attempts,
                    skip_threshold_percentage=voting.skip_threshold_percentage,
                    auto_skip_listener_count=voting.auto_skip_listener_count,
                    vote_expiration_minutes=voting.expiration_minutes,
                ),
            )
        return self._playback_engine

    # === Handlers ===

    @property
    def manage_queue_handler(self) -> ManageQueueHandler:
        if self._manage_queue_handler is None:
            from ..application.commands.manage_queue import ManageQueueHandler

            self._manage_queue_handler = ManageQueueHandler(
                registry=self.guild_registry,
                session_registry=self.session_registry,
                queue_store=self.queue_store,
            )
        return self._manage_queue_handler

    @property
    def get_queue_handler(self) -> GetQueueHandler:
        if self._get_queue_handler is None:
            from ..application.queries.get_queue import GetQueueHandler

            self._get_queue_handler = GetQueueHandler(
                session_registry=self.session_registry, queue_store=self.queue_store
            )
        return self._get_queue_handler

    @property
    def session_stats_handler(self) -> GetSessionStatsHandler:
        if self._session_stats_handler is None:
            from ..application.queries.session_stats import GetSessionStatsHandler

            self._session_stats_handler = GetSessionStatsHandler(
                session_repository=self.session_repository
            )
        return self._session_stats_handler

    # === Lifecycle ===

    async def initialize(self) -> None:
        await self.database.initialize()

    async def shutdown(self) -> None:
        """Leave every guild, then close the database."""
        if self._playback_engine is not None:
            await self._playback_engine.shutdown()

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    return Container(settings)
