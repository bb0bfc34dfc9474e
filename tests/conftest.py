import pytest
import pytest_asyncio

from growmies_music.application.interfaces.audio_resolver import AudioResolver, AudioResource
from growmies_music.application.interfaces.voice_transport import (
    PlaybackStartError,
    VoiceConnectionError,
    VoiceTransport,
)
from growmies_music.domain.shared.events import reset_event_bus

GUILD_ID = 111111111111111111
VOICE_CHANNEL_ID = 222222222222222222
TEXT_CHANNEL_ID = 333333333333333333
USER_ID = 444444444444444444
OTHER_USER_ID = 555555555555555555


# ============================================================================
# Test Doubles
# ============================================================================


class FakeVoiceTransport(VoiceTransport):
    """In-memory voice transport that records calls and holds track-end callbacks."""

    def __init__(self):
        self.connected: set[int] = set()
        self.connect_calls: list[tuple[int, int]] = []
        self.disconnect_calls: list[int] = []
        self.played: list[tuple[int, AudioResource, float]] = []
        self.callbacks: list = []
        self.stop_calls = 0
        self.paused: set[int] = set()
        self.volumes: dict[int, float] = {}
        self.listeners: dict[int, list[int]] = {}
        self.fail_connect = False
        self.fail_titles: set[str] = set()
        self.live_volume = True
        self.on_connection_lost = None

    async def connect(self, guild_id, channel_id):
        self.connect_calls.append((guild_id, channel_id))
        if self.fail_connect:
            raise VoiceConnectionError(guild_id, channel_id, "connect failed")
        self.connected.add(guild_id)

    async def disconnect(self, guild_id):
        self.disconnect_calls.append(guild_id)
        if guild_id not in self.connected:
            return False
        self.connected.discard(guild_id)
        return True

    async def play(self, guild_id, resource, *, volume, on_finished):
        if resource.title in self.fail_titles:
            raise PlaybackStartError(guild_id, resource.title, f"cannot play {resource.title}")
        self.played.append((guild_id, resource, volume))
        self.callbacks.append(on_finished)
        self.paused.discard(guild_id)

    async def stop(self, guild_id):
        self.stop_calls += 1
        self.paused.discard(guild_id)
        return True

    async def pause(self, guild_id):
        self.paused.add(guild_id)
        return True

    async def resume(self, guild_id):
        if guild_id not in self.paused:
            return False
        self.paused.discard(guild_id)
        return True

    async def set_volume(self, guild_id, volume):
        if not self.live_volume:
            return False
        self.volumes[guild_id] = volume
        return True

    def is_connected(self, guild_id):
        return guild_id in self.connected

    async def get_listeners(self, guild_id):
        return list(self.listeners.get(guild_id, []))

    def set_on_connection_lost(self, callback):
        self.on_connection_lost = callback

    @property
    def played_titles(self) -> list[str]:
        return [resource.title for _, resource, _ in self.played]

    async def finish_current(self, error=None):
        """Fire the most recent track-end callback, as the audio thread would."""
        await self.callbacks[-1](error)


class FakeResolver(AudioResolver):
    """Resolves ``slug`` or ``https://www.youtube.com/watch?v=slug`` to a resource titled ``slug``."""

    def __init__(self):
        self.missing: set[str] = set()
        self.queries: list[str] = []

    async def resolve(self, query):
        self.queries.append(query)
        slug = query.rsplit("=", 1)[-1] if self.is_url(query) else query
        if slug in self.missing:
            return None
        return AudioResource(
            webpage_url=f"https://www.youtube.com/watch?v={slug}",
            stream_url=f"https://stream.example.com/{slug}.webm",
            title=slug,
            duration_seconds=180,
        )

    def is_url(self, query):
        return query.startswith(("http://", "https://"))


# ============================================================================
# Event Bus
# ============================================================================


@pytest.fixture(autouse=True)
def fresh_event_bus():
    """Give every test its own event bus."""
    reset_event_bus()
    yield
    reset_event_bus()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from growmies_music.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def session_repository(in_memory_database):
    """Create a session repository with in-memory database."""
    from growmies_music.infrastructure.persistence.repositories.session_repository import (
        SQLiteSessionRepository,
    )

    return SQLiteSessionRepository(in_memory_database)


@pytest_asyncio.fixture
async def queue_repository(in_memory_database):
    """Create a queue repository with in-memory database."""
    from growmies_music.infrastructure.persistence.repositories.queue_repository import (
        SQLiteQueueRepository,
    )

    return SQLiteQueueRepository(in_memory_database)


@pytest_asyncio.fixture
async def preference_repository(in_memory_database):
    """Create a preference repository with in-memory database."""
    from growmies_music.infrastructure.persistence.repositories.preference_repository import (
        SQLitePreferenceRepository,
    )

    return SQLitePreferenceRepository(in_memory_database)


@pytest_asyncio.fixture
async def verification_repository(in_memory_database):
    """Create an age-verification repository with in-memory database."""
    from growmies_music.infrastructure.persistence.repositories.verification_repository import (
        SQLiteAgeVerificationRepository,
    )

    return SQLiteAgeVerificationRepository(in_memory_database)


# ============================================================================
# Application Service Fixtures
# ============================================================================


@pytest.fixture
def session_registry(session_repository):
    from growmies_music.application.services.session_registry import SessionRegistry

    return SessionRegistry(session_repository=session_repository)


@pytest.fixture
def queue_store(queue_repository):
    from growmies_music.application.services.queue_service import QueueStore

    return QueueStore(queue_repository=queue_repository)


@pytest.fixture
def access_gate(verification_repository):
    from growmies_music.application.services.access_gate import AccessGate

    return AccessGate(verification_repository=verification_repository)


@pytest.fixture
def preference_service(preference_repository):
    from growmies_music.application.services.preference_service import PreferenceService

    return PreferenceService(preference_repository=preference_repository)


@pytest.fixture
def guild_registry():
    from growmies_music.application.services.guild_registry import GuildPlayerRegistry

    return GuildPlayerRegistry()


@pytest.fixture
def voice_transport():
    return FakeVoiceTransport()


@pytest.fixture
def audio_resolver():
    return FakeResolver()


@pytest.fixture
def engine(
    guild_registry,
    session_registry,
    queue_store,
    access_gate,
    voice_transport,
    audio_resolver,
    preference_service,
):
    """Playback engine wired to the in-memory store and fake ports."""
    from growmies_music.application.services.playback_engine import PlaybackEngine

    return PlaybackEngine(
        registry=guild_registry,
        session_registry=session_registry,
        queue_store=queue_store,
        access_gate=access_gate,
        voice_transport=voice_transport,
        audio_resolver=audio_resolver,
        preference_service=preference_service,
    )


@pytest_asyncio.fixture
async def verified_user(verification_repository):
    """USER_ID holds an active 21+ verification in GUILD_ID."""
    from growmies_music.domain.access.entities import AgeVerificationRecord
    from growmies_music.domain.access.value_objects import VerificationStatus

    await verification_repository.upsert(
        AgeVerificationRecord(
            user_id=USER_ID,
            guild_id=GUILD_ID,
            is_21_plus=True,
            verification_status=VerificationStatus.VERIFIED,
        )
    )
    return USER_ID


@pytest_asyncio.fixture
async def joined(engine):
    """Engine with an open general session in GUILD_ID."""
    result = await engine.join(GUILD_ID, VOICE_CHANNEL_ID, TEXT_CHANNEL_ID, USER_ID)
    assert result.success
    return result.session_id


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


@pytest.fixture
def sample_track():
    """Create a sample track for testing."""
    from growmies_music.domain.music.entities import TrackInfo

    return TrackInfo(
        url="https://www.youtube.com/watch?v=test123",
        title="Test Track",
        duration_seconds=180,
        requested_by_user_id=USER_ID,
    )


def make_track(slug: str, duration: int | None = 180, user_id: int = USER_ID, cannabis: bool = False):
    from growmies_music.domain.music.entities import TrackInfo

    return TrackInfo(
        url=f"https://www.youtube.com/watch?v={slug}",
        title=slug,
        duration_seconds=duration,
        requested_by_user_id=user_id,
        is_cannabis_content=cannabis,
    )
