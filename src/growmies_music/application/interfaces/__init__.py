"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from growmies_music.application.interfaces.audio_resolver import AudioResolver, AudioResource
from growmies_music.application.interfaces.voice_transport import (
    PlaybackStartError,
    VoiceConnectionError,
    VoiceTransport,
)

__all__ = [
    "AudioResolver",
    "AudioResource",
    "VoiceTransport",
    "VoiceConnectionError",
    "PlaybackStartError",
]
