"""Discord UI views."""

from growmies_music.infrastructure.discord.views.base_view import BaseInteractiveView
from growmies_music.infrastructure.discord.views.music_controls_view import MusicControlsView

__all__ = [
    "BaseInteractiveView",
    "MusicControlsView",
]
