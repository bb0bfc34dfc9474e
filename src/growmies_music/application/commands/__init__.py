"""
Application Commands (CQRS Write Side)

Command objects and their handlers for write operations.
Commands represent intent to change the system state.
"""

from growmies_music.application.commands.manage_queue import (
    ClearQueueCommand,
    ManageQueueHandler,
    RemoveTrackCommand,
    ShuffleQueueCommand,
)

__all__ = [
    "RemoveTrackCommand",
    "ClearQueueCommand",
    "ShuffleQueueCommand",
    "ManageQueueHandler",
]
