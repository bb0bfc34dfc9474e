"""
Application Queries (CQRS Read Side)

Query objects and handlers for read operations.
Queries do not modify state, only retrieve data.
"""

from growmies_music.application.queries.get_queue import GetQueueHandler, GetQueueQuery, QueueInfo
from growmies_music.application.queries.session_stats import (
    GetSessionStatsHandler,
    GetSessionStatsQuery,
    SessionStats,
    SessionTypeStats,
)

__all__ = [
    # Queue
    "GetQueueQuery",
    "GetQueueHandler",
    "QueueInfo",
    # Stats
    "GetSessionStatsQuery",
    "GetSessionStatsHandler",
    "SessionStats",
    "SessionTypeStats",
]
