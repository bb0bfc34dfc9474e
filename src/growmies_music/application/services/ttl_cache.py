"""Small in-process TTL cache shared by the access gate and preference service."""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[V]):
    value: V
    cached_at: float


class TtlCache(Generic[K, V]):
    """Dictionary whose entries lapse ``ttl_seconds`` after being stored.

    A TTL of zero disables caching. Entries are advisory: a miss always means
    "ask the authoritative source".
    """

    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.cached_at >= self._ttl:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: K, value: V) -> None:
        if self._ttl <= 0:
            return
        self._entries[key] = CacheEntry(value=value, cached_at=self._clock())

    def pop(self, key: K) -> bool:
        return self._entries.pop(key, None) is not None

    def pop_where(self, predicate: Callable[[K], bool]) -> int:
        doomed = [key for key in self._entries if predicate(key)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
