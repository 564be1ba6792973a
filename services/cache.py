# services/cache.py
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Hashable, NamedTuple, Optional

from cachetools import TLRUCache


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: Hashable, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class TTLCache:
    """
    In-memory key/value cache where every entry carries its own TTL.

    Backed by cachetools' TLRUCache: expired entries are dropped first, then
    the least recently used. cachetools is not thread-safe, so access goes
    through a lock; pass an instance in rather than importing a global.
    """

    def __init__(self, max_entries: int = 256, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_entries = max_entries
        self._cache: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_time_to_use, timer=clock)
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            self._cache.expire()
            entry = self._cache.get(key)
        return None if entry is None else entry.value

    def set(self, key: Hashable, value: Any, ttl: float) -> None:
        if ttl <= 0:
            return
        with self._lock:
            self._cache[key] = _Entry(value, ttl)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
