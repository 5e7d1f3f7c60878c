"""
In-process TTL cache passed to collaborators that want it.
Contract: get_or_set(key, ttl_seconds, producer) -> value.
"""

from __future__ import annotations
import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Tuple

logger = logging.getLogger("signal_desk.cache")


class TTLCache:
    """
    Thread-safe TTL cache. None results and producer exceptions are not cached.
    The producer runs outside the lock, so two threads may both compute a cold key.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int = 1024):
        self._clock = clock
        self._max_entries = max_entries
        self._store: Dict[Hashable, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expires = entry
            if self._clock() >= expires:
                del self._store[key]
                return None
            return value

    def set(self, key: Hashable, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            if len(self._store) >= self._max_entries and key not in self._store:
                self._evict_expired()
                if len(self._store) >= self._max_entries:
                    # drop the entry closest to expiry
                    oldest = min(self._store, key=lambda k: self._store[k][1])
                    del self._store[oldest]
            self._store[key] = (value, self._clock() + ttl_seconds)

    def get_or_set(self, key: Hashable, ttl_seconds: float, producer: Callable[[], Any]) -> Any:
        hit = self.get(key)
        if hit is not None:
            logger.debug("cache hit %s", key)
            return hit
        value = producer()
        if value is not None:
            self.set(key, value, ttl_seconds)
        return value

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _evict_expired(self) -> None:
        now = self._clock()
        for k in [k for k, (_, exp) in self._store.items() if now >= exp]:
            del self._store[k]


class NullCache:
    """Always calls the producer."""

    def get_or_set(self, key: Hashable, ttl_seconds: float, producer: Callable[[], Any]) -> Any:
        return producer()
