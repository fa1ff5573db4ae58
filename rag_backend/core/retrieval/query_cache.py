"""
Bounded query result cache.

Entries expire after a TTL. When inserting beyond capacity the entry that
was inserted first is evicted; reads do not refresh an entry's position,
so this is insertion-order (FIFO) eviction, not LRU.

Dependencies: threading, collections
System role: In-memory answer cache for the retrieval path
"""

import re
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

_WHITESPACE = re.compile(r"\s+")


def normalize_question(question: str) -> str:
    """Case-fold and collapse whitespace so trivially different phrasings share an entry."""
    return _WHITESPACE.sub(" ", question).strip().casefold()


def cache_key(scope_id: str | None, question: str, global_partition: str = "global") -> tuple[str, str]:
    return (scope_id or global_partition, normalize_question(question))


@dataclass(frozen=True)
class CacheStats:
    size: int
    capacity: int
    ttl_seconds: float
    hits: int
    misses: int


class QueryCache:
    """Thread-safe TTL cache with insertion-order eviction."""

    def __init__(
        self,
        capacity: int = 100,
        ttl_seconds: float = 86400,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[tuple[str, str], tuple[str, float]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: tuple[str, str]) -> str | None:
        """Return the cached value, or None if absent or expired (expired entries are dropped)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            value, stored_at = entry
            if self._clock() - stored_at >= self._ttl:
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return value

    def put(self, key: tuple[str, str], value: str) -> None:
        with self._lock:
            # Re-inserting moves the key to the newest position
            self._entries.pop(key, None)
            self._entries[key] = (value, self._clock())
            while len(self._entries) > self._capacity:
                self._entries.popitem(last=False)

    def clear(self) -> int:
        """Drop every entry. Returns the number removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            return removed

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                capacity=self._capacity,
                ttl_seconds=self._ttl,
                hits=self._hits,
                misses=self._misses,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
