from __future__ import annotations

import threading
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    created_at: float


def pair_key(a: str, b: str) -> tuple[str, str]:
    """Order-independent key for a pair of user ids."""
    return (a, b) if a <= b else (b, a)


class TTLCache(Generic[V]):
    """In-memory cache whose entries are treated as absent once ``ttl`` elapses.

    Expired entries are dropped lazily by ``get`` or in bulk by ``sweep``.
    A single lock guards the dict; keys are independent so no operation
    holds it for longer than a lookup or assignment, except ``sweep`` and
    ``clear``.
    """

    def __init__(
        self,
        ttl: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[V]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _expired(self, entry: CacheEntry[V], now: float) -> bool:
        return now - entry.created_at >= self.ttl

    def get(self, key: Hashable) -> V | None:
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def get_entry(self, key: Hashable) -> CacheEntry[V] | None:
        """Like ``get`` but returns the entry with its write time."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and not self._expired(entry, now):
                self._hits += 1
                return entry
            if entry is not None:
                del self._entries[key]
            self._misses += 1
            return None

    def set(self, key: Hashable, value: V) -> None:
        entry = CacheEntry(value=value, created_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def sweep(self) -> int:
        """Delete every expired entry. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if self._expired(e, now)]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict:
        with self._lock:
            hits, misses, size = self._hits, self._misses, len(self._entries)
        total = hits + misses
        return {
            "size": size,
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / total * 100, 1) if total > 0 else 0.0,
        }
