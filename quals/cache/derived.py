"""
Derived-value cache — time-boxed, explicitly invalidated.

  get_or_compute(key, fn)  hit → cached value
                           miss/expired → fn() → store with fresh TTL
  invalidate(key)          drop the entry + bump the key's "last update"

Races: every key carries a generation number. A computation remembers the
generation it started under and only stores its result if no invalidation
happened meanwhile, so an invalidation can never be undone by a slow
recompute. Two concurrent recomputes of the same key are allowed.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Optional

from quals.config import SIGNUP_CACHE_TTL_HOURS

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=SIGNUP_CACHE_TTL_HOURS)


@dataclass
class CacheEntry:
    value: Any
    expires_at: float       # epoch seconds
    generation: int


class DerivedValueCache:
    def __init__(self, ttl: timedelta = DEFAULT_TTL,
                 clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self.clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._generations: dict[str, int] = {}
        self._last_update: dict[str, int] = {}      # key → epoch ms
        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    # ── reads ──

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("[cache] miss %s", key)
                return None
            if entry.expires_at <= self.clock():
                del self._entries[key]
                self._misses += 1
                logger.debug("[cache] expired %s", key)
                return None
            self._hits += 1
            logger.debug("[cache] hit %s", key)
            return entry.value

    def get_or_compute(self, key: str, compute: Callable[[], Any],
                       force_refresh: bool = False) -> Any:
        if not force_refresh:
            cached = self.get(key)
            if cached is not None:
                return cached

        generation = self.generation(key)
        value = compute()
        stored = self._store(key, value, generation)
        if not stored:
            logger.info("[cache] %s invalidated during recompute, result not stored", key)
        return value

    def generation(self, key: str) -> int:
        with self._lock:
            return self._generations.get(key, 0)

    def last_update(self, key: str) -> int:
        """Epoch ms of the last invalidation of this key; 0 if never."""
        with self._lock:
            return self._last_update.get(key, 0)

    # ── writes ──

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(
                value=value,
                expires_at=self.clock() + self.ttl.total_seconds(),
                generation=self._generations.get(key, 0),
            )
        logger.debug("[cache] set %s (TTL %s)", key, self.ttl)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._invalidate_locked(key)
        logger.info("[cache] invalidated %s", key)

    def invalidate_prefix(self, prefix: str) -> list[str]:
        """Invalidate every known key starting with prefix."""
        with self._lock:
            keys = [k for k in set(self._entries) | set(self._generations) if k.startswith(prefix)]
            for key in keys:
                self._invalidate_locked(key)
        if keys:
            logger.info("[cache] invalidated %d keys under %s", len(keys), prefix)
        return keys

    def clear(self) -> None:
        with self._lock:
            for key in list(set(self._entries) | set(self._generations)):
                self._invalidate_locked(key)
        logger.info("[cache] cleared")

    def stats(self) -> dict:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "invalidations": self._invalidations,
            }

    # ── internals ──

    def _store(self, key: str, value: Any, generation: int) -> bool:
        with self._lock:
            if self._generations.get(key, 0) != generation:
                return False
            self._entries[key] = CacheEntry(
                value=value,
                expires_at=self.clock() + self.ttl.total_seconds(),
                generation=generation,
            )
            return True

    def _invalidate_locked(self, key: str) -> None:
        self._entries.pop(key, None)
        self._generations[key] = self._generations.get(key, 0) + 1
        self._invalidations += 1

        # strictly increasing even if the clock stalls or steps back
        now_ms = int(self.clock() * 1000)
        previous = self._last_update.get(key, 0)
        self._last_update[key] = now_ms if now_ms > previous else previous + 1
