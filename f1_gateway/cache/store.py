"""
In-memory TTL cache store.
"""
import threading
import logging
import time
from typing import Any, Callable, Dict, Optional

from .core import CacheEntry

logger = logging.getLogger("cache.store")


class CacheStore:
    """
    Process-local key/value store with per-entry absolute expiry.

    - Expired entries are evicted lazily on lookup and by sweep_expired()
    - No size-based eviction; the key space is bounded by distinct endpoints
    - Safe to share between coroutines and threads
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Args:
            clock: Wall-clock source in seconds since epoch (injectable for tests)
        """
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._clock = clock

        # Stats tracking
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "expired": 0,
        }

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Return the live entry for key, or None on a miss.

        An expired entry counts as a miss and is dropped.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None
            if entry.is_expired(now):
                del self._entries[key]
                self._stats["expired"] += 1
                self._stats["misses"] += 1
                logger.debug(f"Cache entry expired: {key}")
                return None
            self._stats["hits"] += 1
            return entry

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry, expired or not, without touching stats."""
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any, ttl_seconds: int) -> CacheEntry:
        """Store value under key, replacing any previous entry."""
        entry = CacheEntry(
            key=key,
            value=value,
            expires_at=self._clock() + ttl_seconds,
        )
        with self._lock:
            self._entries[key] = entry
            self._stats["sets"] += 1
        return entry

    def delete(self, key: str) -> bool:
        """
        Remove a single entry.

        Returns:
            True if entry was found and removed
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared {count} cache entries")
        return count

    def sweep_expired(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries evicted
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
            self._stats["expired"] += len(expired)
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def keys(self):
        with self._lock:
            return list(self._entries.keys())

    def get_stats(self) -> Dict[str, Any]:
        """Snapshot of cache statistics."""
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0

            return {
                "keys": len(self._entries),
                "hits": self._stats["hits"],
                "misses": self._stats["misses"],
                "sets": self._stats["sets"],
                "expired": self._stats["expired"],
                "hit_rate_percent": round(hit_rate, 1),
            }
