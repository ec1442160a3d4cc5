"""In-memory TTL cache with per-entry expiry and hit/miss metrics.

Backed by `cachetools.TLRUCache` so every entry carries its own time-to-live.
Expired entries are evicted lazily on the next read or write, and optionally
by a background sweep (`start_auto_purge`).
"""
import threading
import time
from collections import Counter
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from cachetools import TLRUCache

from polisgeo.core.config import (
    CACHE_DEFAULT_TTL_MS,
    CACHE_MAX_ENTRIES,
    CACHE_PURGE_INTERVAL_SECONDS,
)
from polisgeo.utils.logging import log_structured


class CacheEntry(NamedTuple):
    value: Any
    ttl_ms: int


def _time_to_use(key: str, entry: CacheEntry, now: float) -> float:
    return now + entry.ttl_ms / 1000.0


class TTLCache:
    """Thread-safe key/value store with per-entry TTLs."""

    def __init__(
        self,
        maxsize: int = CACHE_MAX_ENTRIES,
        default_ttl_ms: int = CACHE_DEFAULT_TTL_MS,
        timer: Callable[[], float] = time.monotonic
    ):
        """
        Initialize cache.

        Args:
            maxsize: Maximum number of live entries; when full, the least
                recently used entry is dropped first
            default_ttl_ms: TTL used when `set` is called without one
            timer: Clock in seconds (injectable for tests)
        """
        self.default_ttl_ms = default_ttl_ms
        self._store = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._lock = threading.RLock()
        self._purge_thread: Optional[threading.Thread] = None
        self._purge_stop = threading.Event()
        self.reset_metrics()

    def _expire_locked(self) -> int:
        expired = self._store.expire() or []
        for key, _entry in expired:
            self._forget_key_locked(key)
        self._expirations += len(expired)
        return len(expired)

    def _forget_key_locked(self, key: str):
        self._hits.pop(key, None)
        self._misses.pop(key, None)

    def _prune_counters_locked(self):
        # Per-key counters are bounded by maxsize; totals are kept separately
        if max(len(self._hits), len(self._misses)) <= self._store.maxsize:
            return
        for counter in (self._hits, self._misses):
            for key in [key for key in counter if key not in self._store]:
                del counter[key]

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from the cache.

        Returns:
            Cached value, or None if the key is absent or expired
        """
        with self._lock:
            self._expire_locked()
            entry = self._store.get(key)
            if entry is None:
                self._misses[key] += 1
                self._total_misses += 1
                self._prune_counters_locked()
                return None
            self._hits[key] += 1
            self._total_hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_ms: Optional[int] = None):
        """
        Store a value with an expiration time. None values are never stored.

        Args:
            key: Cache key
            value: Value to cache
            ttl_ms: Time to live in milliseconds (defaults to default_ttl_ms)
        """
        if value is None:
            return

        ttl_ms = self.default_ttl_ms if ttl_ms is None else ttl_ms
        with self._lock:
            self._expire_locked()
            self._store[key] = CacheEntry(value=value, ttl_ms=ttl_ms)
            self._sets += 1

    def delete(self, key: str) -> bool:
        """Delete a key. Returns whether it was present."""
        with self._lock:
            self._forget_key_locked(key)
            if self._store.pop(key, None) is None:
                return False
            self._deletes += 1
            return True

    def clear(self):
        """Remove every entry. Totals are kept, per-key counters are dropped."""
        with self._lock:
            size = len(self._store)
            self._store.clear()
            self._hits.clear()
            self._misses.clear()
        log_structured("debug", "Cache cleared", items=size)

    def purge_expired(self) -> int:
        """Delete all expired entries. Returns how many were removed."""
        with self._lock:
            return self._expire_locked()

    def keys(self) -> List[str]:
        """Keys of all live entries."""
        with self._lock:
            self._expire_locked()
            return list(self._store.keys())

    def __len__(self) -> int:
        with self._lock:
            self._expire_locked()
            return len(self._store)

    def reset_metrics(self):
        """Reset hit/miss/set/delete/expiration counters."""
        self._hits: Counter = Counter()
        self._misses: Counter = Counter()
        self._total_hits = 0
        self._total_misses = 0
        self._sets = 0
        self._deletes = 0
        self._expirations = 0

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get cache metrics.

        Returns:
            Dict with per-key hits/misses, totals, hit rate, size and live keys
        """
        with self._lock:
            self._expire_locked()
            total_hits = self._total_hits
            total_misses = self._total_misses
            total = total_hits + total_misses
            hit_rate = (total_hits / total) * 100 if total > 0 else 0.0
            return {
                "hits": dict(self._hits),
                "misses": dict(self._misses),
                "total_hits": total_hits,
                "total_misses": total_misses,
                "sets": self._sets,
                "deletes": self._deletes,
                "expirations": self._expirations,
                "total": total,
                "hit_rate": f"{hit_rate:.2f}%",
                "size": len(self._store),
                "keys": list(self._store.keys()),
                "auto_purge_active": self.auto_purge_active,
            }

    @property
    def auto_purge_active(self) -> bool:
        return self._purge_thread is not None and self._purge_thread.is_alive()

    def start_auto_purge(self, interval_seconds: float = CACHE_PURGE_INTERVAL_SECONDS) -> bool:
        """
        Start a daemon thread that purges expired entries periodically.

        Returns:
            True if newly started, False if already running
        """
        if self.auto_purge_active:
            return False

        self._purge_stop.clear()
        self._purge_thread = threading.Thread(
            target=self._purge_loop,
            args=(interval_seconds,),
            name="polisgeo-cache-purge",
            daemon=True
        )
        self._purge_thread.start()
        return True

    def stop_auto_purge(self) -> bool:
        """Stop the purge thread. Returns False if it was not running."""
        if not self.auto_purge_active:
            return False

        self._purge_stop.set()
        self._purge_thread.join()
        self._purge_thread = None
        return True

    def _purge_loop(self, interval_seconds: float):
        while not self._purge_stop.wait(interval_seconds):
            purged = self.purge_expired()
            if purged > 0:
                log_structured("info", "Auto-purged expired cache items", purged=purged)
