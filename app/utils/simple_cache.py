"""In-memory TTL cache used for public listings and admin statistics.

Per-entry TTL, lazy expiry on read and a background sweep thread that keeps
memory bounded for keys that are never read again. Thread-safe, since
FastAPI runs sync handlers in a thread pool.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 300
DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


@dataclass
class CacheItem:
    """Container for cached values with expiration metadata."""

    value: Any
    inserted_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at > self.ttl_seconds


class SimpleTTLCache:
    """Thread-safe, in-memory TTL cache with periodic sweep.

    Attributes:
        default_ttl: TTL applied when ``set`` is called without one.
        sweep_interval: Seconds between background sweeps.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        *,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if sweep_interval <= 0:
            raise ValueError("sweep_interval must be > 0")

        self._default_ttl = default_ttl
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._store: dict[str, CacheItem] = {}
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"SimpleTTLCache(default_ttl={self._default_ttl}, "
            f"sweep_interval={self._sweep_interval}, size={len(self._store)}, "
            f"hits={self._hits}, misses={self._misses}, evictions={self._evictions})"
        )

    def start(self) -> None:
        """Start the background sweep thread (no-op if already running)."""

        with self._lock:
            if self._sweeper is not None and self._sweeper.is_alive():
                return
            self._stop_event.clear()
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                name="ttl-cache-sweeper",
                daemon=True,
            )
            self._sweeper.start()

        logger.debug("cache.sweeper_started", extra={"interval_s": self._sweep_interval})

    def destroy(self) -> None:
        """Stop the sweep thread and drop all entries.

        Called once at shutdown; calling it again is harmless.
        """

        self._stop_event.set()
        sweeper = self._sweeper
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout=self._sweep_interval + 1)
        self._sweeper = None
        self.clear()

        logger.debug("cache.destroyed")

    def get(self, key: str) -> Any | None:
        """Retrieve a cached value if it exists and is not expired.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found/expired.
        """

        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                logger.debug(
                    "cache.miss",
                    extra={"cache_key": key, "reason": "not_found"},
                )
                return None

            if item.is_expired(self._clock()):
                self._evict_single(key)
                self._misses += 1
                logger.debug(
                    "cache.miss",
                    extra={"cache_key": key, "reason": "expired"},
                )
                return None

            self._hits += 1
            logger.debug("cache.hit", extra={"cache_key": key})
            return item.value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key.
            value: Value to store.
            ttl_seconds: Lifetime of the entry; defaults to the cache TTL.
        """

        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._store[key] = CacheItem(
                value=value,
                inserted_at=self._clock(),
                ttl_seconds=ttl,
            )

            logger.debug(
                "cache.set",
                extra={
                    "cache_key": key,
                    "size": len(self._store),
                    "ttl_s": ttl,
                },
            )

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def keys(self) -> list[str]:
        """Snapshot of the keys currently stored (expired ones included)."""

        with self._lock:
            return list(self._store)

    def invalidate_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``.

        Returns:
            Number of removed entries.
        """

        with self._lock:
            doomed = [key for key in self._store if key.startswith(prefix)]
            for key in doomed:
                del self._store[key]

        logger.info(
            "cache.invalidated",
            extra={"prefix": prefix, "removed": len(doomed)},
        )
        return len(doomed)

    def sweep(self) -> int:
        """Evict every expired entry.

        Returns:
            Number of evicted entries.
        """

        with self._lock:
            now = self._clock()
            expired_keys = [k for k, item in self._store.items() if item.is_expired(now)]
            for key in expired_keys:
                self._evict_single(key)

        if expired_keys:
            logger.debug("cache.swept", extra={"evicted": len(expired_keys)})
        return len(expired_keys)

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | float | bool]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "default_ttl_seconds": self._default_ttl,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "sweeper_running": self._sweeper is not None and self._sweeper.is_alive(),
            }

    def _evict_single(self, key: str) -> None:
        if key in self._store:
            self._store.pop(key, None)
            self._evictions += 1

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self._sweep_interval):
            try:
                self.sweep()
            except Exception:  # pragma: no cover - keep the sweeper alive
                logger.exception("cache.sweep_failed")


def cached_query(
    cache: SimpleTTLCache,
    key: str,
    producer: Callable[[], T],
    ttl_seconds: float | None = None,
) -> T:
    """Return the cached value for ``key`` or produce, store and return it.

    Concurrent misses on the same key each call ``producer``; the last one
    to finish owns the cache entry.
    """

    cached = cache.get(key)
    if cached is not None:
        return cached

    result = producer()
    cache.set(key, result, ttl_seconds)
    return result
