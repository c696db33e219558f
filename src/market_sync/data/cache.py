"""Time-boxed cache for idempotent read results."""

import logging
import os
import time
from collections.abc import Callable
from typing import Any

import diskcache

from market_sync.models import CacheEntry

logger = logging.getLogger(__name__)


class TTLCache:
    """
    Key/value cache with lazy, read-time expiry.

    Entries are never evicted on expiry. get() treats an entry as absent once
    now - stored_at >= ttl, while get_stale() still returns it so read paths
    can fall back to the last good value.
    """

    def __init__(
        self,
        cache_dir: str | None = None,
        default_ttl: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if cache_dir is None:
            cache_dir = os.environ.get("CACHE_DIR", ".cache/market_sync")
        self.cache: diskcache.Cache = diskcache.Cache(cache_dir)
        if default_ttl is None:
            default_ttl = float(os.environ.get("CACHE_TTL", "300"))  # 5 minutes
        self._default_ttl = default_ttl
        self._clock = clock

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def set(self, key: str, payload: Any, ttl: float | None = None) -> None:
        """
        Store payload under key. Last write wins.

        Args:
            key: Cache key
            payload: Value to store (must be picklable)
            ttl: Freshness window in seconds (default: the cache default)
        """
        record = {
            "payload": payload,
            "stored_at": self._clock(),
            "ttl": ttl if ttl is not None else self._default_ttl,
        }
        self.cache.set(key, record)

    def entry(self, key: str) -> CacheEntry | None:
        """Get the raw entry regardless of freshness."""
        record = self.cache.get(key)
        if not record:
            return None
        return CacheEntry(
            key=key,
            payload=record["payload"],
            stored_at=record["stored_at"],
            ttl=record["ttl"],
        )

    def get(self, key: str) -> Any | None:
        """
        Get a fresh payload.

        Returns:
            The payload while now - stored_at < ttl, otherwise None
        """
        entry = self.entry(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            logger.debug(f"cache({key}): expired")
            return None
        return entry.payload

    def get_stale(self, key: str) -> Any | None:
        """Get the last stored payload even if it is past its TTL."""
        entry = self.entry(key)
        return entry.payload if entry is not None else None

    def exists(self, key: str) -> bool:
        """Check if key has ever been stored."""
        return key in self.cache

    def clear(self) -> None:
        """Clear all cached data."""
        self.cache.clear()

    def close(self) -> None:
        self.cache.close()
