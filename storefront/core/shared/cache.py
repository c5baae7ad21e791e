"""
Cache Utilities

In-memory caching with TTL support, used for read-mostly storefront views.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A single cache entry with expiration."""

    value: Any
    expires_at: float | None = None  # Unix timestamp, None = no expiration
    created_at: float = field(default_factory=time.time)

    @property
    def is_expired(self) -> bool:
        """Check if entry has expired."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    expirations: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "expirations": self.expirations,
            "invalidations": self.invalidations,
            "hit_rate": self.hit_rate,
        }


class MemoryCache:
    """
    In-memory cache with TTL support.

    Example:
        ```python
        cache = MemoryCache(default_ttl=30)
        cache.set("banner", products)
        cache.get("banner")
        cache.clear()  # on pricing change
        ```
    """

    def __init__(self, default_ttl: float | None = None):
        """
        Initialize memory cache.

        Args:
            default_ttl: Default TTL in seconds (None = no expiration)
        """
        self.default_ttl = default_ttl
        self._cache: dict[str, CacheEntry] = {}
        self._stats = CacheStats()
        self._lock = asyncio.Lock()

    @property
    def stats(self) -> CacheStats:
        return self._stats

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value from the cache.

        Args:
            key: Cache key
            default: Default value if not found

        Returns:
            Cached value or default
        """
        entry = self._cache.get(key)

        if entry is None:
            self._stats.misses += 1
            return default

        if entry.is_expired:
            del self._cache[key]
            self._stats.expirations += 1
            self._stats.misses += 1
            return default

        self._stats.hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """
        Set a value in the cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds (uses default if not specified)
        """
        effective_ttl = ttl if ttl is not None else self.default_ttl
        expires_at = time.time() + effective_ttl if effective_ttl else None
        self._cache[key] = CacheEntry(value=value, expires_at=expires_at)

    def has(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        entry = self._cache.get(key)
        if entry is None:
            return False
        if entry.is_expired:
            del self._cache[key]
            return False
        return True

    def clear(self) -> int:
        """
        Clear all entries from cache.

        Returns:
            Number of entries cleared
        """
        count = len(self._cache)
        self._cache.clear()
        self._stats.invalidations += 1
        return count

    async def async_get(self, key: str, default: Any = None) -> Any:
        async with self._lock:
            return self.get(key, default)

    async def async_set(self, key: str, value: Any, ttl: float | None = None) -> None:
        async with self._lock:
            self.set(key, value, ttl)

    async def async_clear(self) -> int:
        async with self._lock:
            return self.clear()
