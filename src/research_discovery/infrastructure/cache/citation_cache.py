"""
Citation Cache

In-memory cache of citation counts keyed by DOI.
Uses cachetools.TTLCache for LRU eviction and TTL expiration.

Entries expire ``ttl`` seconds after their timestamp (24 hours by default).
A timestamp passed to ``put`` is honoured, so an entry recorded from an older
lookup expires earlier than one recorded now.

The cache is constructed once per process by the container and injected into
the citation enricher.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL = 24 * 60 * 60


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    expirations: int = 0

    @property
    def total_requests(self) -> int:
        """Total cache requests."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0-1)."""
        total = self.total_requests
        return self.hits / total if total > 0 else 0.0


class CitationCache:
    """
    DOI -> citation count, with per-entry timestamps.

    Example:
        cache = CitationCache(ttl=86400)
        cache.put("10.1000/xyz", 42)
        cache.get("10.1000/xyz")  # 42
    """

    def __init__(
        self,
        max_size: int = 4096,
        ttl: float = DEFAULT_TTL,
        timer: Callable[[], float] = time.time,
    ):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries
            ttl: Time-to-live in seconds
            timer: Clock returning seconds since the epoch
        """
        self.ttl = ttl
        self._timer = timer
        self._cache: TTLCache[str, tuple[int, float]] = TTLCache(maxsize=max_size, ttl=ttl, timer=timer)
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    @staticmethod
    def _normalize_key(key: str) -> str:
        return key.lower().strip()

    def get(self, key: str) -> int | None:
        """
        Get a fresh citation count.

        Returns:
            Cached count, or None if absent or expired
        """
        nkey = self._normalize_key(key)
        entry = self._cache.get(nkey)
        if entry is None:
            self._stats.misses += 1
            return None

        count, timestamp = entry
        if self._timer() - timestamp >= self.ttl:
            del self._cache[nkey]
            self._stats.expirations += 1
            self._stats.misses += 1
            return None

        self._stats.hits += 1
        logger.debug(f"Citation cache hit: {nkey}")
        return count

    def put(self, key: str, value: int, timestamp: float | None = None) -> None:
        """
        Store a citation count.

        Args:
            key: DOI
            value: Citation count
            timestamp: When the count was observed (defaults to now)
        """
        observed = self._timer() if timestamp is None else timestamp
        self._cache[self._normalize_key(key)] = (value, observed)

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        count = len(self._cache)
        self._cache.clear()
        return count

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
