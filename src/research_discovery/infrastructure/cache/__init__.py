"""
Cache Infrastructure

Provides caching layers for expensive API calls.
"""

from __future__ import annotations

from research_discovery.infrastructure.cache.citation_cache import (
    CacheStats,
    CitationCache,
)

__all__ = [
    "CacheStats",
    "CitationCache",
]
