"""
Research Discovery - Multi-Source Scholarly Article Search

Aggregates article metadata from Crossref, CORE, arXiv and Papers with Code,
merges duplicates and ranks the corpus for a free-text query.

Usage:
    from research_discovery import create_container

    container = create_container()
    session = container.session()
    articles = await session.search("quantum computing")

    for article in articles:
        print(f"{article.ranking_score:.2f} {article.title}")

Features:
    - Concurrent fan-out to every catalog, tolerant of failing sources
    - DOI/title deduplication, preferring the best-cited record
    - BM25, embedding or hybrid relevance scoring
    - Composite ranking (relevance, citations, recency, title match)
    - Date/venue/citation filters and re-sorting without re-fetching
"""

from .application.search import (
    ArticleFilters,
    RankingConfig,
    ScoringMode,
    SearchPipeline,
    SearchStats,
)
from .application.session import ResearchSession
from .container import ApplicationContainer, create_container, load_config_from_env
from .domain.entities import Article, EnhancedArticle, SortOption

__version__ = "0.1.0"

__all__ = [
    # Entities
    "Article",
    "EnhancedArticle",
    "SortOption",
    # Search
    "ArticleFilters",
    "RankingConfig",
    "ScoringMode",
    "SearchPipeline",
    "SearchStats",
    "ResearchSession",
    # Wiring
    "ApplicationContainer",
    "create_container",
    "load_config_from_env",
]
