"""
SearchPipeline - fan-out/fan-in search over every configured catalog.

Flow:
    sources (concurrent) → normalize → deduplicate → [enrich citations]
    → relevance scoring → ranking combiner

All adapters for one search run concurrently and the pipeline continues once
every one of them has settled. A failing or slow adapter is logged and counts
as an empty result; it never aborts the others. Everything after the fan-in
runs synchronously over the in-memory corpus, except the embedding calls of
the semantic scorers, which have their own bounded concurrency and timeouts.

For "load more" the new page is merged into the existing corpus (skipping
works already held) and the whole merged corpus is re-scored and re-ranked,
so scores always refer to the latest execution.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from research_discovery.shared.exceptions import InvalidQueryError

from .deduplicator import Deduplicator
from .normalizer import normalize_records
from .ranking import RankingCombiner
from .relevance import reconfigure_scorer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from research_discovery.domain.entities import Article, EnhancedArticle, RawRecord

    from .citations import CitationEnricher
    from .ranking import RankingConfig
    from .relevance import RelevanceScorer

logger = logging.getLogger(__name__)


class SourceAdapter(Protocol):
    """One external catalog. ``fetch`` must not raise on malformed payloads."""

    name: str

    async def fetch(self, query: str, page: int) -> Sequence[RawRecord | Article]: ...


@dataclass
class SearchStats:
    """Statistics of one pipeline execution."""

    query: str = ""
    page: int = 1
    load_more: bool = False
    by_source: dict[str, int] = field(default_factory=dict)
    failed_sources: list[str] = field(default_factory=list)
    total_fetched: int = 0
    duplicates_removed: int = 0
    already_in_corpus: int = 0
    new_articles: int = 0
    corpus_size: int = 0
    scoring_mode: str = ""
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "query": self.query,
            "page": self.page,
            "load_more": self.load_more,
            "by_source": self.by_source,
            "failed_sources": self.failed_sources,
            "total_fetched": self.total_fetched,
            "duplicates_removed": self.duplicates_removed,
            "already_in_corpus": self.already_in_corpus,
            "new_articles": self.new_articles,
            "corpus_size": self.corpus_size,
            "scoring_mode": self.scoring_mode,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }


class SearchPipeline:
    """
    Aggregate, deduplicate, score and rank articles from several catalogs.

    Example:
        >>> pipeline = SearchPipeline(sources, LexicalScorer())
        >>> corpus, stats = await pipeline.run("quantum computing")
        >>> more, stats = await pipeline.run("quantum computing", page=2, existing=corpus)
    """

    def __init__(
        self,
        sources: Sequence[SourceAdapter],
        scorer: RelevanceScorer,
        combiner: RankingCombiner | None = None,
        enricher: CitationEnricher | None = None,
        source_timeout: float = 30.0,
    ):
        self.sources = list(sources)
        self.scorer = scorer
        self.combiner = combiner or RankingCombiner()
        self.enricher = enricher
        self.source_timeout = source_timeout

    def with_ranking(self, config: RankingConfig) -> SearchPipeline:
        """Copy sharing sources and enricher, scoring and ranking with ``config``."""
        scorer = reconfigure_scorer(
            self.scorer,
            k1=config.bm25_k1,
            b=config.bm25_b,
            semantic_weight=config.semantic_weight,
        )
        return SearchPipeline(
            self.sources,
            scorer,
            combiner=RankingCombiner(config),
            enricher=self.enricher,
            source_timeout=self.source_timeout,
        )

    async def fetch_all(self, query: str, page: int, stats: SearchStats | None = None) -> list[Article]:
        """Fan out to every source, fan in and normalize."""
        stats = stats if stats is not None else SearchStats(query=query, page=page)
        results = await asyncio.gather(
            *(asyncio.wait_for(source.fetch(query, page), timeout=self.source_timeout) for source in self.sources),
            return_exceptions=True,
        )

        records: list[RawRecord | Article] = []
        for source, result in zip(self.sources, results, strict=True):
            name = getattr(source, "name", type(source).__name__)
            if isinstance(result, BaseException):
                if isinstance(result, TimeoutError):
                    logger.warning(f"Source {name} timed out after {self.source_timeout:.0f}s")
                else:
                    logger.warning(f"Source {name} failed: {result!r}")
                stats.failed_sources.append(name)
                stats.by_source[name] = 0
                continue
            fetched = list(result or [])
            stats.by_source[name] = len(fetched)
            records.extend(fetched)

        articles = normalize_records(records)
        stats.total_fetched = len(articles)
        logger.info(f"Fetched {len(articles)} records from {len(self.sources)} sources: {stats.by_source}")
        return articles

    async def run(
        self,
        query: str,
        page: int = 1,
        existing: Sequence[EnhancedArticle] = (),
    ) -> tuple[list[EnhancedArticle], SearchStats]:
        """
        Execute one search.

        Args:
            query: Free-text query
            page: Page to fetch from every source (1-based)
            existing: Corpus to extend (load more); empty for a fresh search

        Returns:
            (ranked corpus, statistics)

        Raises:
            InvalidQueryError: If the query is blank
        """
        if not query or not query.strip():
            raise InvalidQueryError(query)
        query = query.strip()

        start = time.monotonic()
        stats = SearchStats(query=query, page=page, load_more=bool(existing), scoring_mode=self.scorer.mode.value)

        fetched = await self.fetch_all(query, page, stats)

        dedup = Deduplicator()
        new_articles: list[Article] = dedup.deduplicate(fetched)
        stats.duplicates_removed = dedup.last_stats.duplicates_removed

        if existing:
            merged = dedup.merge_into(list(existing), new_articles)
            stats.already_in_corpus = dedup.last_stats.already_in_corpus
            fresh: list[Article] = merged[len(existing) :]
        else:
            fresh = new_articles

        if self.enricher is not None and fresh:
            fresh = await self.enricher.enrich(fresh)
        stats.new_articles = len(fresh)

        corpus: list[Article] = [*existing, *fresh]
        scored = await self.scorer.score(query, corpus)
        ranked = self.combiner.rank(query, scored)

        stats.corpus_size = len(ranked)
        stats.elapsed_seconds = time.monotonic() - start
        logger.info(
            f"Search {query!r} page {page}: {stats.new_articles} new, "
            f"{stats.corpus_size} in corpus ({stats.elapsed_seconds:.2f}s)"
        )
        return ranked, stats
