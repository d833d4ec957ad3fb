"""
Citation enrichment - refresh citation counts before ranking.

For each article with a real DOI the enricher asks the cache first and falls
back to an async lookup (Crossref ``is-referenced-by-count`` by default). The
larger of the stored and looked-up counts is kept. Lookups run with bounded
concurrency and never raise: a failure leaves the count unchanged.

Placeholder DOIs and arXiv identifiers are skipped.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from research_discovery.shared.async_utils import bounded_gather

from .deduplicator import normalize_doi

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from research_discovery.domain.entities import Article
    from research_discovery.infrastructure.cache import CitationCache

logger = logging.getLogger(__name__)

type CitationLookup = Callable[[str], Awaitable[int | None]]


class CitationEnricher:
    """
    Fill in fresher citation counts from a lookup, through a TTL cache.

    Example:
        enricher = CitationEnricher(crossref.get_citation_count, cache)
        articles = await enricher.enrich(articles)
    """

    def __init__(self, lookup: CitationLookup, cache: CitationCache, concurrency: int = 4):
        self.lookup = lookup
        self.cache = cache
        self.concurrency = concurrency

    async def citation_count(self, doi: str) -> int | None:
        """Cached count if fresh, else look it up and cache the answer."""
        cached = self.cache.get(doi)
        if cached is not None:
            return cached

        try:
            count = await self.lookup(doi)
        except Exception as e:
            logger.warning(f"Citation lookup failed for {doi}: {e}")
            return None

        if count is None:
            return None
        self.cache.put(doi, count)
        return count

    async def enrich[A: Article](self, articles: Sequence[A]) -> list[A]:
        """Return copies whose citation counts are at least the looked-up ones."""
        targets = [i for i, a in enumerate(articles) if self._is_enrichable(a)]
        if not targets:
            return list(articles)

        results = await bounded_gather(
            (self.citation_count(articles[i].doi) for i in targets),
            limit=self.concurrency,
        )

        enriched = list(articles)
        updated = 0
        for index, result in zip(targets, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(f"Citation lookup failed for {articles[index].doi}: {result}")
                continue
            if result is None or result <= enriched[index].citation_count:
                continue
            enriched[index] = replace(enriched[index], citation_count=result)
            updated += 1

        logger.info(f"Citation enrichment: {len(targets)} looked up, {updated} updated")
        return enriched

    @staticmethod
    def _is_enrichable(article: Article) -> bool:
        doi = normalize_doi(article.doi)
        return doi is not None and not doi.startswith("arxiv:")
