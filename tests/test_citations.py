"""Tests for citation count enrichment."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from research_discovery.application.search.citations import CitationEnricher
from research_discovery.domain.entities import NO_DOI
from research_discovery.infrastructure.cache import CitationCache

from .conftest import make_article


@pytest.fixture
def cache():
    return CitationCache()


class TestCitationEnricher:
    async def test_raises_stale_counts(self, cache):
        lookup = AsyncMock(return_value=50)
        enricher = CitationEnricher(lookup, cache)
        (article,) = await enricher.enrich([make_article(doi="10.1/a", citation_count=10)])
        assert article.citation_count == 50
        lookup.assert_awaited_once_with("10.1/a")

    async def test_never_lowers_counts(self, cache):
        enricher = CitationEnricher(AsyncMock(return_value=5), cache)
        (article,) = await enricher.enrich([make_article(doi="10.1/a", citation_count=10)])
        assert article.citation_count == 10

    async def test_skips_placeholder_and_arxiv(self, cache):
        lookup = AsyncMock(return_value=99)
        enricher = CitationEnricher(lookup, cache)
        articles = [make_article(doi=NO_DOI), make_article(doi="arxiv:2401.00001v1")]
        result = await enricher.enrich(articles)
        assert result == articles
        lookup.assert_not_awaited()

    async def test_uses_cache(self, cache):
        cache.put("10.1/a", 77)
        lookup = AsyncMock(return_value=1)
        (article,) = await CitationEnricher(lookup, cache).enrich([make_article(doi="10.1/a", citation_count=0)])
        assert article.citation_count == 77
        lookup.assert_not_awaited()

    async def test_caches_lookup(self, cache):
        enricher = CitationEnricher(AsyncMock(return_value=12), cache)
        assert await enricher.citation_count("10.1/a") == 12
        assert cache.get("10.1/a") == 12

    async def test_lookup_failure_leaves_count(self, cache):
        enricher = CitationEnricher(AsyncMock(side_effect=RuntimeError("down")), cache)
        (article,) = await enricher.enrich([make_article(doi="10.1/a", citation_count=3)])
        assert article.citation_count == 3
        assert len(cache) == 0

    async def test_none_result_not_cached(self, cache):
        enricher = CitationEnricher(AsyncMock(return_value=None), cache)
        assert await enricher.citation_count("10.1/a") is None
        assert len(cache) == 0

    async def test_preserves_order(self, cache):
        counts = {"10.1/a": 5, "10.1/b": 500}
        enricher = CitationEnricher(AsyncMock(side_effect=lambda doi: counts[doi]), cache, concurrency=1)
        result = await enricher.enrich(
            [make_article(doi="10.1/a", citation_count=0), make_article(doi="10.1/b", citation_count=0)]
        )
        assert [a.citation_count for a in result] == [5, 500]
