"""Tests for the canonical Article entities and SortOption."""

from __future__ import annotations

import dataclasses

import pytest

from research_discovery.domain.entities import (
    NO_DOI,
    NO_TITLE,
    Article,
    EnhancedArticle,
    SortOption,
)
from research_discovery.shared.exceptions import InvalidParameterError

# ============================================================
# Article
# ============================================================


class TestArticle:
    def test_defaults_are_placeholders(self):
        article = Article()
        assert article.title == NO_TITLE
        assert article.doi == NO_DOI
        assert article.citation_count == 0
        assert article.tags == ()

    def test_has_doi(self):
        assert Article(doi="10.1000/x").has_doi
        assert not Article().has_doi
        assert not Article(doi="   ").has_doi

    def test_document_text(self):
        article = Article(title="Qubits", abstract="Error correction")
        assert article.document_text == "Qubits Error correction"

    def test_pdf_url_prefers_download_url(self):
        article = Article(download_url="https://core.ac.uk/x.pdf", arxiv_id="2401.00001")
        assert article.pdf_url == "https://core.ac.uk/x.pdf"

    def test_pdf_url_from_arxiv_id(self):
        assert Article(arxiv_id="2401.00001").pdf_url == "https://arxiv.org/pdf/2401.00001"
        assert Article().pdf_url is None

    def test_frozen(self):
        article = Article()
        with pytest.raises(dataclasses.FrozenInstanceError):
            article.title = "changed"  # type: ignore[misc]

    def test_to_dict(self):
        data = Article(title="T", tags=("a", "b")).to_dict()
        assert data["title"] == "T"
        assert data["tags"] == ["a", "b"]
        assert "relevance_score" not in data


# ============================================================
# EnhancedArticle
# ============================================================


class TestEnhancedArticle:
    def test_from_article_copies_fields(self):
        base = Article(title="T", doi="10.1/x", citation_count=5)
        enhanced = EnhancedArticle.from_article(base, relevance_score=0.5)
        assert enhanced.title == "T"
        assert enhanced.citation_count == 5
        assert enhanced.relevance_score == 0.5
        assert enhanced.ranking_score == 0.0

    def test_from_enhanced_keeps_existing_scores(self):
        first = EnhancedArticle.from_article(Article(), relevance_score=0.3, ranking_score=0.9)
        second = EnhancedArticle.from_article(first, relevance_score=0.6)
        assert second.relevance_score == 0.6
        assert second.ranking_score == 0.9

    def test_to_dict_drops_embedding_and_rounds(self):
        enhanced = EnhancedArticle.from_article(
            Article(),
            embedding=(0.1, 0.2),
            relevance_score=0.123456,
            ranking_score=0.654321,
        )
        data = enhanced.to_dict()
        assert "embedding" not in data
        assert data["relevance_score"] == 0.1235
        assert data["ranking_score"] == 0.6543


# ============================================================
# SortOption
# ============================================================


class TestSortOption:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("relevance", SortOption.RELEVANCE),
            ("citationCount", SortOption.CITATION_COUNT),
            ("citation_count", SortOption.CITATION_COUNT),
            ("date", SortOption.DATE),
            ("DATE", SortOption.DATE),
            (SortOption.DATE, SortOption.DATE),
        ],
    )
    def test_parse(self, value, expected):
        assert SortOption.parse(value) is expected

    def test_parse_unknown(self):
        with pytest.raises(InvalidParameterError, match="sort"):
            SortOption.parse("popularity")
