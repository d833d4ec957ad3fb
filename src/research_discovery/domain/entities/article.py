"""
Article - Canonical Article Model for Multi-Source Search

Every source record is normalized into an ``Article``: a structurally
complete, immutable record in which missing data is represented by
human-readable placeholder strings rather than ``None``.

``EnhancedArticle`` adds the query-dependent scores. Those scores only mean
something relative to the search that produced them; each new search
recomputes them for the whole corpus.

Example:
    >>> article = Article(title="Quantum Error Correction", doi="10.1000/qec")
    >>> article.has_doi
    True
    >>> Article().has_doi
    False
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

from research_discovery.shared.exceptions import InvalidParameterError

# =============================================================================
# Placeholders for missing data
# =============================================================================

NO_TITLE = "No title available"
NO_AUTHORS = "No authors available"
NO_DATE = "No date available"
NO_JOURNAL = "No journal available"
NO_ABSTRACT = "No abstract available"
NO_DOI = "No DOI available"

PLACEHOLDERS: frozenset[str] = frozenset({NO_TITLE, NO_AUTHORS, NO_DATE, NO_JOURNAL, NO_ABSTRACT, NO_DOI})


class SortOption(Enum):
    """Sort keys for the presentation view."""

    RELEVANCE = "relevance"
    CITATION_COUNT = "citationCount"
    DATE = "date"

    @classmethod
    def parse(cls, value: SortOption | str) -> SortOption:
        """Accept an enum member, its value, or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for option in cls:
            if text == option.value or text.upper() == option.name:
                return option
        raise InvalidParameterError(
            "sort",
            value,
            " | ".join(option.value for option in cls),
        )


@dataclass(frozen=True)
class Article:
    """
    Canonical article record.

    Invariants (established by the normalizer):
    - title and abstract are never empty (placeholders substitute)
    - citation_count and reference_count are non-negative integers
    - doi is either a real identifier or ``NO_DOI``
    """

    title: str = NO_TITLE
    authors: str = NO_AUTHORS
    date: str = NO_DATE
    journal: str = NO_JOURNAL
    tags: tuple[str, ...] = ()
    abstract: str = NO_ABSTRACT
    doi: str = NO_DOI
    citation_count: int = 0
    reference_count: int = 0

    # Provenance extras, never used for ranking
    download_url: str | None = None
    repository_url: str | None = None
    arxiv_id: str | None = None
    source: str = "unknown"

    @property
    def has_doi(self) -> bool:
        """True when ``doi`` is a real identifier, not the placeholder."""
        return bool(self.doi.strip()) and self.doi != NO_DOI

    @property
    def document_text(self) -> str:
        """Text used for relevance scoring."""
        return f"{self.title} {self.abstract}"

    @property
    def pdf_url(self) -> str | None:
        """Best download link: explicit URL first, else the arXiv PDF."""
        if self.download_url:
            return self.download_url
        if self.arxiv_id:
            return f"https://arxiv.org/pdf/{self.arxiv_id}"
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        result["tags"] = list(self.tags)
        return result


@dataclass(frozen=True)
class EnhancedArticle(Article):
    """Article plus the scores of one search execution."""

    embedding: tuple[float, ...] = ()
    relevance_score: float = 0.0
    ranking_score: float = 0.0

    @classmethod
    def from_article(cls, article: Article, **scores: Any) -> EnhancedArticle:
        """Wrap an ``Article``; keyword arguments set the enhanced fields."""
        base = {f.name: getattr(article, f.name) for f in fields(Article)}
        if isinstance(article, EnhancedArticle):
            base.update(
                embedding=article.embedding,
                relevance_score=article.relevance_score,
                ranking_score=article.ranking_score,
            )
        base.update(scores)
        return cls(**base)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result.pop("embedding", None)
        result["relevance_score"] = round(self.relevance_score, 4)
        result["ranking_score"] = round(self.ranking_score, 4)
        return result
