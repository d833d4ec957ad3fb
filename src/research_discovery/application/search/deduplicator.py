"""
Deduplicator - collapse records describing the same work.

Identity key:
    1. Normalized DOI, when the article has a real identifier. Version
       suffixes (``arxiv:2401.12345v2``) are stripped and the Crossref
       form of arXiv DOIs (``10.48550/arXiv.2401.12345``) maps onto the
       ``arxiv:`` form, so every version of a preprint shares one key.
    2. Otherwise the case-folded, whitespace-collapsed title.

On a collision the record with the higher citation count survives; ties keep
the first one seen. The survivor keeps the position of the first occurrence.

For "load more", new records whose DOI *or* title already appears in the
accumulated corpus are dropped before appending, so paging never reintroduces a
work that is already held.

Never raises: an unusable DOI simply degrades to title matching.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from research_discovery.domain.entities import NO_DOI

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from research_discovery.domain.entities import Article

logger = logging.getLogger(__name__)

_DOI_PREFIXES = (
    "https://doi.org/",
    "http://doi.org/",
    "https://dx.doi.org/",
    "http://dx.doi.org/",
    "doi:",
)
_ARXIV_DOI = re.compile(r"^10\.48550/arxiv\.(.+)$")
_VERSION_SUFFIX = re.compile(r"(?<=\d)v\d+$")


# =============================================================================
# Key Normalization
# =============================================================================


def normalize_doi(doi: str | None) -> str | None:
    """
    Normalize a DOI for comparison; ``None`` for the placeholder or blanks.

    >>> normalize_doi("https://doi.org/10.1000/ABC")
    '10.1000/abc'
    >>> normalize_doi("arxiv:1234.5678v2")
    'arxiv:1234.5678'
    """
    if not doi or doi == NO_DOI:
        return None
    normalized = doi.strip().lower()
    for prefix in _DOI_PREFIXES:
        normalized = normalized.removeprefix(prefix)
    arxiv = _ARXIV_DOI.match(normalized)
    if arxiv:
        normalized = f"arxiv:{arxiv.group(1)}"
    normalized = _VERSION_SUFFIX.sub("", normalized)
    return normalized or None


def normalize_title(title: str | None) -> str:
    """Case-fold and collapse whitespace."""
    if not title:
        return ""
    return " ".join(title.casefold().split())


def identity_key(article: Article) -> str:
    """``doi:<normalized>`` when a real DOI exists, else ``title:<folded>``."""
    doi = normalize_doi(article.doi)
    if doi:
        return f"doi:{doi}"
    return f"title:{normalize_title(article.title)}"


# =============================================================================
# Statistics
# =============================================================================


@dataclass
class DedupStats:
    """Statistics from one deduplication pass."""

    total_input: int = 0
    unique_articles: int = 0
    duplicates_removed: int = 0
    dedup_by_doi: int = 0
    dedup_by_title: int = 0
    already_in_corpus: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_input": self.total_input,
            "unique_articles": self.unique_articles,
            "duplicates_removed": self.duplicates_removed,
            "dedup_by_doi": self.dedup_by_doi,
            "dedup_by_title": self.dedup_by_title,
            "already_in_corpus": self.already_in_corpus,
        }


# =============================================================================
# Deduplicator
# =============================================================================


class Deduplicator:
    """
    Merge newly fetched articles, optionally against an existing corpus.

    Example:
        >>> dedup = Deduplicator()
        >>> unique = dedup.deduplicate(fresh_articles)
        >>> merged = dedup.merge_into(corpus, next_page_articles)
        >>> dedup.last_stats.duplicates_removed
        3
    """

    def __init__(self) -> None:
        self.last_stats = DedupStats()

    def deduplicate[A: Article](self, articles: Sequence[A]) -> list[A]:
        """Return one article per identity key."""
        stats = DedupStats(total_input=len(articles))
        unique = self._collapse(articles, stats)
        stats.unique_articles = len(unique)
        self.last_stats = stats
        logger.info(
            f"Deduplication: {stats.total_input} -> {stats.unique_articles} "
            f"(doi={stats.dedup_by_doi}, title={stats.dedup_by_title})"
        )
        return unique

    def merge_into[A: Article](self, corpus: Sequence[A], new_articles: Sequence[A]) -> list[A]:
        """
        Append ``new_articles`` to ``corpus`` without reintroducing duplicates.

        The corpus itself is not modified; a new list is returned.
        """
        stats = DedupStats(total_input=len(new_articles))
        unique_new = self._collapse(new_articles, stats)
        fresh = self._exclude_existing(unique_new, corpus)
        stats.already_in_corpus = len(unique_new) - len(fresh)
        stats.duplicates_removed += stats.already_in_corpus
        stats.unique_articles = len(fresh)
        self.last_stats = stats
        logger.info(
            f"Load more: {stats.total_input} fetched, {stats.unique_articles} new, "
            f"{stats.already_in_corpus} already held"
        )
        return [*corpus, *fresh]

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _collapse[A: Article](articles: Iterable[A], stats: DedupStats) -> list[A]:
        survivors: dict[str, A] = {}
        for article in articles:
            key = identity_key(article)
            current = survivors.get(key)
            if current is None:
                survivors[key] = article
                continue
            stats.duplicates_removed += 1
            if key.startswith("doi:"):
                stats.dedup_by_doi += 1
            else:
                stats.dedup_by_title += 1
            if article.citation_count > current.citation_count:
                survivors[key] = article
        return list(survivors.values())

    @staticmethod
    def _exclude_existing[A: Article](new_articles: Iterable[A], corpus: Iterable[Article]) -> list[A]:
        held_dois: set[str] = set()
        held_titles: set[str] = set()
        for article in corpus:
            doi = normalize_doi(article.doi)
            if doi:
                held_dois.add(doi)
            held_titles.add(normalize_title(article.title))

        fresh: list[A] = []
        for article in new_articles:
            doi = normalize_doi(article.doi)
            if doi and doi in held_dois:
                continue
            if normalize_title(article.title) in held_titles:
                continue
            fresh.append(article)
        return fresh


# =============================================================================
# Convenience Functions
# =============================================================================


def remove_duplicates[A: Article](articles: Sequence[A]) -> list[A]:
    """Deduplicate a single batch."""
    return Deduplicator().deduplicate(articles)


def merge_into_corpus[A: Article](corpus: Sequence[A], new_articles: Sequence[A]) -> list[A]:
    """Append a load-more page to the corpus, skipping works already held."""
    return Deduplicator().merge_into(corpus, new_articles)
