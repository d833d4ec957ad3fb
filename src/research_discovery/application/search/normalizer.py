"""
Normalizer - map raw source records onto the canonical Article.

One mapping function per raw-record variant. Every function is pure: it cleans
abstract markup, substitutes placeholders for missing fields and coerces the
citation/reference counts to non-negative integers.

Normalizing an Article that is already canonical returns an equal Article.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace

from research_discovery.domain.entities import (
    NO_ABSTRACT,
    NO_AUTHORS,
    NO_DATE,
    NO_DOI,
    NO_JOURNAL,
    NO_TITLE,
    Article,
    ArxivRecord,
    CoreRecord,
    CrossrefRecord,
    PapersWithCodeRecord,
    RawRecord,
)

logger = logging.getLogger(__name__)

ARXIV_VENUE = "arXiv"
PAPERS_WITH_CODE_VENUE = "Papers with Code"

_JATS_TAG = re.compile(r"</?jats:\w+(\s+[^>]*)?>")
_ANY_TAG = re.compile(r"</?[^>]+(>|$)")

# Decoded in this order
_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)


# =============================================================================
# Field helpers
# =============================================================================


def clean_abstract(text: str | None) -> str:
    """
    Strip markup and decode the common named entities.

    Crossref abstracts arrive as JATS XML (``<jats:p>...</jats:p>``), CORE
    abstracts sometimes carry HTML.

    >>> clean_abstract("<jats:p>Qubits &amp; gates</jats:p>")
    'Qubits & gates'
    """
    if not text:
        return ""
    cleaned = _JATS_TAG.sub("", text)
    cleaned = _ANY_TAG.sub("", cleaned)
    for entity, char in _ENTITIES:
        cleaned = cleaned.replace(entity, char)
    return cleaned.strip()


def coerce_count(value: object) -> int:
    """Coerce a citation/reference count to a non-negative int (0 if unusable)."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return max(0, int(value)) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0
        return max(0, int(number)) if math.isfinite(number) else 0
    return 0


def _text(value: str | None, placeholder: str) -> str:
    if value is None:
        return placeholder
    collapsed = " ".join(value.split())
    return collapsed or placeholder


def _join_authors(authors: list[str]) -> str:
    names = [" ".join(a.split()) for a in authors]
    return ", ".join(n for n in names if n) or NO_AUTHORS


def _tags(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v.strip() for v in values if v and v.strip()))


def _iso_day(value: str | None) -> str:
    """``2024-01-15T00:00:00Z`` -> ``2024-01-15``; other forms pass through."""
    if not value or not value.strip():
        return NO_DATE
    return value.strip().split("T", 1)[0]


def _arxiv_doi(arxiv_id: str | None) -> str:
    if not arxiv_id or not arxiv_id.strip():
        return NO_DOI
    return f"arxiv:{arxiv_id.strip()}"


# =============================================================================
# Per-variant mappings
# =============================================================================


def normalize_crossref(record: CrossrefRecord) -> Article:
    date = "-".join(str(p) for p in record.date_parts) if record.date_parts else NO_DATE
    return Article(
        title=_text(record.title, NO_TITLE),
        authors=_join_authors(record.authors),
        date=date,
        journal=_text(record.container_title, NO_JOURNAL),
        tags=_tags(record.subjects),
        abstract=clean_abstract(record.abstract) or NO_ABSTRACT,
        doi=_text(record.doi, NO_DOI),
        citation_count=coerce_count(record.cited_by),
        reference_count=coerce_count(record.reference_count),
        source=record.source,
    )


def normalize_core(record: CoreRecord) -> Article:
    return Article(
        title=_text(record.title, NO_TITLE),
        authors=_join_authors(record.authors),
        date=_iso_day(record.date_published),
        journal=_text(record.publisher, NO_JOURNAL),
        tags=_tags(record.subjects),
        abstract=clean_abstract(record.abstract) or NO_ABSTRACT,
        doi=_text(record.doi, NO_DOI),
        citation_count=coerce_count(record.citation_count),
        reference_count=0,
        download_url=record.download_url or None,
        source=record.source,
    )


def normalize_arxiv(record: ArxivRecord) -> Article:
    return Article(
        title=_text(record.title, NO_TITLE),
        authors=_join_authors(record.authors),
        date=_iso_day(record.published),
        journal=_text(record.journal_ref, ARXIV_VENUE),
        tags=_tags(record.categories),
        abstract=clean_abstract(record.summary) or NO_ABSTRACT,
        doi=_arxiv_doi(record.arxiv_id),
        download_url=record.pdf_url or None,
        arxiv_id=record.arxiv_id or None,
        source=record.source,
    )


def normalize_papers_with_code(record: PapersWithCodeRecord) -> Article:
    return Article(
        title=_text(record.title, NO_TITLE),
        authors=_join_authors(record.authors),
        date=_iso_day(record.published),
        journal=_text(record.venue, PAPERS_WITH_CODE_VENUE),
        abstract=clean_abstract(record.abstract) or NO_ABSTRACT,
        doi=_arxiv_doi(record.arxiv_id),
        download_url=record.pdf_url or None,
        repository_url=record.repository_url or None,
        arxiv_id=record.arxiv_id or None,
        source=record.source,
    )


def normalize_article(article: Article) -> Article:
    """Re-establish the Article invariants without touching clean text."""
    normalized = replace(
        article,
        title=_text(article.title, NO_TITLE),
        authors=article.authors.strip() or NO_AUTHORS,
        date=article.date.strip() or NO_DATE,
        journal=article.journal.strip() or NO_JOURNAL,
        tags=tuple(article.tags),
        abstract=article.abstract.strip() or NO_ABSTRACT,
        doi=article.doi.strip() or NO_DOI,
        citation_count=coerce_count(article.citation_count),
        reference_count=coerce_count(article.reference_count),
    )
    return article if normalized == article else normalized


def normalize_record(record: RawRecord | Article) -> Article:
    """Dispatch to the mapping for the record's variant."""
    if isinstance(record, Article):
        return normalize_article(record)
    if isinstance(record, CrossrefRecord):
        return normalize_crossref(record)
    if isinstance(record, CoreRecord):
        return normalize_core(record)
    if isinstance(record, ArxivRecord):
        return normalize_arxiv(record)
    if isinstance(record, PapersWithCodeRecord):
        return normalize_papers_with_code(record)
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def normalize_records(records: list[RawRecord | Article]) -> list[Article]:
    """Normalize a batch; records of an unknown type are logged and skipped."""
    articles: list[Article] = []
    for record in records:
        try:
            articles.append(normalize_record(record))
        except TypeError as e:
            logger.warning(f"Skipping record: {e}")
    return articles
