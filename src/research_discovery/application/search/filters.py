"""
Filter/Sort Stage - derive the presentation view from the scored corpus.

Pure functions: the input list is never mutated and the same input always
yields the same view. Filters are AND-combined and every one of them is
optional. Sorting is stable and descending for every key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from research_discovery.domain.entities import NO_DATE, NO_JOURNAL, SortOption
from research_discovery.shared.exceptions import InvalidParameterError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from research_discovery.domain.entities import Article, EnhancedArticle

logger = logging.getLogger(__name__)

_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%Y")


# =============================================================================
# Date Parsing
# =============================================================================


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def try_parse_date(value: str | None) -> datetime | None:
    """Parse ISO, ``YYYY-MM-DD``, ``YYYY-MM`` or ``YYYY``; ``None`` if none fits."""
    if not value:
        return None
    text = value.strip()
    if not text or text == NO_DATE:
        return None
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def parse_article_date(value: str | None, now: datetime | None = None) -> datetime:
    """
    Parse an article date, substituting ``now`` when nothing fits.

    The substitution makes an undated record look brand new. It is a known
    approximation and is logged.
    """
    parsed = try_parse_date(value)
    if parsed is not None:
        return parsed
    logger.warning(f"Unparseable article date {value!r}, treating as current date")
    return now or _utcnow()


def _coerce_bound(value: date | datetime | str | None, name: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    parsed = try_parse_date(str(value))
    if parsed is None:
        raise InvalidParameterError(name, value, "a date like 2020, 2020-05 or 2020-05-17")
    return parsed


def _coerce_min_citations(value: object) -> int:
    if isinstance(value, bool):
        raise InvalidParameterError("min_citations", value, "a non-negative integer")
    try:
        count = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        raise InvalidParameterError("min_citations", value, "a non-negative integer") from None
    if count < 0:
        raise InvalidParameterError("min_citations", value, "a non-negative integer")
    return count


# =============================================================================
# Filters
# =============================================================================


@dataclass(frozen=True)
class ArticleFilters:
    """
    User-selected predicates over the corpus.

    Example:
        >>> filters = ArticleFilters(start_date="2020-01-01", min_citations=10)
        >>> filters.is_active
        True
    """

    start_date: datetime | None = None
    end_date: datetime | None = None
    journals: frozenset[str] = field(default_factory=frozenset)
    min_citations: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", _coerce_bound(self.start_date, "start_date"))
        object.__setattr__(self, "end_date", _coerce_bound(self.end_date, "end_date"))
        object.__setattr__(self, "journals", frozenset(j for j in self.journals if j))

        if self.min_citations is not None:
            object.__setattr__(self, "min_citations", _coerce_min_citations(self.min_citations))

        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise InvalidParameterError(
                "start_date",
                self.start_date.date().isoformat(),
                f"a date on or before end_date {self.end_date.date().isoformat()}",
            )

    @property
    def is_active(self) -> bool:
        return bool(self.start_date or self.end_date or self.journals or self.min_citations is not None)

    def matches(self, article: Article, now: datetime | None = None) -> bool:
        if self.start_date or self.end_date:
            published = parse_article_date(article.date, now)
            if self.start_date and published < self.start_date:
                return False
            if self.end_date and published > self.end_date:
                return False
        if self.journals and article.journal not in self.journals:
            return False
        return self.min_citations is None or article.citation_count >= self.min_citations


def filter_articles[A: Article](
    articles: Sequence[A],
    filters: ArticleFilters | None,
    now: datetime | None = None,
) -> list[A]:
    """Keep the articles that satisfy every active predicate, in input order."""
    if filters is None or not filters.is_active:
        return list(articles)
    now = now or _utcnow()
    return [article for article in articles if filters.matches(article, now)]


# =============================================================================
# Sorting
# =============================================================================


def sort_articles(
    articles: Sequence[EnhancedArticle],
    option: SortOption | str = SortOption.RELEVANCE,
    now: datetime | None = None,
) -> list[EnhancedArticle]:
    """
    Stable descending sort by the selected key.

    ``relevance`` uses ``relevance_score``, ``citationCount`` the citation
    count and ``date`` the parsed publication date.
    """
    option = SortOption.parse(option)
    if option is SortOption.RELEVANCE:
        return sorted(articles, key=lambda a: a.relevance_score, reverse=True)
    if option is SortOption.CITATION_COUNT:
        return sorted(articles, key=lambda a: a.citation_count, reverse=True)

    now = now or _utcnow()
    keyed = [(parse_article_date(a.date, now), a) for a in articles]
    keyed.sort(key=lambda pair: pair[0], reverse=True)
    return [a for _, a in keyed]


def available_journals(articles: Iterable[Article]) -> list[str]:
    """Distinct venues in first-seen order, without the placeholder."""
    return [j for j in dict.fromkeys(a.journal for a in articles) if j and j != NO_JOURNAL]
