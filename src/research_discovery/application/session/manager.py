"""
ResearchSession - corpus lifecycle and presentation-facing API.

The session owns the accumulated corpus (``all_articles``) and the derived
view (``filtered_articles``):

- a fresh search replaces the corpus wholesale
- load-more appends the next page, skipping works already held
- filters and sort only derive a new view; the corpus is never mutated
- ``clear()`` resets everything

Validation errors (blank query, unknown sort key, bad filter values) are
raised before any state is touched.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from research_discovery.domain.entities import SortOption
from research_discovery.shared.exceptions import InvalidQueryError

from ..search.filters import ArticleFilters, available_journals, filter_articles, sort_articles

if TYPE_CHECKING:
    from research_discovery.domain.entities import EnhancedArticle

    from ..search.pipeline import SearchPipeline, SearchStats
    from ..search.ranking import RankingConfig

logger = logging.getLogger(__name__)


@dataclass
class SearchRecord:
    """One executed search."""

    query: str
    page: int
    load_more: bool
    result_count: int
    timestamp: str = field(default_factory=lambda: datetime.now(tz=timezone.utc).isoformat())


class ResearchSession:
    """
    In-memory research session.

    Example:
        session = ResearchSession(pipeline, ranking_config=RankingConfig.citation_focused())
        await session.search("quantum computing")
        await session.load_more()
        session.set_sort("citationCount")
        session.apply_filters(ArticleFilters(start_date="2020-01-01"))
        for article in session.filtered_articles:
            print(article.title, article.citation_count)
    """

    def __init__(self, pipeline: SearchPipeline, ranking_config: RankingConfig | None = None):
        self.pipeline = pipeline if ranking_config is None else pipeline.with_ranking(ranking_config)
        self._lock = asyncio.Lock()
        self.search_history: list[SearchRecord] = []
        self._reset()

    def _reset(self) -> None:
        self.query = ""
        self.page = 0
        self.sort_option = SortOption.RELEVANCE
        self.filters = ArticleFilters()
        self.all_articles: list[EnhancedArticle] = []
        self.filtered_articles: list[EnhancedArticle] = []
        self.available_journals: list[str] = []
        self.stats: SearchStats | None = None
        self.is_loading = False

    @property
    def ranking_config(self) -> RankingConfig:
        return self.pipeline.combiner.config

    @property
    def filters_active(self) -> bool:
        return self.filters.is_active

    # =========================================================================
    # Search
    # =========================================================================

    async def search(self, query: str | None = None, load_more: bool = False) -> list[EnhancedArticle]:
        """
        Run a search and rebuild the view.

        Args:
            query: Query to run; defaults to the current query
            load_more: Fetch the next page and append instead of replacing

        Returns:
            The new filtered/sorted view

        Raises:
            InvalidQueryError: If the query is blank
        """
        if query is not None and not query.strip():
            raise InvalidQueryError(query)

        async with self._lock:
            # A search that finished while we waited may have replaced the corpus
            text = (self.query if query is None else query).strip()
            if not text:
                raise InvalidQueryError(query)
            appending = load_more and bool(self.all_articles) and text == self.query
            if load_more and not appending:
                logger.info(f"Nothing to extend for {text!r}, running a fresh search")

            self.is_loading = True
            try:
                target_page = self.page + 1 if appending else 1
                existing = self.all_articles if appending else []
                corpus, stats = await self.pipeline.run(text, page=target_page, existing=existing)
            finally:
                self.is_loading = False

            self.query = text
            self.page = target_page
            self.all_articles = corpus
            self.stats = stats
            self.available_journals = available_journals(corpus)
            self._refresh_view()
            self.search_history.append(
                SearchRecord(query=text, page=target_page, load_more=appending, result_count=stats.new_articles)
            )

        return self.filtered_articles

    async def load_more(self) -> list[EnhancedArticle]:
        """Fetch the next page of the current query."""
        return await self.search(load_more=True)

    # =========================================================================
    # View
    # =========================================================================

    def set_sort(self, option: SortOption | str) -> list[EnhancedArticle]:
        """Re-order the current view without re-scoring."""
        self.sort_option = SortOption.parse(option)
        self.filtered_articles = sort_articles(self.filtered_articles, self.sort_option)
        return self.filtered_articles

    def apply_filters(self, filters: ArticleFilters | None = None) -> list[EnhancedArticle]:
        """Set (optionally) and apply the filters to the corpus."""
        if filters is not None:
            self.filters = filters
        self._refresh_view()
        return self.filtered_articles

    def clear_filters(self) -> list[EnhancedArticle]:
        self.filters = ArticleFilters()
        self._refresh_view()
        return self.filtered_articles

    def clear(self) -> None:
        """Reset query, page, filters, corpus and view."""
        self._reset()
        logger.info("Research session cleared")

    def _refresh_view(self) -> None:
        self.filtered_articles = sort_articles(
            filter_articles(self.all_articles, self.filters),
            self.sort_option,
        )

    def get_session_summary(self) -> dict[str, Any]:
        """Summary for display or logging."""
        return {
            "query": self.query,
            "page": self.page,
            "sort": self.sort_option.value,
            "filters_active": self.filters_active,
            "corpus_size": len(self.all_articles),
            "visible": len(self.filtered_articles),
            "journals": len(self.available_journals),
            "searches": len(self.search_history),
            "last_search": self.stats.to_dict() if self.stats else None,
        }
