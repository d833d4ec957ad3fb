"""
Ranking Combiner - one composite score per article.

    ranking_score = w_r × relevance
                  + w_c × ln(citations + 1) / ln(saturation)
                  + w_d × max(0, 1 − years_since_publication / horizon)
                  + w_e × exact_match

Defaults: w_r=0.4, w_c=0.3, w_d=0.2, w_e=0.1, saturation=1000, horizon=10
years. The citation term is not clamped, so very highly cited works can push
it above 1. ``exact_match`` is the fuzzy title match of the query.

All constants live in ``RankingConfig`` and can be overridden per session.

Example:
    >>> combiner = RankingCombiner()
    >>> ranked = combiner.rank("quantum computing", scored_articles)
    >>> ranked[0].ranking_score >= ranked[-1].ranking_score
    True
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from research_discovery.shared.exceptions import InvalidParameterError

from .filters import parse_article_date
from .ranking_algorithms import DEFAULT_B, DEFAULT_K1, fuzzy_title_match

if TYPE_CHECKING:
    from collections.abc import Sequence

    from research_discovery.domain.entities import EnhancedArticle


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class RankingConfig:
    """
    Constants of relevance scoring and ranking.

    Weights are applied as given; they are not renormalised.
    """

    relevance_weight: float = 0.4
    citation_weight: float = 0.3
    recency_weight: float = 0.2
    exact_match_weight: float = 0.1

    citation_saturation: float = 1000.0  # ln(c + 1) / ln(saturation)
    recency_horizon_years: float = 10.0  # linear decay to 0 over this many years
    fuzzy_threshold: float = 0.8

    bm25_k1: float = DEFAULT_K1
    bm25_b: float = DEFAULT_B
    semantic_weight: float = 0.5  # hybrid mode only

    def __post_init__(self) -> None:
        for name in ("relevance_weight", "citation_weight", "recency_weight", "exact_match_weight"):
            if getattr(self, name) < 0:
                raise InvalidParameterError(name, getattr(self, name), "a non-negative weight")
        if self.citation_saturation <= 1:
            raise InvalidParameterError("citation_saturation", self.citation_saturation, "a value > 1")
        if self.recency_horizon_years <= 0:
            raise InvalidParameterError("recency_horizon_years", self.recency_horizon_years, "a positive number")
        if not 0 < self.fuzzy_threshold <= 1:
            raise InvalidParameterError("fuzzy_threshold", self.fuzzy_threshold, "a value in (0, 1]")
        if not 0 <= self.semantic_weight <= 1:
            raise InvalidParameterError("semantic_weight", self.semantic_weight, "a value in [0, 1]")

    @classmethod
    def default(cls) -> RankingConfig:
        """Get default balanced configuration."""
        return cls()

    @classmethod
    def citation_focused(cls) -> RankingConfig:
        """Emphasise well-cited work over fresh work."""
        return cls(relevance_weight=0.3, citation_weight=0.5, recency_weight=0.1, exact_match_weight=0.1)

    @classmethod
    def recency_focused(cls) -> RankingConfig:
        """Emphasise recent publications."""
        return cls(relevance_weight=0.3, citation_weight=0.1, recency_weight=0.5, exact_match_weight=0.1)

    @classmethod
    def from_options(cls, preset: str = "default", **overrides: float) -> RankingConfig:
        """
        Preset, then individual fields on top.

        Example:
            >>> RankingConfig.from_options("recency_focused", bm25_k1=1.5).bm25_k1
            1.5

        Raises:
            InvalidParameterError: For an unknown preset or field, or an invalid value
        """
        presets = {
            "default": cls.default,
            "citation_focused": cls.citation_focused,
            "recency_focused": cls.recency_focused,
        }
        factory = presets.get((preset or "default").strip().lower())
        if factory is None:
            raise InvalidParameterError("ranking_preset", preset, f"one of {', '.join(presets)}")

        known = {f.name for f in fields(cls)}
        for name, value in overrides.items():
            if name not in known:
                raise InvalidParameterError("ranking", name, f"a RankingConfig field ({', '.join(sorted(known))})")
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidParameterError(name, value, "a number")
        return replace(factory(), **{name: float(value) for name, value in overrides.items()})


# =============================================================================
# Score Components
# =============================================================================


def normalized_citations(citation_count: int, saturation: float = 1000.0) -> float:
    """``ln(c + 1) / ln(saturation)``, not clamped."""
    return math.log(max(citation_count, 0) + 1) / math.log(saturation)


def recency_score(published: datetime, now: datetime | None = None, horizon_years: float = 10.0) -> float:
    """Linear decay from 1 (this year) to 0 (``horizon_years`` ago)."""
    current_year = (now or datetime.now(tz=timezone.utc)).year
    age = max(current_year - published.year, 0)  # future-dated preprints count as new
    return max(0.0, 1 - age / horizon_years)


def calculate_ranking_score(
    relevance: float,
    citation_count: int,
    published: datetime,
    is_exact_match: bool,
    config: RankingConfig | None = None,
    now: datetime | None = None,
) -> float:
    """
    Composite ranking score.

    >>> round(calculate_ranking_score(1.0, 0, datetime(2024, 1, 1), True, now=datetime(2024, 6, 1)), 3)
    0.7
    """
    config = config or RankingConfig()
    return (
        config.relevance_weight * relevance
        + config.citation_weight * normalized_citations(citation_count, config.citation_saturation)
        + config.recency_weight * recency_score(published, now, config.recency_horizon_years)
        + config.exact_match_weight * (1.0 if is_exact_match else 0.0)
    )


# =============================================================================
# Combiner
# =============================================================================


class RankingCombiner:
    """Attach ``ranking_score`` to scored articles and order by it."""

    def __init__(self, config: RankingConfig | None = None) -> None:
        self.config = config or RankingConfig()

    def combine(
        self,
        query: str,
        articles: Sequence[EnhancedArticle],
        now: datetime | None = None,
    ) -> list[EnhancedArticle]:
        """Return copies with ``ranking_score`` set, in input order."""
        now = now or datetime.now(tz=timezone.utc)
        config = self.config
        return [
            replace(
                article,
                ranking_score=calculate_ranking_score(
                    relevance=article.relevance_score,
                    citation_count=article.citation_count,
                    published=parse_article_date(article.date, now),
                    is_exact_match=fuzzy_title_match(query, article.title, config.fuzzy_threshold),
                    config=config,
                    now=now,
                ),
            )
            for article in articles
        ]

    def rank(
        self,
        query: str,
        articles: Sequence[EnhancedArticle],
        now: datetime | None = None,
    ) -> list[EnhancedArticle]:
        """``combine`` then stable sort by ``ranking_score`` descending."""
        combined = self.combine(query, articles, now)
        return sorted(combined, key=lambda a: a.ranking_score, reverse=True)
