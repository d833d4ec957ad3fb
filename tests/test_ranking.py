"""Tests for the composite ranking score and the ranking combiner."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from research_discovery.application.search.ranking import (
    RankingCombiner,
    RankingConfig,
    calculate_ranking_score,
    normalized_citations,
    recency_score,
)
from research_discovery.shared.exceptions import InvalidParameterError

from .conftest import NOW, make_enhanced

# ============================================================
# Configuration
# ============================================================


class TestRankingConfig:
    def test_defaults(self):
        config = RankingConfig()
        assert (
            config.relevance_weight,
            config.citation_weight,
            config.recency_weight,
            config.exact_match_weight,
        ) == (0.4, 0.3, 0.2, 0.1)
        assert config.citation_saturation == 1000.0
        assert config.recency_horizon_years == 10.0
        assert config.fuzzy_threshold == 0.8

    def test_presets(self):
        assert RankingConfig.default() == RankingConfig()
        assert RankingConfig.citation_focused().citation_weight > RankingConfig().citation_weight
        assert RankingConfig.recency_focused().recency_weight > RankingConfig().recency_weight

    @pytest.mark.parametrize(
        "overrides",
        [
            {"relevance_weight": -0.1},
            {"citation_saturation": 1.0},
            {"recency_horizon_years": 0},
            {"fuzzy_threshold": 0.0},
            {"semantic_weight": 2.0},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(InvalidParameterError):
            RankingConfig(**overrides)

    def test_from_options(self):
        config = RankingConfig.from_options("Recency_Focused", bm25_k1=1.5, citation_weight=0)
        assert config.recency_weight == RankingConfig.recency_focused().recency_weight
        assert config.bm25_k1 == 1.5
        assert config.citation_weight == 0.0
        assert RankingConfig.from_options() == RankingConfig()

    @pytest.mark.parametrize(
        ("preset", "overrides"),
        [
            ("balanced", {}),
            ("default", {"speed": 1.0}),
            ("default", {"bm25_b": "0.5"}),
            ("default", {"recency_weight": -1.0}),
        ],
    )
    def test_from_options_rejects(self, preset, overrides):
        with pytest.raises(InvalidParameterError):
            RankingConfig.from_options(preset, **overrides)


# ============================================================
# Components
# ============================================================


class TestComponents:
    def test_normalized_citations(self):
        assert normalized_citations(0) == 0.0
        assert normalized_citations(999) == pytest.approx(1.0)
        assert normalized_citations(99) == pytest.approx(math.log(100) / math.log(1000))

    def test_normalized_citations_not_clamped(self):
        assert normalized_citations(100_000) > 1.0

    def test_recency_linear_decay(self):
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert recency_score(datetime(2024, 1, 1, tzinfo=timezone.utc), now) == 1.0
        assert recency_score(datetime(2019, 1, 1, tzinfo=timezone.utc), now) == pytest.approx(0.5)
        assert recency_score(datetime(2009, 1, 1, tzinfo=timezone.utc), now) == 0.0

    def test_future_date_counts_as_new(self):
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert recency_score(datetime(2026, 1, 1, tzinfo=timezone.utc), now) == 1.0


class TestCalculateRankingScore:
    def test_reference_example(self):
        score = calculate_ranking_score(
            relevance=1.0,
            citation_count=0,
            published=datetime(2024, 1, 1, tzinfo=timezone.utc),
            is_exact_match=True,
            now=datetime(2024, 6, 1, tzinfo=timezone.utc),
        )
        assert score == pytest.approx(0.7)

    def test_all_components(self):
        score = calculate_ranking_score(
            relevance=0.5,
            citation_count=999,
            published=datetime(2019, 1, 1, tzinfo=timezone.utc),
            is_exact_match=False,
            now=datetime(2024, 6, 1, tzinfo=timezone.utc),
        )
        assert score == pytest.approx(0.4 * 0.5 + 0.3 * 1.0 + 0.2 * 0.5)

    def test_custom_weights(self):
        config = RankingConfig(relevance_weight=1.0, citation_weight=0, recency_weight=0, exact_match_weight=0)
        score = calculate_ranking_score(0.25, 500, datetime(2000, 1, 1, tzinfo=timezone.utc), True, config, NOW)
        assert score == pytest.approx(0.25)


# ============================================================
# Combiner
# ============================================================


class TestRankingCombiner:
    def test_combine_keeps_order(self):
        articles = [
            make_enhanced(doi="10.1/a", title="Unrelated", relevance_score=0.0, citation_count=0, date="2000"),
            make_enhanced(doi="10.1/b", relevance_score=1.0, citation_count=100, date="2024-01-01"),
        ]
        combined = RankingCombiner().combine("quantum computing", articles, now=NOW)
        assert [a.doi for a in combined] == ["10.1/a", "10.1/b"]
        assert combined[0].ranking_score == pytest.approx(0.0)
        assert combined[1].ranking_score > 0.7

    def test_rank_orders_descending(self):
        articles = [
            make_enhanced(doi="10.1/low", title="Other", relevance_score=0.1, citation_count=0, date="2001"),
            make_enhanced(doi="10.1/high", relevance_score=0.9, citation_count=50, date="2023"),
            make_enhanced(doi="10.1/mid", title="Other", relevance_score=0.5, citation_count=5, date="2015"),
        ]
        ranked = RankingCombiner().rank("quantum computing", articles, now=NOW)
        assert [a.doi for a in ranked] == ["10.1/high", "10.1/mid", "10.1/low"]
        scores = [a.ranking_score for a in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_rank_is_stable_on_ties(self):
        articles = [make_enhanced(doi=f"10.1/{i}", relevance_score=0.5) for i in range(3)]
        ranked = RankingCombiner().rank("q", articles, now=NOW)
        assert [a.doi for a in ranked] == ["10.1/0", "10.1/1", "10.1/2"]

    def test_exact_match_bonus(self):
        matching = make_enhanced(title="Quantum Computing", relevance_score=0.5, doi="10.1/m")
        other = make_enhanced(title="Protein Folding", relevance_score=0.5, doi="10.1/o")
        combined = RankingCombiner().combine("quantum computing", [matching, other], now=NOW)
        assert combined[0].ranking_score - combined[1].ranking_score == pytest.approx(0.1)

    def test_relevance_score_untouched(self):
        article = make_enhanced(relevance_score=0.42)
        (combined,) = RankingCombiner().combine("q", [article], now=NOW)
        assert combined.relevance_score == 0.42
