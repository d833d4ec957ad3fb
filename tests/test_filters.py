"""Tests for the filter/sort stage."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from research_discovery.application.search.filters import (
    ArticleFilters,
    available_journals,
    filter_articles,
    parse_article_date,
    sort_articles,
    try_parse_date,
)
from research_discovery.domain.entities import NO_DATE, NO_JOURNAL, SortOption
from research_discovery.shared.exceptions import InvalidParameterError

from .conftest import NOW, make_enhanced

# ============================================================
# Date parsing
# ============================================================


class TestDateParsing:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2021", datetime(2021, 1, 1, tzinfo=timezone.utc)),
            ("2021-05", datetime(2021, 5, 1, tzinfo=timezone.utc)),
            ("2021-05-17", datetime(2021, 5, 17, tzinfo=timezone.utc)),
            ("2021-5-3", datetime(2021, 5, 3, tzinfo=timezone.utc)),
            ("2021-05-17T10:00:00Z", datetime(2021, 5, 17, 10, tzinfo=timezone.utc)),
        ],
    )
    def test_formats(self, value, expected):
        assert try_parse_date(value) == expected

    @pytest.mark.parametrize("value", [None, "", NO_DATE, "sometime soon"])
    def test_unparseable(self, value):
        assert try_parse_date(value) is None

    def test_parse_article_date_falls_back_to_now(self):
        assert parse_article_date(NO_DATE, NOW) == NOW


# ============================================================
# ArticleFilters
# ============================================================


class TestArticleFilters:
    def test_default_inactive(self):
        assert not ArticleFilters().is_active

    def test_coerces_values(self):
        filters = ArticleFilters(start_date="2020", end_date=date(2021, 6, 30), min_citations="5")
        assert filters.start_date == datetime(2020, 1, 1, tzinfo=timezone.utc)
        assert filters.end_date == datetime(2021, 6, 30, tzinfo=timezone.utc)
        assert filters.min_citations == 5
        assert filters.is_active

    def test_zero_min_citations_is_active(self):
        assert ArticleFilters(min_citations=0).is_active

    def test_start_after_end(self):
        with pytest.raises(InvalidParameterError, match="start_date"):
            ArticleFilters(start_date="2023-01-01", end_date="2020-01-01")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start_date": "not a date"},
            {"end_date": "31/12/2020"},
            {"min_citations": "many"},
            {"min_citations": -1},
            {"min_citations": True},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidParameterError):
            ArticleFilters(**kwargs)


class TestFilterArticles:
    def test_date_range(self):
        articles = [
            make_enhanced(doi="10.1/2019", date="2019-06-01"),
            make_enhanced(doi="10.1/2021", date="2021-06-01"),
            make_enhanced(doi="10.1/2023", date="2023-06-01"),
        ]
        filters = ArticleFilters(start_date="2020-01-01", end_date="2022-12-31")
        assert [a.doi for a in filter_articles(articles, filters, NOW)] == ["10.1/2021"]

    def test_journal_and_citations_combined(self):
        articles = [
            make_enhanced(doi="10.1/a", journal="Nature", citation_count=50),
            make_enhanced(doi="10.1/b", journal="Nature", citation_count=2),
            make_enhanced(doi="10.1/c", journal="Science", citation_count=80),
        ]
        filters = ArticleFilters(journals=frozenset({"Nature"}), min_citations=10)
        assert [a.doi for a in filter_articles(articles, filters)] == ["10.1/a"]

    def test_undated_article_treated_as_now(self):
        articles = [make_enhanced(date=NO_DATE)]
        assert filter_articles(articles, ArticleFilters(start_date="2024-01-01"), NOW) == articles
        assert filter_articles(articles, ArticleFilters(end_date="2023-12-31"), NOW) == []

    def test_input_not_mutated(self):
        articles = [make_enhanced(doi="10.1/a", citation_count=1), make_enhanced(doi="10.1/b", citation_count=9)]
        snapshot = list(articles)
        filter_articles(articles, ArticleFilters(min_citations=5))
        assert articles == snapshot

    def test_no_filters_returns_copy(self):
        articles = [make_enhanced()]
        result = filter_articles(articles, None)
        assert result == articles
        assert result is not articles


# ============================================================
# Sorting
# ============================================================


class TestSortArticles:
    def test_citation_sort_is_stable(self):
        articles = [
            make_enhanced(doi="10.1/first", citation_count=5),
            make_enhanced(doi="10.1/top", citation_count=10),
            make_enhanced(doi="10.1/second", citation_count=5),
        ]
        result = sort_articles(articles, SortOption.CITATION_COUNT)
        assert [a.citation_count for a in result] == [10, 5, 5]
        assert [a.doi for a in result] == ["10.1/top", "10.1/first", "10.1/second"]

    def test_relevance_sort(self):
        articles = [make_enhanced(doi=f"10.1/{s}", relevance_score=s) for s in (0.2, 0.9, 0.5)]
        assert [a.relevance_score for a in sort_articles(articles, "relevance")] == [0.9, 0.5, 0.2]

    def test_date_sort(self):
        articles = [
            make_enhanced(doi="10.1/old", date="2001"),
            make_enhanced(doi="10.1/new", date="2023-02-01"),
            make_enhanced(doi="10.1/mid", date="2015-07"),
        ]
        assert [a.doi for a in sort_articles(articles, "date", NOW)] == ["10.1/new", "10.1/mid", "10.1/old"]

    def test_unknown_key(self):
        with pytest.raises(InvalidParameterError):
            sort_articles([], "popularity")


class TestAvailableJournals:
    def test_distinct_first_seen_without_placeholder(self):
        articles = [
            make_enhanced(journal="Science"),
            make_enhanced(journal=NO_JOURNAL),
            make_enhanced(journal="Nature"),
            make_enhanced(journal="Science"),
        ]
        assert available_journals(articles) == ["Science", "Nature"]
