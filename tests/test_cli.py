"""Tests for the command-line entry point."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from dependency_injector import providers

from research_discovery.__main__ import build_parser, format_article, main
from research_discovery.container import create_container
from research_discovery.domain.entities import EnhancedArticle

from .conftest import FakeSource, make_article, make_enhanced


@pytest.fixture
def fake_container():
    container = create_container({"sources": "core"})
    container.sources.override(
        providers.Object(
            [
                FakeSource(
                    "fake",
                    {
                        1: [
                            make_article(doi="10.1/a", journal="Nature", citation_count=5, date="2019"),
                            make_article(doi="10.1/b", title="Quantum annealing", journal="Science", date="2023"),
                        ],
                        2: [make_article(doi="10.1/c", title="Quantum networks", journal="PRX", date="2022")],
                    },
                )
            ]
        )
    )
    with patch("research_discovery.__main__.create_container", return_value=container):
        yield container


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["quantum computing"])
        assert args.query == "quantum computing"
        assert args.pages == 1
        assert args.sort == "relevance"
        assert args.journal == []
        assert args.limit == 20
        assert not args.json
        assert args.ranking_preset is None

    def test_invalid_sort_choice(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["q", "--sort", "popularity"])


class TestFormatArticle:
    def test_includes_scores_and_links(self):
        article = make_enhanced(relevance_score=0.5, ranking_score=0.75, repository_url="https://github.com/x/y")
        text = format_article(1, article)
        assert "Quantum Computing with Superconducting Qubits" in text
        assert "score: 0.750" in text
        assert "10.1000/qc.2022.001" in text
        assert "code: https://github.com/x/y" in text

    def test_no_doi_line_for_placeholder(self):
        text = format_article(2, EnhancedArticle())
        assert "No DOI available" not in text


class TestMain:
    def test_json_output(self, fake_container, capsys):
        assert main(["quantum computing", "--json", "--pages", "2", "--sort", "citationCount"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["summary"]["page"] == 2
        assert payload["summary"]["sort"] == "citationCount"
        assert {a["doi"] for a in payload["articles"]} == {"10.1/a", "10.1/b", "10.1/c"}
        assert payload["available_journals"]

    def test_filters_applied(self, fake_container, capsys):
        assert main(["quantum computing", "--json", "--start-date", "2020", "--journal", "Science"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert [a["doi"] for a in payload["articles"]] == ["10.1/b"]

    def test_text_output(self, fake_container, capsys):
        assert main(["quantum computing", "--limit", "1"]) == 0
        out = capsys.readouterr().out
        assert "2 of 2 articles" in out
        assert "  1. " in out
        assert "  2. " not in out

    def test_invalid_filter_exits_with_error(self, fake_container, capsys):
        assert main(["quantum computing", "--start-date", "someday"]) == 2
        assert "start_date" in capsys.readouterr().err

    def test_ranking_preset_passed_to_container(self, fake_container):
        with patch("research_discovery.__main__.create_container", return_value=fake_container) as factory:
            assert main(["quantum computing", "--ranking-preset", "citation_focused", "--json"]) == 0
        assert factory.call_args.args[0]["ranking_preset"] == "citation_focused"
