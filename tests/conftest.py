"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import pytest

from research_discovery.domain.entities import Article, EnhancedArticle

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


# ============================================================
# Article Factories
# ============================================================


def make_article(**overrides: Any) -> Article:
    """Canonical article with sensible defaults."""
    fields: dict[str, Any] = {
        "title": "Quantum Computing with Superconducting Qubits",
        "authors": "Ada Lovelace, Alan Turing",
        "date": "2022-03-15",
        "journal": "Physical Review Letters",
        "abstract": "We demonstrate a superconducting processor for quantum computing.",
        "doi": "10.1000/qc.2022.001",
        "citation_count": 10,
        "source": "crossref",
    }
    fields.update(overrides)
    return Article(**fields)


def make_enhanced(**overrides: Any) -> EnhancedArticle:
    scores = {k: overrides.pop(k) for k in ("relevance_score", "ranking_score", "embedding") if k in overrides}
    return EnhancedArticle.from_article(make_article(**overrides), **scores)


@pytest.fixture
def article_factory():
    return make_article


@pytest.fixture
def enhanced_factory():
    return make_enhanced


@pytest.fixture
def now() -> datetime:
    return NOW


# ============================================================
# Fake Collaborators
# ============================================================


class FakeSource:
    """Source adapter returning canned pages."""

    def __init__(self, name: str, pages: dict[int, list[Any]] | None = None, error: Exception | None = None):
        self.name = name
        self.pages = pages or {}
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def fetch(self, query: str, page: int) -> list[Any]:
        self.calls.append((query, page))
        if self.error is not None:
            raise self.error
        return list(self.pages.get(page, []))


class FakeEmbedder:
    """Deterministic embedder: one dimension per vocabulary word."""

    def __init__(self, vocabulary: Sequence[str] = ("quantum", "computing", "biology", "protein")):
        self.vocabulary = [w.lower() for w in vocabulary]
        self.calls: list[list[str]] = []

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [[float(text.lower().count(word)) for word in self.vocabulary] for text in texts]


class FailingEmbedder:
    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        raise RuntimeError("model unavailable")


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()
