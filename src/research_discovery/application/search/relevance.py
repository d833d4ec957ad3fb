"""
Relevance Scorer - query-dependent relevance per article.

Strategies behind one interface, selected by ``ScoringMode``:

- LEXICAL: BM25 over the fetched corpus, min-max normalised to [0, 1]
- SEMANTIC: cosine similarity between the query embedding and the
  embedding of ``title + " " + abstract``
- HYBRID: ``w × cosine + (1 − w) × normalised BM25``; articles without an
  embedding keep their lexical score

Scores are always recomputed for the whole corpus; nothing is incremental.

Embedding calls are batched, run with bounded concurrency and each call is
wrapped in a timeout. A failed or timed-out call means "no embedding" for the
affected articles, which then get relevance 0 (SEMANTIC) or their lexical
score (HYBRID). No embedding problem ever aborts a search.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from research_discovery.domain.entities import Article, EnhancedArticle
from research_discovery.shared.async_utils import bounded_gather, timeout_with_fallback
from research_discovery.shared.exceptions import InvalidParameterError

from .ranking_algorithms import (
    DEFAULT_B,
    DEFAULT_K1,
    BM25Corpus,
    bm25_scores,
    cosine_similarity,
    min_max_normalize,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

type Vector = tuple[float, ...]


class ScoringMode(Enum):
    """Relevance strategy."""

    LEXICAL = "lexical"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"

    @classmethod
    def parse(cls, value: ScoringMode | str) -> ScoringMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidParameterError("scoring_mode", value, "lexical | semantic | hybrid") from None


@runtime_checkable
class Embedder(Protocol):
    """Maps texts to unit-norm, mean-pooled vectors."""

    async def embed(self, texts: Sequence[str]) -> Sequence[Sequence[float]]: ...


class RelevanceScorer(Protocol):
    """Common interface of every scoring strategy."""

    mode: ScoringMode

    async def score(self, query: str, articles: Sequence[Article]) -> list[EnhancedArticle]: ...


# =============================================================================
# Lexical (BM25)
# =============================================================================


class LexicalScorer:
    """BM25 relevance, normalised across the corpus."""

    mode = ScoringMode.LEXICAL

    def __init__(self, k1: float = DEFAULT_K1, b: float = DEFAULT_B) -> None:
        self.k1 = k1
        self.b = b

    def relevance(self, query: str, articles: Sequence[Article]) -> list[float]:
        if not articles:
            return []
        corpus = BM25Corpus.from_articles(articles)
        return min_max_normalize(bm25_scores(query, corpus, self.k1, self.b))

    async def score(self, query: str, articles: Sequence[Article]) -> list[EnhancedArticle]:
        scores = self.relevance(query, articles)
        return [
            EnhancedArticle.from_article(article, relevance_score=score, embedding=())
            for article, score in zip(articles, scores, strict=True)
        ]


# =============================================================================
# Semantic (embeddings)
# =============================================================================


class SemanticScorer:
    """
    Cosine similarity against the query embedding.

    Args:
        embedder: Embedding collaborator
        timeout: Seconds allowed per embedding call
        concurrency: Embedding calls in flight at once
        batch_size: Texts per embedding call
    """

    mode = ScoringMode.SEMANTIC

    def __init__(
        self,
        embedder: Embedder,
        timeout: float = 10.0,
        concurrency: int = 4,
        batch_size: int = 16,
    ) -> None:
        self.embedder = embedder
        self.timeout = timeout
        self.concurrency = concurrency
        self.batch_size = max(1, batch_size)

    async def embed_corpus(
        self,
        query: str,
        articles: Sequence[Article],
    ) -> tuple[Vector | None, list[Vector | None]]:
        """
        Embed the query and every article.

        Returns ``(query_vector, article_vectors)``; ``None`` marks an
        embedding that is unavailable.
        """
        texts = [article.document_text for article in articles]
        batches = [texts[i : i + self.batch_size] for i in range(0, len(texts), self.batch_size)]

        results = await bounded_gather(
            [self._embed_call([query]), *(self._embed_call(batch) for batch in batches)],
            limit=self.concurrency,
        )

        query_result, batch_results = results[0], results[1:]
        query_vector = self._first_vector(query_result)
        if query_vector is None:
            logger.warning("Query embedding unavailable, semantic relevance will be 0")

        vectors: list[Vector | None] = []
        failed = 0
        for batch, result in zip(batches, batch_results, strict=True):
            if isinstance(result, BaseException) or result is None or len(result) != len(batch):
                if isinstance(result, BaseException):
                    logger.warning(f"Embedding batch failed: {result}")
                failed += len(batch)
                vectors.extend([None] * len(batch))
                continue
            vectors.extend(_as_vector(v) for v in result)

        if failed:
            logger.warning(f"No embedding for {failed}/{len(articles)} articles")
        return query_vector, vectors

    async def score(self, query: str, articles: Sequence[Article]) -> list[EnhancedArticle]:
        query_vector, vectors = await self.embed_corpus(query, articles)
        scored: list[EnhancedArticle] = []
        for article, vector in zip(articles, vectors, strict=True):
            relevance = 0.0
            if query_vector is not None and vector is not None:
                relevance = cosine_similarity(query_vector, vector)
            scored.append(
                EnhancedArticle.from_article(
                    article,
                    embedding=vector or (),
                    relevance_score=relevance,
                )
            )
        return scored

    async def _embed_call(self, texts: list[str]) -> Sequence[Sequence[float]] | None:
        return await timeout_with_fallback(self.embedder.embed(texts), self.timeout, None)

    @staticmethod
    def _first_vector(result: object) -> Vector | None:
        if isinstance(result, BaseException):
            logger.warning(f"Query embedding failed: {result}")
            return None
        if result is None or len(result) == 0:  # type: ignore[arg-type]
            return None
        return _as_vector(result[0])  # type: ignore[index]


def _as_vector(values: Sequence[float]) -> Vector | None:
    vector = tuple(float(v) for v in values)
    return vector or None


# =============================================================================
# Hybrid
# =============================================================================


class HybridScorer:
    """Weighted blend of semantic and lexical relevance."""

    mode = ScoringMode.HYBRID

    def __init__(
        self,
        lexical: LexicalScorer,
        semantic: SemanticScorer,
        semantic_weight: float = 0.5,
    ) -> None:
        if not 0.0 <= semantic_weight <= 1.0:
            raise InvalidParameterError("semantic_weight", semantic_weight, "a value in [0, 1]")
        self.lexical = lexical
        self.semantic = semantic
        self.semantic_weight = semantic_weight

    async def score(self, query: str, articles: Sequence[Article]) -> list[EnhancedArticle]:
        lexical_scores = self.lexical.relevance(query, articles)
        query_vector, vectors = await self.semantic.embed_corpus(query, articles)

        w = self.semantic_weight
        scored: list[EnhancedArticle] = []
        for article, lexical, vector in zip(articles, lexical_scores, vectors, strict=True):
            if query_vector is None or vector is None:
                relevance = lexical
            else:
                relevance = w * cosine_similarity(query_vector, vector) + (1 - w) * lexical
            scored.append(
                EnhancedArticle.from_article(
                    article,
                    embedding=vector or (),
                    relevance_score=relevance,
                )
            )
        return scored


def build_scorer(
    mode: ScoringMode | str,
    embedder: Embedder | None = None,
    *,
    k1: float = DEFAULT_K1,
    b: float = DEFAULT_B,
    timeout: float = 10.0,
    concurrency: int = 4,
    semantic_weight: float = 0.5,
) -> RelevanceScorer:
    """
    Build the scorer for ``mode``.

    Without an embedder, SEMANTIC and HYBRID fall back to LEXICAL.
    """
    mode = ScoringMode.parse(mode)
    lexical = LexicalScorer(k1=k1, b=b)
    if mode is ScoringMode.LEXICAL:
        return lexical
    if embedder is None:
        logger.warning(f"No embedder configured, using lexical scoring instead of {mode.value}")
        return lexical
    semantic = SemanticScorer(embedder, timeout=timeout, concurrency=concurrency)
    if mode is ScoringMode.SEMANTIC:
        return semantic
    return HybridScorer(lexical, semantic, semantic_weight=semantic_weight)


def reconfigure_scorer(
    scorer: RelevanceScorer,
    *,
    k1: float = DEFAULT_K1,
    b: float = DEFAULT_B,
    semantic_weight: float = 0.5,
) -> RelevanceScorer:
    """Same strategy and embedder, new BM25 constants and hybrid weight."""
    if isinstance(scorer, LexicalScorer):
        return LexicalScorer(k1=k1, b=b)
    if isinstance(scorer, HybridScorer):
        return HybridScorer(LexicalScorer(k1=k1, b=b), scorer.semantic, semantic_weight=semantic_weight)
    return scorer
