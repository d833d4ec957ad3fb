"""
Ranking Algorithms for multi-source article retrieval.

Stateless building blocks used by the relevance scorers and the ranking
combiner:

1. **BM25** (Okapi BM25) over the micro-corpus of one search
   - Document = ``title + " " + abstract``, length = whitespace tokens
   - df by case-insensitive substring, tf by case-insensitive occurrence count
   - IDF(q) = ln((N - df + 0.5) / (df + 0.5) + 1)

2. **Min-max normalisation** of raw scores to [0, 1]

3. **Cosine similarity** between embedding vectors

4. **Levenshtein similarity** and fuzzy title matching

References:
    - Robertson & Zaragoza (2009). "The Probabilistic Relevance Framework: BM25 and Beyond"
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from research_discovery.domain.entities import Article


# =============================================================================
# BM25 Relevance Scoring
# =============================================================================

DEFAULT_K1 = 1.2  # Term frequency saturation
DEFAULT_B = 0.75  # Document length normalization


def tokenize_query(query: str) -> list[str]:
    """Lower-cased, whitespace-split query terms."""
    return query.lower().split()


@dataclass
class BM25Corpus:
    """
    Corpus statistics for BM25 scoring.

    Built from the current search result set. Every search builds a fresh
    corpus; nothing is carried over between queries.
    """

    documents: list[str] = field(default_factory=list)  # lower-cased document texts
    doc_lengths: list[int] = field(default_factory=list)
    avg_doc_length: float = 0.0
    _doc_freq: dict[str, int] = field(default_factory=dict, repr=False)

    @classmethod
    def from_texts(cls, texts: Sequence[str]) -> BM25Corpus:
        documents = [text.lower() for text in texts]
        lengths = [len(text.split()) for text in texts]
        avg = sum(lengths) / len(lengths) if lengths else 0.0
        return cls(documents=documents, doc_lengths=lengths, avg_doc_length=avg)

    @classmethod
    def from_articles(cls, articles: Sequence[Article]) -> BM25Corpus:
        """Build corpus statistics from ``title + " " + abstract`` of each article."""
        return cls.from_texts([article.document_text for article in articles])

    @property
    def total_docs(self) -> int:
        return len(self.documents)

    def document_frequency(self, term: str) -> int:
        """Number of documents containing ``term`` anywhere (substring match)."""
        term = term.lower()
        if term not in self._doc_freq:
            self._doc_freq[term] = sum(1 for doc in self.documents if term in doc)
        return self._doc_freq[term]

    def idf(self, term: str) -> float:
        n = self.total_docs
        df = self.document_frequency(term)
        return math.log((n - df + 0.5) / (df + 0.5) + 1)


def term_frequency(term: str, document: str) -> int:
    """Case-insensitive, non-overlapping occurrence count of ``term``."""
    if not term:
        return 0
    return len(re.findall(re.escape(term), document, flags=re.IGNORECASE))


def bm25_term_score(
    tf: float,
    idf: float,
    doc_length: float,
    avg_doc_length: float,
    k1: float = DEFAULT_K1,
    b: float = DEFAULT_B,
) -> float:
    """
    One query term's BM25 contribution.

        idf × (tf × (k1 + 1)) / (tf + k1 × (1 − b + b × |D| / avgdl))
    """
    length_ratio = doc_length / avg_doc_length if avg_doc_length > 0 else 1.0
    denominator = tf + k1 * (1 - b + b * length_ratio)
    if denominator <= 0:
        return 0.0
    return idf * (tf * (k1 + 1)) / denominator


def bm25_score(
    doc_index: int,
    query: str,
    corpus: BM25Corpus,
    k1: float = DEFAULT_K1,
    b: float = DEFAULT_B,
) -> float:
    """Raw BM25 score of one corpus document: sum over all query terms."""
    document = corpus.documents[doc_index]
    doc_length = corpus.doc_lengths[doc_index]
    score = 0.0
    for term in tokenize_query(query):
        tf = term_frequency(term, document)
        score += bm25_term_score(tf, corpus.idf(term), doc_length, corpus.avg_doc_length, k1, b)
    return score


def bm25_scores(
    query: str,
    corpus: BM25Corpus,
    k1: float = DEFAULT_K1,
    b: float = DEFAULT_B,
) -> list[float]:
    """Raw BM25 scores for every document, in corpus order."""
    return [bm25_score(i, query, corpus, k1, b) for i in range(corpus.total_docs)]


def min_max_normalize(scores: Sequence[float]) -> list[float]:
    """
    Scale scores to [0, 1].

    When every score is equal (including a single-element list) all become 1.

    >>> min_max_normalize([2.0, 4.0, 3.0])
    [0.0, 1.0, 0.5]
    """
    if not scores:
        return []
    low, high = min(scores), max(scores)
    if high == low:
        return [1.0] * len(scores)
    span = high - low
    return [(s - low) / span for s in scores]


# =============================================================================
# Embedding Similarity
# =============================================================================


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Dot product over the product of magnitudes.

    Returns 0.0 for empty or mismatched vectors and for zero-magnitude vectors.
    """
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


# =============================================================================
# Fuzzy Title Matching
# =============================================================================


def levenshtein_distance(a: str, b: str) -> int:
    """Compute Levenshtein edit distance between two strings."""
    if len(a) > len(b):
        a, b = b, a
    distances: list[int] = list(range(len(a) + 1))
    for j, ch_b in enumerate(b):
        new_distances = [j + 1]
        for i, ch_a in enumerate(a):
            if ch_a == ch_b:
                new_distances.append(distances[i])
            else:
                new_distances.append(1 + min(distances[i], distances[i + 1], new_distances[-1]))
        distances = new_distances
    return distances[-1]


def string_similarity(a: str, b: str) -> float:
    """``1 - distance / max(len(a), len(b))``; two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1 - levenshtein_distance(a, b) / longest


def fuzzy_title_match(search: str, title: str, threshold: float = 0.8) -> bool:
    """
    True when enough search words have a near-identical word in the title.

    A search word matches if any title word reaches ``threshold`` similarity;
    the title matches if the fraction of matched search words reaches
    ``threshold`` too.

    >>> fuzzy_title_match("quantum computing", "Quantum Computng Advances")
    True
    """
    search_words = search.lower().split()
    title_words = title.lower().split()
    if not search_words or not title_words:
        return False

    matched = sum(
        1 for word in search_words if any(string_similarity(word, candidate) >= threshold for candidate in title_words)
    )
    return matched / len(search_words) >= threshold
