"""
Search Application Layer

Normalization, deduplication, relevance scoring, ranking and the
filter/sort stage, wired together by SearchPipeline.
"""

from .citations import CitationEnricher
from .deduplicator import (
    DedupStats,
    Deduplicator,
    identity_key,
    merge_into_corpus,
    normalize_doi,
    normalize_title,
    remove_duplicates,
)
from .filters import (
    ArticleFilters,
    available_journals,
    filter_articles,
    parse_article_date,
    sort_articles,
)
from .normalizer import clean_abstract, coerce_count, normalize_record, normalize_records
from .pipeline import SearchPipeline, SearchStats, SourceAdapter
from .ranking import RankingCombiner, RankingConfig, calculate_ranking_score
from .ranking_algorithms import (
    BM25Corpus,
    bm25_score,
    bm25_scores,
    bm25_term_score,
    cosine_similarity,
    fuzzy_title_match,
    levenshtein_distance,
    min_max_normalize,
)
from .relevance import (
    Embedder,
    HybridScorer,
    LexicalScorer,
    RelevanceScorer,
    ScoringMode,
    SemanticScorer,
    build_scorer,
    reconfigure_scorer,
)

__all__ = [
    # Normalizer
    "clean_abstract",
    "coerce_count",
    "normalize_record",
    "normalize_records",
    # Deduplicator
    "Deduplicator",
    "DedupStats",
    "identity_key",
    "normalize_doi",
    "normalize_title",
    "remove_duplicates",
    "merge_into_corpus",
    # Algorithms
    "BM25Corpus",
    "bm25_score",
    "bm25_scores",
    "bm25_term_score",
    "min_max_normalize",
    "cosine_similarity",
    "levenshtein_distance",
    "fuzzy_title_match",
    # Relevance
    "ScoringMode",
    "Embedder",
    "RelevanceScorer",
    "LexicalScorer",
    "SemanticScorer",
    "HybridScorer",
    "build_scorer",
    "reconfigure_scorer",
    # Ranking
    "RankingConfig",
    "RankingCombiner",
    "calculate_ranking_score",
    # Filter/sort
    "ArticleFilters",
    "parse_article_date",
    "filter_articles",
    "sort_articles",
    "available_journals",
    # Citations
    "CitationEnricher",
    # Pipeline
    "SearchPipeline",
    "SearchStats",
    "SourceAdapter",
]
