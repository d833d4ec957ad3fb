"""
Embedding Infrastructure

Text embedding collaborators for semantic relevance scoring.
"""

from __future__ import annotations

from research_discovery.infrastructure.embedding.sentence_embedder import (
    DEFAULT_MODEL,
    SentenceEmbedder,
)

__all__ = [
    "DEFAULT_MODEL",
    "SentenceEmbedder",
]
