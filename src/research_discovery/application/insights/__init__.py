"""
Insights - optional, display-only analysis of individual articles.
"""

from .feature_extractor import (
    DEFAULT_QA_MODEL,
    FEATURE_QUESTIONS,
    FeatureExtractor,
    clean_answer,
)

__all__ = [
    "FeatureExtractor",
    "FEATURE_QUESTIONS",
    "DEFAULT_QA_MODEL",
    "clean_answer",
]
