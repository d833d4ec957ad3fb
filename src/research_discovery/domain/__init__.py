"""
Domain Layer - Core Business Logic

Contains:
- entities: canonical Article records and per-source raw records
"""

from .entities import (
    Article,
    EnhancedArticle,
    RawRecord,
    SortOption,
)

__all__ = [
    "Article",
    "EnhancedArticle",
    "RawRecord",
    "SortOption",
]
