"""
Domain Entities

Canonical article records and the per-source raw records they are built from.
"""

from __future__ import annotations

from .article import (
    NO_ABSTRACT,
    NO_AUTHORS,
    NO_DATE,
    NO_DOI,
    NO_JOURNAL,
    NO_TITLE,
    PLACEHOLDERS,
    Article,
    EnhancedArticle,
    SortOption,
)
from .raw_records import (
    ArxivRecord,
    CoreRecord,
    CrossrefRecord,
    PapersWithCodeRecord,
    RawRecord,
)

__all__ = [
    # Article entities
    "Article",
    "EnhancedArticle",
    "SortOption",
    "NO_TITLE",
    "NO_AUTHORS",
    "NO_DATE",
    "NO_JOURNAL",
    "NO_ABSTRACT",
    "NO_DOI",
    "PLACEHOLDERS",
    # Raw source records
    "CrossrefRecord",
    "CoreRecord",
    "ArxivRecord",
    "PapersWithCodeRecord",
    "RawRecord",
]
