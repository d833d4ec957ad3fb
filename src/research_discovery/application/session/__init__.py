"""Session Management."""

from __future__ import annotations

from .manager import ResearchSession, SearchRecord

__all__ = [
    "ResearchSession",
    "SearchRecord",
]
