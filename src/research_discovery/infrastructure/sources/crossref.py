"""
Crossref API Integration

Crossref is the DOI registration agency for most journal articles and the
richest source of citation (``is-referenced-by-count``) and reference data.

API Documentation: https://api.crossref.org/swagger-ui/index.html

Search strategy per page:
- an exact-match request (``query.bibliographic``, 1 row), so a pasted title
  surfaces its own record first
- a fuzzy request (``query``, one page of rows at the page offset)

Both are restricted to journal articles. Items without title or abstract and
figure/table component DOIs are dropped; the two result sets are concatenated
and de-duplicated by DOI (first wins).

Rate Limits:
- Polite pool (with email): ~50 req/sec
- Anonymous: ~1 req/sec (strongly discouraged)
"""

from __future__ import annotations

import asyncio
import logging
import urllib.parse
from typing import TYPE_CHECKING, Any

from research_discovery.domain.entities import CrossrefRecord

from .base_client import _CONTINUE, DEFAULT_PAGE_SIZE, BaseAPIClient

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

CROSSREF_API_BASE = "https://api.crossref.org"

# Default contact email (required for polite pool)
DEFAULT_EMAIL = "research-discovery@example.com"

_SELECT_FIELDS = (
    "DOI,title,author,container-title,published,abstract,subject,type,is-referenced-by-count,reference"
)
_COMPONENT_DOI_MARKERS = ("/fig-", "/table-")


class CrossrefClient(BaseAPIClient):
    """
    Crossref adapter.

    Usage:
        async with CrossrefClient(email="you@example.org") as client:
            records = await client.fetch("quantum computing", page=1)
            count = await client.get_citation_count("10.1038/nature12373")
    """

    name = "crossref"
    _service_name = "Crossref"

    def __init__(
        self,
        email: str | None = None,
        timeout: float = 30.0,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """
        Initialize Crossref client.

        Args:
            email: Contact email for polite pool access (strongly recommended)
            timeout: Request timeout in seconds
            page_size: Rows of the fuzzy request
        """
        self._email = email or DEFAULT_EMAIL
        super().__init__(
            base_url=CROSSREF_API_BASE,
            timeout=timeout,
            min_interval=0.05,
            headers={
                "User-Agent": f"research-discovery/0.1 (mailto:{self._email})",
                "Accept": "application/json",
            },
            page_size=page_size,
        )

    async def _execute_request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Add mailto parameter for polite pool access."""
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}mailto={urllib.parse.quote(self._email)}"
        return await super()._execute_request(url, params=params, headers=headers)

    def _handle_expected_status(self, response: httpx.Response, url: str) -> Any:
        """Handle 404 (DOI not found)."""
        if response.status_code == 404:
            logger.debug(f"Crossref: not found - {url}")
            return None
        return _CONTINUE

    def _parse_response(self, response: httpx.Response, expect_json: bool) -> Any:
        """Extract 'message' key from Crossref JSON responses."""
        data = response.json()
        return data.get("message", data) if isinstance(data, dict) else data

    # =========================================================================
    # Search
    # =========================================================================

    async def _fetch(self, query: str, page: int) -> list[CrossrefRecord]:
        common = {
            "filter": "type:journal-article",
            "sort": "relevance",
            "order": "desc",
            "select": _SELECT_FIELDS,
        }
        exact, fuzzy = await asyncio.gather(
            self._make_request("/works", params={"query.bibliographic": query, "rows": 1, **common}),
            self._make_request(
                "/works",
                params={"query": query, "rows": self.page_size, "offset": self._offset(page), **common},
            ),
        )

        records: list[CrossrefRecord] = []
        seen: set[str] = set()
        for item in [*self._items(exact), *self._items(fuzzy)]:
            if not self._is_usable(item):
                continue
            record = CrossrefRecord.from_api(item)
            key = (record.doi or "").lower()
            if key in seen:
                continue
            seen.add(key)
            records.append(record)
        return records

    @staticmethod
    def _items(message: Any) -> list[dict[str, Any]]:
        if not isinstance(message, dict):
            return []
        items = message.get("items")
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    @staticmethod
    def _is_usable(item: dict[str, Any]) -> bool:
        if not item.get("abstract") or not item.get("title"):
            return False
        doi = str(item.get("DOI") or "")
        return not any(marker in doi for marker in _COMPONENT_DOI_MARKERS)

    # =========================================================================
    # Citation lookup
    # =========================================================================

    async def get_work(self, doi: str) -> dict[str, Any] | None:
        """
        Get metadata for a single work by DOI.

        Returns:
            Work metadata dict or None if not found
        """
        doi = doi.strip().removeprefix("https://doi.org/").removeprefix("doi:")
        result = await self._make_request(f"/works/{urllib.parse.quote(doi, safe='/')}")
        return result if isinstance(result, dict) else None

    async def get_citation_count(self, doi: str) -> int | None:
        """``is-referenced-by-count`` of a DOI, or None when unavailable."""
        work = await self.get_work(doi)
        if work is None:
            return None
        count = work.get("is-referenced-by-count")
        if isinstance(count, int) and not isinstance(count, bool):
            return max(count, 0)
        return None
