"""
Papers with Code API Integration

Machine-learning papers linked to their code repositories.

API Documentation: https://paperswithcode.com/api/v1/docs/

Papers are keyed by their arXiv identifier (``arxiv:<id>``), so they collapse
with the matching arXiv record during deduplication.
"""

from __future__ import annotations

import logging

from research_discovery.domain.entities import PapersWithCodeRecord

from .base_client import DEFAULT_PAGE_SIZE, BaseAPIClient

logger = logging.getLogger(__name__)

PAPERS_WITH_CODE_API_BASE = "https://paperswithcode.com/api/v1"


class PapersWithCodeClient(BaseAPIClient):
    """
    Papers with Code adapter.

    Usage:
        async with PapersWithCodeClient() as client:
            records = await client.fetch("graph neural networks", page=1)
    """

    name = "paperswithcode"
    _service_name = "PapersWithCode"

    def __init__(self, timeout: float = 30.0, page_size: int = DEFAULT_PAGE_SIZE):
        super().__init__(
            base_url=PAPERS_WITH_CODE_API_BASE,
            timeout=timeout,
            min_interval=0.2,
            headers={"Accept": "application/json"},
            page_size=page_size,
        )

    async def _fetch(self, query: str, page: int) -> list[PapersWithCodeRecord]:
        data = await self._make_request(
            "/search/",
            params={"q": query, "page": page, "items_per_page": self.page_size},
        )
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            if data is not None:
                logger.error(f"Unexpected Papers with Code response structure: {type(data).__name__}")
            return []
        return [PapersWithCodeRecord.from_api(item) for item in data["results"] if isinstance(item, dict)]
