"""
CORE API Integration

CORE aggregates open access research outputs from repositories worldwide and
is the main source of full-text download links.

API Documentation: https://api.core.ac.uk/docs/v3

Rate Limits:
- Without API key: 10 requests/min
- With API key: 25 requests/min
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from research_discovery.domain.entities import CoreRecord

from .base_client import DEFAULT_PAGE_SIZE, BaseAPIClient

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

CORE_API_BASE = "https://api.core.ac.uk/v3"


class COREClient(BaseAPIClient):
    """
    CORE adapter.

    Usage:
        # Without API key (heavily throttled)
        client = COREClient()

        # With API key
        client = COREClient(api_key="your-api-key")

        records = await client.fetch("machine learning", page=2)
    """

    name = "core"
    _service_name = "CORE"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 30.0,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """
        Initialize CORE client.

        Args:
            api_key: CORE API key (get from https://core.ac.uk/services/api)
            timeout: Request timeout in seconds
            page_size: Results per page
        """
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        super().__init__(
            base_url=CORE_API_BASE,
            timeout=timeout,
            min_interval=2.5 if api_key else 6.0,
            headers=headers,
            page_size=page_size,
        )

    def _handle_expected_status(self, response: httpx.Response, url: str) -> Any:
        if response.status_code == 401:
            logger.error("CORE API: Unauthorized - check your API key")
            return None
        return super()._handle_expected_status(response, url)

    async def _fetch(self, query: str, page: int) -> list[CoreRecord]:
        data = await self._make_request(
            "/search/works/",
            params={"q": query, "limit": self.page_size, "offset": self._offset(page)},
        )
        if data is None:
            return []
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            logger.error(f"Unexpected CORE API response structure: {type(data).__name__}")
            return []
        return [CoreRecord.from_api(item) for item in data["results"] if isinstance(item, dict)]
