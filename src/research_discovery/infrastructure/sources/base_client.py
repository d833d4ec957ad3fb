"""
Base API Client - Common HTTP request pattern with retry, rate limiting, and circuit breaker.

Every catalog adapter derives from ``BaseAPIClient``, which provides:
- Automatic retry on 429 (rate limit) with Retry-After support
- Retry with exponential backoff on transport errors
- Rate limiting (configurable interval between requests)
- Circuit breaker for fault tolerance
- The adapter contract: ``fetch(query, page)`` never raises and returns
  ``[]`` on any failure
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, ClassVar, Self

import httpx

from research_discovery.shared.async_utils import CircuitBreaker
from research_discovery.shared.exceptions import RateLimitError, get_retry_delay

if TYPE_CHECKING:
    from research_discovery.domain.entities import RawRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 25
USER_AGENT = "research-discovery/0.1"


class BaseAPIClient:
    """
    Base class for catalog adapters.

    Subclasses set ``name`` and ``_service_name``, implement ``_fetch()``
    and can override:
    - `_execute_request()`: Add service-specific headers/params
    - `_handle_expected_status()`: Handle service-specific status codes (e.g., 404)
    - `_parse_response()`: Custom response processing

    Example:
        class MyClient(BaseAPIClient):
            name = "mycatalog"
            _service_name = "MyCatalog"

            async def _fetch(self, query: str, page: int) -> list[RawRecord]:
                data = await self._make_request("/search", params={"q": query})
                ...
    """

    name: ClassVar[str] = "api"
    _service_name: ClassVar[str] = "API"
    _MAX_RETRIES: ClassVar[int] = 3

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        min_interval: float = 0.1,
        headers: dict[str, str] | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """
        Initialize base client.

        Args:
            base_url: Base URL for the API (optional, can pass full URLs)
            timeout: Request timeout in seconds
            min_interval: Minimum seconds between requests (rate limiting)
            headers: Default headers for all requests
            circuit_breaker: Optional circuit breaker. If None, a default one
                             is created (threshold=10, recovery=60s).
            page_size: Records requested per page
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._min_interval = min_interval
        self._last_request_time = 0.0
        self.page_size = page_size
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": USER_AGENT, **(headers or {})},
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
        )
        self._circuit_breaker = circuit_breaker or CircuitBreaker(failure_threshold=10, recovery_timeout=60.0)

    # =========================================================================
    # Adapter contract
    # =========================================================================

    async def fetch(self, query: str, page: int = 1) -> list[RawRecord]:
        """
        Fetch one page of raw records for ``query``.

        Never raises: failures are logged and yield an empty list.
        """
        page = max(page, 1)
        try:
            records = await self._fetch(query, page)
        except Exception as e:
            logger.exception(f"{self._service_name} fetch failed for {query!r} page {page}: {e}")
            return []
        logger.info(f"{self._service_name}: {len(records)} records for {query!r} page {page}")
        return records

    async def _fetch(self, query: str, page: int) -> list[RawRecord]:
        raise NotImplementedError

    def _offset(self, page: int) -> int:
        return (page - 1) * self.page_size

    # =========================================================================
    # HTTP
    # =========================================================================

    async def _rate_limit(self) -> None:
        """Enforce minimum interval between requests."""
        elapsed = time.time() - self._last_request_time
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)
        self._last_request_time = time.time()

    def _build_url(self, url: str) -> str:
        """Build full URL from path or full URL."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._base_url}{url}"

    async def _make_request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        expect_json: bool = True,
    ) -> Any:
        """
        Make a GET request with retry on 429 and circuit breaker protection.

        Args:
            url: Full URL or path (appended to base_url)
            params: Query string parameters
            headers: Additional headers for this request
            expect_json: If True, parse response as JSON; otherwise return text

        Returns:
            Parsed JSON, response text, or None on error
        """
        full_url = self._build_url(url)

        for attempt in range(self._MAX_RETRIES + 1):
            await self._rate_limit()
            try:
                async with self._circuit_breaker:
                    response = await self._execute_request(full_url, params=params, headers=headers)

                    # Handle expected error codes (e.g., 404 = not found)
                    expected = self._handle_expected_status(response, full_url)
                    if expected is not _CONTINUE:
                        return expected

                    if response.status_code == 429:
                        if attempt < self._MAX_RETRIES:
                            retry_after = self._get_retry_after(response, attempt)
                            logger.warning(
                                f"{self._service_name}: Rate limited (429), "
                                f"retry {attempt + 1}/{self._MAX_RETRIES} in {retry_after:.1f}s"
                            )
                            await asyncio.sleep(retry_after)
                            continue
                        logger.warning(f"{self._service_name}: Rate limit exceeded after retries")
                        return None

                    response.raise_for_status()
                    return self._parse_response(response, expect_json)

            except RateLimitError:
                logger.warning(f"{self._service_name}: Circuit breaker open, skipping request")
                return None
            except httpx.HTTPStatusError as e:
                logger.error(f"{self._service_name} HTTP error {e.response.status_code}: {e.response.reason_phrase}")
                return None
            except httpx.RequestError as e:
                if attempt < self._MAX_RETRIES:
                    delay = get_retry_delay(e, attempt)
                    logger.warning(f"{self._service_name} request error (attempt {attempt + 1}): {e}")
                    await asyncio.sleep(delay)
                    continue
                logger.error(f"{self._service_name} request failed: {e}")
                return None
            except ValueError as e:
                logger.error(f"{self._service_name} returned an unreadable body: {e}")
                return None

        return None

    async def _execute_request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Execute the actual HTTP request. Override for custom behavior."""
        return await self._client.get(url, params=params, headers=headers or {})

    def _handle_expected_status(self, response: httpx.Response, url: str) -> Any:
        """
        Handle expected non-200 status codes that shouldn't trigger retry.

        Return a value to short-circuit (e.g., None for 404).
        Return the sentinel _CONTINUE to continue normal processing.
        """
        return _CONTINUE

    def _parse_response(self, response: httpx.Response, expect_json: bool) -> Any:
        """Parse response body. Override for custom extraction logic."""
        if expect_json:
            return response.json()
        return response.text

    @staticmethod
    def _get_retry_after(response: httpx.Response, attempt: int) -> float:
        """Extract Retry-After from response headers, with exponential backoff fallback."""
        try:
            return float(response.headers.get("Retry-After", 2 ** (attempt + 1)))
        except (ValueError, TypeError):
            return float(2 ** (attempt + 1))

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


# Sentinel object to indicate "continue normal processing" from _handle_expected_status
_CONTINUE = object()
