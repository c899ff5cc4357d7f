"""Brave Web Search provider.

Talks to ``https://api.search.brave.com/res/v1/web/search`` over ``httpx``.
HTTP 429 answers are retried here with a short exponential backoff (honouring
a ``Retry-After`` header); if the provider keeps throttling, the final
:class:`SearchRateLimitError` is raised so the traversal can apply its own,
longer schedule.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from deep_research.domain.enums import SearchErrorCode
from deep_research.domain.exceptions import (
    ConfigurationError,
    MaxRetriesExceededError,
    SearchError,
    SearchRateLimitError,
)
from deep_research.domain.values import ContentItem
from deep_research.infrastructure.retry import (
    is_rate_limit_error,
    parse_retry_after,
    run_with_retry,
)
from deep_research.infrastructure.search.base import SearchProvider

logger = logging.getLogger(__name__)

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
NO_DESCRIPTION = "No description available"


class BraveSearchProvider(SearchProvider):
    """Search provider backed by the Brave Web Search API.

    Parameters
    ----------
    api_key:
        Brave subscription token.  Required.
    count:
        Number of results requested per query.
    max_retries:
        Retries on HTTP 429 before giving up with :class:`SearchRateLimitError`.
    base_retry_delay:
        Base delay in seconds for the 429 backoff.
    timeout:
        Request timeout in seconds.
    client:
        Optional pre-built ``httpx.AsyncClient`` (e.g. with a mock transport).
        A client passed in is not closed by :meth:`aclose`.
    sleep:
        Coroutine used for backoff waits.  Defaults to ``asyncio.sleep``.

    Raises
    ------
    ConfigurationError
        If *api_key* is empty.
    """

    def __init__(
        self,
        api_key: str,
        count: int = 10,
        max_retries: int = 3,
        base_retry_delay: float = 2.0,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError(
                "Brave search requires an API key (set BRAVE_API_KEY)",
                details={"provider": "brave"},
            )
        self._api_key = api_key
        self._count = count
        self._max_retries = max_retries
        self._base_retry_delay = base_retry_delay
        self._sleep = sleep or asyncio.sleep
        self._headers = {
            "Accept": "application/json",
            "X-Subscription-Token": api_key,
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def provider_name(self) -> str:
        """Return ``'brave'``."""
        return "brave"

    async def search(self, query: str) -> list[ContentItem]:
        """Search Brave for *query*.

        Blank queries return ``[]`` without hitting the network.
        """
        if not query.strip():
            return []

        try:
            payload = await run_with_retry(
                lambda: self._request(query),
                is_transient=is_rate_limit_error,
                max_retries=self._max_retries,
                base_delay=self._base_retry_delay,
                sleep=self._sleep,
                description="BraveSearchProvider",
            )
        except MaxRetriesExceededError as exc:
            if isinstance(exc.last_error, SearchRateLimitError):
                raise exc.last_error from exc
            raise

        results = (payload.get("web") or {}).get("results") or []
        items = [
            ContentItem(
                text=result.get("description") or NO_DESCRIPTION,
                source_id=result.get("url") or "",
            )
            for result in results
            if isinstance(result, dict)
        ]
        logger.debug("BraveSearchProvider: %d results for %r", len(items), query)
        return items

    async def _request(self, query: str) -> dict[str, Any]:
        params = {
            "q": query,
            "count": self._count,
            "offset": 0,
            "language": "en",
            "country": "US",
            "safesearch": "moderate",
        }
        try:
            response = await self._client.get(
                BRAVE_SEARCH_URL, params=params, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise SearchError(
                f"Request to Brave search failed: {exc}",
                code=SearchErrorCode.UNKNOWN_ERROR,
                provider=self.provider_name,
            ) from exc

        if response.status_code == 429:
            raise SearchRateLimitError(
                "Brave search rate limit exceeded",
                provider=self.provider_name,
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
            )
        if response.status_code >= 400:
            raise SearchError(
                f"Brave search error (HTTP {response.status_code}): {response.text}",
                code=SearchErrorCode.API_ERROR,
                provider=self.provider_name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise SearchError(
                f"Invalid JSON response from Brave search: {exc}",
                code=SearchErrorCode.UNKNOWN_ERROR,
                provider=self.provider_name,
            ) from exc
        if not isinstance(data, dict):
            raise SearchError(
                "Unexpected Brave search payload",
                code=SearchErrorCode.UNKNOWN_ERROR,
                provider=self.provider_name,
            )
        return data

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    def __repr__(self) -> str:
        return f"BraveSearchProvider(count={self._count}, max_retries={self._max_retries})"
