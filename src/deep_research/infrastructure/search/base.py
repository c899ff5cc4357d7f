"""Abstract content-retrieval provider."""

from __future__ import annotations

from abc import ABC, abstractmethod

from deep_research.domain.values import ContentItem


class SearchProvider(ABC):
    """Retrieves content items for a query.

    Implementations must signal throttling with
    :class:`~deep_research.domain.exceptions.SearchRateLimitError` and every
    other failure with a :class:`~deep_research.domain.exceptions.SearchError`
    carrying a non rate-limit code.  Returning an empty list is a valid
    "nothing found" answer.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short identifier used in logs and error details."""
        ...

    @abstractmethod
    async def search(self, query: str) -> list[ContentItem]:
        """Return the content items found for *query*."""
        ...

    async def aclose(self) -> None:
        """Release network resources.  No-op by default."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider_name!r})"
