"""Domain exceptions for the deep research engine.

All package-specific exceptions inherit from ``DeepResearchError`` so callers
can catch the full family with a single ``except`` clause when needed.
"""

from __future__ import annotations

from typing import Any

from .enums import SearchErrorCode


class DeepResearchError(Exception):
    """Base exception for all deep research errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ConfigurationError(DeepResearchError):
    """Raised when a collaborator cannot be built from the given settings.

    Examples: a missing search API key or an unknown model provider name.
    """


class SearchError(DeepResearchError):
    """Raised by a search provider when content retrieval fails.

    ``code`` distinguishes rate limiting (the only transient class the
    traversal retries) from every other provider failure.
    """

    def __init__(
        self,
        message: str = "Search failed",
        code: SearchErrorCode = SearchErrorCode.UNKNOWN_ERROR,
        provider: str = "",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.code = code
        self.provider = provider
        self.status_code = status_code


class SearchRateLimitError(SearchError):
    """Raised when the search provider keeps answering HTTP 429.

    ``retry_after`` holds the provider's explicit back-off hint in seconds,
    when it sent one.
    """

    def __init__(
        self,
        message: str = "Search rate limit exceeded",
        provider: str = "",
        retry_after: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=SearchErrorCode.RATE_LIMIT,
            provider=provider,
            status_code=429,
            details=details,
        )
        self.retry_after = retry_after


class MaxRetriesExceededError(DeepResearchError):
    """Raised when a retried operation keeps failing transiently.

    The last underlying error is kept on ``last_error`` and is also chained as
    ``__cause__``.
    """

    def __init__(
        self,
        message: str = "Maximum retries exceeded",
        attempts: int = 0,
        last_error: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.attempts = attempts
        self.last_error = last_error


class ExpansionError(DeepResearchError):
    """Raised when the query-expansion collaborator produces no usable queries."""

    def __init__(
        self,
        message: str = "Query expansion failed",
        query: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.query = query


class ExtractionError(DeepResearchError):
    """Raised when findings extraction fails for a query.

    The traversal absorbs this into a degraded single-finding result for the
    branch that hit it.
    """

    def __init__(
        self,
        message: str = "Findings extraction failed",
        query: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.query = query
