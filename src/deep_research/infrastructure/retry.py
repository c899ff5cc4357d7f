"""Retry-with-backoff for async operations.

:func:`run_with_retry` re-invokes a failing coroutine factory while the
caller's ``is_transient`` predicate says the failure is worth retrying.  The
delay doubles on every retry unless the error carries an explicit
``retry_after`` hint or the failed response carries a ``Retry-After``
header, which takes priority.

Two classifiers are provided: :func:`is_transient_error` for general
provider calls (429, 5xx, connection resets and timeouts) and
:func:`is_rate_limit_error` for the narrow "search provider is throttling us"
case the traversal retries.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from deep_research.domain.enums import SearchErrorCode
from deep_research.domain.exceptions import MaxRetriesExceededError, SearchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Seconds added on top of a provider's retry-after hint.
RETRY_AFTER_GUARD = 0.1


def _status_code_of(exc: BaseException) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    status = getattr(exc, "status", None)
    if isinstance(status, int):
        return status
    return None


def is_rate_limit_error(exc: BaseException) -> bool:
    """True for a search-provider rate-limit signal."""
    return isinstance(exc, SearchError) and exc.code is SearchErrorCode.RATE_LIMIT


def is_transient_error(exc: BaseException) -> bool:
    """Default classifier: rate limits, server errors, resets and timeouts."""
    if is_rate_limit_error(exc):
        return True
    if isinstance(exc, (ConnectionResetError, TimeoutError, asyncio.TimeoutError)):
        return True
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    status = _status_code_of(exc)
    if status is not None:
        return status == 429 or status >= 500
    return False


def parse_retry_after(value: str | None) -> float | None:
    """Parse a header holding a delay in seconds; ``None`` if unusable."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _header_hint(exc: BaseException) -> float | None:
    # httpx.HTTPStatusError and the provider SDK errors both expose .response
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if headers is None:
        return None
    for name in ("Retry-After", "x-ratelimit-reset"):
        hint = parse_retry_after(headers.get(name))
        if hint is not None:
            return hint
    return None


def retry_after_of(exc: BaseException) -> float | None:
    """Return the explicit back-off hint carried by *exc*, if any.

    A ``retry_after`` attribute wins; otherwise the ``Retry-After`` or
    ``x-ratelimit-reset`` header of an attached response is used.
    """
    hint = getattr(exc, "retry_after", None)
    if isinstance(hint, (int, float)) and hint >= 0:
        return float(hint)
    return _header_hint(exc)


def backoff_delay(exc: BaseException, retry_index: int, base_delay: float) -> float:
    """Delay before retry number ``retry_index`` (0-based).

    ``base_delay * 2**retry_index`` unless *exc* carries ``retry_after``.
    """
    hint = retry_after_of(exc)
    if hint is not None:
        return hint + RETRY_AFTER_GUARD
    return base_delay * (2 ** retry_index)


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    is_transient: Callable[[BaseException], bool] = is_transient_error,
    max_retries: int = 3,
    base_delay: float = 1.0,
    *,
    sleep: Callable[[float], Awaitable[None]] | None = None,
    description: str = "operation",
) -> T:
    """Invoke *operation*, retrying transient failures with backoff.

    Parameters
    ----------
    operation:
        Zero-argument callable returning a fresh awaitable per attempt.
    is_transient:
        Predicate deciding whether a raised exception is retryable.
        Non-transient errors propagate immediately.
    max_retries:
        Retries allowed after the first call; *operation* runs at most
        ``max_retries + 1`` times.
    base_delay:
        Delay in seconds before the first retry; doubled for each further one.
    sleep:
        Coroutine used to wait.  Defaults to ``asyncio.sleep``.
    description:
        Label used in log messages.

    Raises
    ------
    MaxRetriesExceededError
        When the last allowed attempt still fails transiently.  The final
        underlying error is chained as ``__cause__``.
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {max_retries}")
    sleeper = sleep or asyncio.sleep
    total_attempts = max_retries + 1

    for attempt in range(total_attempts):
        try:
            return await operation()
        except Exception as exc:
            if not is_transient(exc):
                raise
            if attempt >= max_retries:
                raise MaxRetriesExceededError(
                    f"{description} failed after {total_attempts} attempts: {exc}",
                    attempts=total_attempts,
                    last_error=exc,
                ) from exc
            delay = backoff_delay(exc, attempt, base_delay)
            logger.warning(
                "%s: transient failure (attempt %d/%d), retrying in %.1fs: %s",
                description,
                attempt + 1,
                total_attempts,
                delay,
                exc,
            )
            await sleeper(delay)

    # Unreachable: the loop either returns or raises.
    raise AssertionError("run_with_retry exited without a result")
