"""Recursive research traversal for a single branch.

One :class:`ResearchTraversal` walks a branch of the research tree: search,
extract, record progress, then descend on a follow-up question with a
halved breadth until the depth budget runs out.

State machine per step::

    SEARCHING -> EXTRACTING -> RECURSING -> SEARCHING ...
                                         -> DONE
    (any step)  -> FAILED

Failure policy: a search that stays rate-limited after every retry raises
:class:`MaxRetriesExceededError` out of the branch.  Every other search or
extraction failure is absorbed into a single "Error researching" finding and
ends the branch.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from deep_research.domain.branching import decay_breadth
from deep_research.domain.enums import TraversalState
from deep_research.domain.exceptions import MaxRetriesExceededError
from deep_research.domain.values import ContentItem, Extraction, FindingSet
from deep_research.infrastructure.config import TraversalConfig
from deep_research.infrastructure.progress import ProgressTracker
from deep_research.infrastructure.rate_limiter import RateLimiter
from deep_research.infrastructure.retry import is_rate_limit_error, run_with_retry
from deep_research.infrastructure.search.base import SearchProvider
from deep_research.services.extraction import BaseFindingsExtractor, truncate_contents

logger = logging.getLogger(__name__)


def continuation_query(query: str) -> str:
    """Generic follow-up used when extraction produced no follow-up questions."""
    return f"Tell me more about {query.rstrip('?').strip()}"


def error_findings(query: str) -> FindingSet:
    """The single-finding result of a branch that failed."""
    return FindingSet(learnings=(f"Error researching: {query}",), sources=())


class ResearchTraversal:
    """Executes research branches against shared collaborators.

    A traversal instance holds no per-branch state, so one instance serves
    every concurrently running branch of a run.

    Parameters
    ----------
    search_provider:
        Content retrieval collaborator.
    extractor:
        Findings extraction collaborator.
    tracker:
        Progress tracker to report completed steps to.  ``None`` disables
        progress reporting.
    rate_limiter:
        Limiter guarding the search endpoint.  Shared by all branches.
        Defaults to one built from ``config.search_min_interval``.
    config:
        Traversal parameters (truncation limit, search retry policy).
    sleep:
        Coroutine used for backoff waits.  Defaults to ``asyncio.sleep``.
    """

    def __init__(
        self,
        search_provider: SearchProvider,
        extractor: BaseFindingsExtractor,
        tracker: ProgressTracker | None = None,
        rate_limiter: RateLimiter | None = None,
        config: TraversalConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._config = config or TraversalConfig()
        self._search_provider = search_provider
        self._extractor = extractor
        self._tracker = tracker
        self._sleep = sleep or asyncio.sleep
        self._rate_limiter = rate_limiter or RateLimiter(
            self._config.search_min_interval, sleep=self._sleep
        )

    async def research(
        self,
        query: str,
        depth: int,
        breadth: int,
        findings: FindingSet | None = None,
    ) -> FindingSet:
        """Research *query* and descend ``depth - 1`` further levels.

        Parameters
        ----------
        query:
            The question for this step.
        depth:
            Remaining levels including this one.  Must be >= 1.
        breadth:
            Branching factor at this level; halved (rounded up) for the next.
        findings:
            Findings accumulated by the levels above.  Not mutated.

        Returns
        -------
        FindingSet
            Accumulated findings of the whole branch, or the single error
            finding if a step failed.

        Raises
        ------
        MaxRetriesExceededError
            If the search provider stayed rate-limited through every retry.
        """
        findings = findings if findings is not None else FindingSet()

        self._transition(TraversalState.SEARCHING, query, depth)
        try:
            items = await self._search(query)
        except MaxRetriesExceededError:
            self._transition(TraversalState.FAILED, query, depth)
            logger.warning(
                "ResearchTraversal: search for %r still rate limited after retries",
                query,
            )
            raise
        except Exception as exc:
            return self._fail(query, depth, exc)

        self._transition(TraversalState.EXTRACTING, query, depth)
        try:
            extraction = await self._extract(query, items, breadth)
        except Exception as exc:
            return self._fail(query, depth, exc)

        merged = findings.extend(
            extraction.learnings,
            (item.source_id for item in items if item.source_id),
        )

        if self._tracker is not None:
            self._tracker.update(
                completed=True,
                current_depth=depth,
                current_breadth=breadth,
                current_query=query,
            )

        new_depth = depth - 1
        if new_depth <= 0:
            self._transition(TraversalState.DONE, query, depth)
            return merged

        next_query = next(
            (q for q in extraction.follow_up_questions if q.strip()), None
        ) or continuation_query(query)
        self._transition(TraversalState.RECURSING, next_query, new_depth)
        return await self.research(
            next_query, new_depth, decay_breadth(breadth), merged
        )

    # -- steps ----------------------------------------------------------------

    async def _search(self, query: str) -> list[ContentItem]:
        async def attempt() -> list[ContentItem]:
            await self._rate_limiter.wait_for_slot()
            return await self._search_provider.search(query)

        policy = self._config.search_retry
        return await run_with_retry(
            attempt,
            is_transient=is_rate_limit_error,
            max_retries=policy.max_retries,
            base_delay=policy.base_delay,
            sleep=self._sleep,
            description=f"search({query!r})",
        )

    async def _extract(
        self, query: str, items: list[ContentItem], breadth: int
    ) -> Extraction:
        contents = truncate_contents(items, self._config.content_char_limit)
        return await self._extractor.extract(
            query, contents, num_follow_ups=decay_breadth(breadth)
        )

    # -- helpers --------------------------------------------------------------

    def _fail(self, query: str, depth: int, exc: Exception) -> FindingSet:
        self._transition(TraversalState.FAILED, query, depth)
        logger.warning("ResearchTraversal: error researching %r: %s", query, exc)
        return error_findings(query)

    @staticmethod
    def _transition(state: TraversalState, query: str, depth: int) -> None:
        logger.debug("ResearchTraversal: [%s] depth=%d query=%r", state.value, depth, query)
