"""Research engine: the public entry point of a research run.

The engine expands the user query once, fans the sub-queries out as
independent branches under a concurrency cap, and merges the branch findings
into one deduplicated :class:`ResearchResult`.

Usage::

    engine = ResearchEngine(expander, extractor, search_provider)
    result = await engine.run(ResearchSpec("quantum error correction", 3, 2))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from deep_research.domain.entities import ResearchProgress
from deep_research.domain.enums import TraversalState
from deep_research.domain.values import (
    ExpandedQuery,
    FindingSet,
    ResearchResult,
    ResearchSpec,
    merge_results,
)
from deep_research.infrastructure.concurrency import run_all
from deep_research.infrastructure.config import TraversalConfig
from deep_research.infrastructure.progress import ProgressSink, ProgressTracker
from deep_research.infrastructure.rate_limiter import RateLimiter
from deep_research.infrastructure.search.base import SearchProvider
from deep_research.services.expansion import BaseQueryExpander, fallback_query
from deep_research.services.extraction import BaseFindingsExtractor
from deep_research.services.traversal import ResearchTraversal

logger = logging.getLogger(__name__)


class ResearchEngine:
    """Runs research requests against a fixed set of collaborators.

    The search rate limiter belongs to the engine, so consecutive runs on
    the same engine share the endpoint's spacing.

    Parameters
    ----------
    expander:
        Query expansion collaborator.
    extractor:
        Findings extraction collaborator.
    search_provider:
        Content retrieval collaborator.
    config:
        Traversal parameters.  Defaults to :class:`TraversalConfig`.
    sleep:
        Coroutine used for every backoff and rate-limit wait.
    """

    def __init__(
        self,
        expander: BaseQueryExpander,
        extractor: BaseFindingsExtractor,
        search_provider: SearchProvider,
        config: TraversalConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._expander = expander
        self._extractor = extractor
        self._search_provider = search_provider
        self._config = config or TraversalConfig()
        self._sleep = sleep or asyncio.sleep
        self._rate_limiter = RateLimiter(
            self._config.search_min_interval, sleep=self._sleep
        )

    @property
    def config(self) -> TraversalConfig:
        return self._config

    async def run(
        self,
        spec: ResearchSpec,
        on_progress: ProgressSink | None = None,
    ) -> ResearchResult:
        """Execute *spec* and return the merged findings.

        Never raises for collaborator failures: if anything escapes the
        branches (including search rate-limit exhaustion) the minimal
        :meth:`ResearchResult.fallback` result is returned instead.
        ``asyncio.CancelledError`` is not intercepted.
        """
        tracker = ProgressTracker(ResearchProgress.for_spec(spec))
        if on_progress is not None:
            tracker.subscribe(on_progress)

        logger.info(
            "ResearchEngine: starting %r (breadth=%d, depth=%d, total_queries=%d)",
            spec.query,
            spec.breadth,
            spec.depth,
            tracker.snapshot().total_queries,
        )
        try:
            sub_queries = await self._expand(spec)
            tracker.update(current_query=sub_queries[0].question)

            traversal = ResearchTraversal(
                self._search_provider,
                self._extractor,
                tracker=tracker,
                rate_limiter=self._rate_limiter,
                config=self._config,
                sleep=self._sleep,
            )

            def branch(sub_query: ExpandedQuery) -> Callable[[], Awaitable[FindingSet]]:
                async def run_branch() -> FindingSet:
                    tracker.update(current_query=sub_query.question)
                    logger.info("ResearchEngine: dispatching branch %r", sub_query.question)
                    findings = await traversal.research(
                        sub_query.question, spec.depth, spec.breadth, FindingSet()
                    )
                    logger.info(
                        "ResearchEngine: branch %r finished with %d learnings",
                        sub_query.question,
                        len(findings),
                    )
                    return findings

                return run_branch

            limit = min(spec.breadth, self._config.max_concurrency)
            branches = await run_all([branch(q) for q in sub_queries], limit)
            result = merge_results(branches)
        except Exception:
            logger.exception("ResearchEngine: research on %r failed", spec.query)
            await tracker.drain()
            return ResearchResult.fallback(spec.query)

        logger.info(
            "ResearchEngine: finished %r with %d learnings from %d sources",
            spec.query,
            len(result.learnings),
            len(result.sources),
        )
        await tracker.drain()
        return result

    async def _expand(self, spec: ResearchSpec) -> list[ExpandedQuery]:
        logger.debug("ResearchEngine: [%s] %r", TraversalState.EXPANDING.value, spec.query)
        try:
            queries = await self._expander.expand(spec.query, spec.breadth)
        except Exception as exc:
            logger.warning(
                "ResearchEngine: query expansion failed for %r, using fallback: %s",
                spec.query,
                exc,
            )
            queries = []
        if not queries:
            return [fallback_query(spec.query)]
        return list(queries)[: spec.breadth]


async def start_research(
    query: str,
    breadth: int,
    depth: int,
    progress_callback: ProgressSink | None = None,
    *,
    expander: BaseQueryExpander,
    extractor: BaseFindingsExtractor,
    search_provider: SearchProvider,
    config: TraversalConfig | None = None,
) -> ResearchResult:
    """Run one research request and return its merged result.

    Convenience wrapper that builds a :class:`ResearchEngine` for a single
    call.  Bounds on *breadth* and *depth* are the caller's responsibility.
    """
    engine = ResearchEngine(expander, extractor, search_provider, config=config)
    return await engine.run(
        ResearchSpec(query=query, breadth=breadth, depth=depth),
        on_progress=progress_callback,
    )
