"""Progress tracking for research runs.

:class:`ProgressTracker` owns the single mutable :class:`ResearchProgress` of
a run and broadcasts a snapshot to every registered sink after each mutation.
A sink that raises is logged and skipped; it never affects traversal state or
the remaining sinks.  Coroutine sinks are scheduled on the running loop and
awaited by :meth:`ProgressTracker.drain`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

from deep_research.domain.entities import ResearchProgress

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ResearchProgress], Any]

_UPDATABLE_FIELDS = frozenset({"current_depth", "current_breadth", "current_query"})


class ProgressTracker:
    """Observable owner of a run's :class:`ResearchProgress`.

    Mutation happens under a lock and sinks are invoked **outside** it, in
    registration order, each with its own copy of the state.

    Usage::

        tracker = ProgressTracker(ResearchProgress.for_spec(spec))
        tracker.subscribe(print)
        tracker.update(current_query="What is X?", completed=True)
    """

    def __init__(self, progress: ResearchProgress) -> None:
        self._lock = threading.Lock()
        self._progress = progress
        self._sinks: list[ProgressSink] = []
        self._pending: set[asyncio.Future[Any]] = set()

    # -- subscription -------------------------------------------------------

    def subscribe(self, sink: ProgressSink) -> None:
        """Register *sink* to receive a snapshot after every update."""
        with self._lock:
            self._sinks.append(sink)

    def unsubscribe(self, sink: ProgressSink) -> bool:
        """Remove *sink*. Returns ``True`` if found."""
        with self._lock:
            try:
                self._sinks.remove(sink)
                return True
            except ValueError:
                return False

    # -- mutation -----------------------------------------------------------

    def update(self, *, completed: bool = False, **changes: Any) -> ResearchProgress:
        """Apply *changes* and notify sinks.

        Parameters
        ----------
        completed:
            If ``True``, count one more completed query.  The count is clamped
            at ``total_queries``.
        **changes:
            New values for ``current_depth``, ``current_breadth`` or
            ``current_query``.  ``total_queries`` cannot be changed here.

        Returns
        -------
        ResearchProgress
            The snapshot that was broadcast.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update progress fields: {sorted(unknown)}")

        with self._lock:
            for name, value in changes.items():
                setattr(self._progress, name, value)
            if completed:
                progress = self._progress
                if progress.completed_queries < progress.total_queries:
                    progress.completed_queries += 1
                else:
                    logger.debug(
                        "ProgressTracker: completed count already at total %d",
                        progress.total_queries,
                    )
            snapshot = self._progress.copy()
            sinks = list(self._sinks)

        self._notify(sinks, snapshot)
        return snapshot

    # -- introspection ------------------------------------------------------

    def snapshot(self) -> ResearchProgress:
        """Return a copy of the current progress."""
        with self._lock:
            return self._progress.copy()

    @property
    def sink_count(self) -> int:
        with self._lock:
            return len(self._sinks)

    async def drain(self) -> None:
        """Wait for every scheduled coroutine sink to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -- internal -----------------------------------------------------------

    def _notify(self, sinks: list[ProgressSink], snapshot: ResearchProgress) -> None:
        for sink in sinks:
            try:
                outcome = sink(snapshot.copy())
            except Exception:
                logger.exception("Error in progress sink %r", sink)
                continue
            if inspect.isawaitable(outcome):
                self._schedule(sink, outcome)

    def _schedule(self, sink: ProgressSink, outcome: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop: a coroutine sink cannot be driven from here.
            if inspect.iscoroutine(outcome):
                outcome.close()
            logger.warning("Progress sink %r is async but no event loop is running", sink)
            return
        future = asyncio.ensure_future(outcome, loop=loop)
        self._pending.add(future)

        def _done(fut: asyncio.Future[Any]) -> None:
            self._pending.discard(fut)
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                logger.error("Error in progress sink %r", sink, exc_info=exc)

        future.add_done_callback(_done)
