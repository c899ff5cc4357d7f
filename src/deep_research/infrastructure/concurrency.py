"""Bounded concurrency runner.

:func:`run_all` executes a list of zero-argument coroutine factories with a
fixed pool of worker coroutines pulling from a queue, so no more than
``limit`` tasks are ever in flight.  Results come back in completion order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

TaskFactory = Callable[[], Awaitable[T]]


async def run_all(
    tasks: Sequence[TaskFactory[T]],
    limit: int,
    *,
    return_exceptions: bool = False,
) -> list[Any]:
    """Run every task with at most *limit* running at once.

    Parameters
    ----------
    tasks:
        Zero-argument callables, each returning an awaitable.  A task is only
        started when a worker picks it up.
    limit:
        Maximum number of tasks in flight.  Values below 1 are treated as 1.
    return_exceptions:
        If ``True``, a task's exception is placed in the result list instead
        of being raised.

    Returns
    -------
    list
        One entry per task, in the order the tasks *completed*.  Callers that
        need to map results back to tasks must pair identity into the result
        themselves.

    Raises
    ------
    Exception
        Unless *return_exceptions* is set, the first task failure (in
        completion order) is re-raised, but only after every other task has
        finished.  A failing task never cancels its siblings.
    """
    if not tasks:
        return []

    workers = max(1, min(limit, len(tasks)))
    queue: asyncio.Queue[TaskFactory[T]] = asyncio.Queue()
    for task in tasks:
        queue.put_nowait(task)

    outcomes: list[tuple[bool, Any]] = []

    async def worker(worker_id: int) -> None:
        while True:
            try:
                task = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                outcomes.append((True, await task()))
            except Exception as exc:
                logger.debug("run_all: worker %d task failed: %r", worker_id, exc)
                outcomes.append((False, exc))
            finally:
                queue.task_done()

    logger.debug("run_all: %d tasks on %d workers", len(tasks), workers)
    await asyncio.gather(*(worker(i) for i in range(workers)))

    if not return_exceptions:
        for ok, value in outcomes:
            if not ok:
                raise value
    return [value for _, value in outcomes]
