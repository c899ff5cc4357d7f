"""Decayed branching factor arithmetic.

Breadth halves, rounded up, at every level of a branch.  These helpers are
pure functions of ``(breadth, depth)`` and are shared by the traversal (which
decays breadth as it recurses) and the progress model (which precomputes the
total number of queries for display).
"""

from __future__ import annotations

import math


def decay_breadth(breadth: int) -> int:
    """Return the breadth used one level deeper: ``ceil(breadth / 2)``.

    The result never drops below 1, so a branch always has at least one
    follow-up candidate until its depth runs out.
    """
    return max(1, math.ceil(breadth / 2))


def queries_per_level(breadth: int, depth: int) -> list[int]:
    """Breadth at each level ``0 .. depth - 1``.

    >>> queries_per_level(10, 4)
    [10, 5, 3, 2]
    """
    levels: list[int] = []
    current = breadth
    for _ in range(max(0, depth)):
        levels.append(current)
        current = decay_breadth(current)
    return levels


def total_queries(breadth: int, depth: int) -> int:
    """Total number of queries a ``(breadth, depth)`` request is expected to run.

    Equals ``sum(ceil(breadth / 2**i) for i in range(depth))``.  Used only for
    progress display, never as an execution limit.
    """
    return sum(queries_per_level(breadth, depth))
