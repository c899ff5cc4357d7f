"""Domain entities for the deep research engine.

``ResearchProgress`` is the one mutable, shared piece of state in a research
run.  It is owned by the engine, mutated only through the progress tracker's
``update`` entry point, and handed to observers as a snapshot copy.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from .branching import total_queries
from .values import ResearchSpec


@dataclass
class ResearchProgress:
    """Fine-grained progress across the whole traversal tree.

    ``total_queries`` is fixed before any work starts and
    ``completed_queries`` only ever grows, never past ``total_queries``.
    """

    total_depth: int
    current_depth: int
    total_breadth: int
    current_breadth: int
    total_queries: int = 0
    completed_queries: int = 0
    current_query: str | None = None

    @classmethod
    def for_spec(cls, spec: ResearchSpec) -> ResearchProgress:
        """Initial progress for *spec*, with the precomputed query total."""
        return cls(
            total_depth=spec.depth,
            current_depth=spec.depth,
            total_breadth=spec.breadth,
            current_breadth=spec.breadth,
            total_queries=total_queries(spec.breadth, spec.depth),
            completed_queries=0,
        )

    @property
    def percent(self) -> int:
        """Completed share of ``total_queries``, as an integer in [0, 100]."""
        if self.total_queries <= 0:
            return 0
        ratio = self.completed_queries / self.total_queries
        return max(0, min(100, round(ratio * 100)))

    @property
    def is_complete(self) -> bool:
        return self.total_queries > 0 and self.completed_queries >= self.total_queries

    def copy(self) -> ResearchProgress:
        """Return an independent snapshot of this progress."""
        return dataclasses.replace(self)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)
