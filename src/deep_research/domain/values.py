"""Value objects for the deep research engine.

All types here are frozen dataclasses: immutable and compared by value.
They describe research requests, collaborator payloads, and the finding sets
that flow through a traversal.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

# Recommended operating envelope; not enforced by the engine itself.
MIN_BREADTH = 2
MAX_RECOMMENDED_BREADTH = 10
MIN_DEPTH = 1
MAX_RECOMMENDED_DEPTH = 5


# ---------------------------------------------------------------------------
# ResearchSpec
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResearchSpec:
    """An immutable research request: what to research and how wide / deep.

    ``breadth`` is the number of top-level sub-queries; it halves (rounded up)
    at every deeper level.  ``depth`` is the number of levels every branch
    descends before terminating.
    """

    query: str
    breadth: int = 3
    depth: int = 2

    def validate(self) -> None:
        """Raise ``ValueError`` if the request is below the minimum bounds."""
        if not self.query.strip():
            raise ValueError("query must not be empty")
        if self.breadth < MIN_BREADTH:
            raise ValueError(f"breadth must be >= {MIN_BREADTH}, got {self.breadth}")
        if self.depth < MIN_DEPTH:
            raise ValueError(f"depth must be >= {MIN_DEPTH}, got {self.depth}")

    @property
    def within_recommended_bounds(self) -> bool:
        """True when breadth is in 2..10 and depth in 1..5."""
        return (
            MIN_BREADTH <= self.breadth <= MAX_RECOMMENDED_BREADTH
            and MIN_DEPTH <= self.depth <= MAX_RECOMMENDED_DEPTH
        )


# ---------------------------------------------------------------------------
# Collaborator payloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ContentItem:
    """One retrieved piece of content and the identifier (URL) it came from."""

    text: str
    source_id: str = ""


@dataclass(frozen=True)
class ExpandedQuery:
    """A sub-question produced by query expansion, with its research goal."""

    question: str
    goal: str = ""


@dataclass(frozen=True)
class Extraction:
    """Learnings and follow-up questions extracted from retrieved content.

    Either sequence may be empty; an empty extraction means "nothing new was
    learned" and is not an error.
    """

    learnings: tuple[str, ...] = ()
    follow_up_questions: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# FindingSet
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FindingSet:
    """Per-branch accumulator of learnings and source identifiers.

    Each recursive step receives its own ``FindingSet`` and returns a new one;
    nothing is shared between concurrently running branches.  Items are
    concatenated, never deduplicated, while a branch recurses.
    """

    learnings: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()

    def extend(
        self,
        learnings: Iterable[str] = (),
        sources: Iterable[str] = (),
    ) -> FindingSet:
        """Return a new set with *learnings* and *sources* appended."""
        return FindingSet(
            learnings=self.learnings + tuple(learnings),
            sources=self.sources + tuple(sources),
        )

    def __len__(self) -> int:
        return len(self.learnings)


# ---------------------------------------------------------------------------
# ResearchResult
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResearchResult:
    """The merged outcome of a whole research run.

    ``degraded`` is set when the engine had to fall back to its minimal
    result after an unexpected failure; callers may want to retry at a higher
    level when they see it.
    """

    learnings: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()
    degraded: bool = False

    @classmethod
    def fallback(cls, query: str) -> ResearchResult:
        """The minimal result reported when a run could not complete."""
        return cls(
            learnings=(f"Research attempted on: {query}",),
            sources=(),
            degraded=True,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "learnings": list(self.learnings),
            "sources": list(self.sources),
            "degraded": self.degraded,
        }


def _dedupe_preserve_order(items: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def merge_results(branches: Sequence[FindingSet]) -> ResearchResult:
    """Merge branch results, deduplicating by exact value.

    First occurrence wins, so the order of *branches* decides the order of
    the merged lists.  Merging an already merged result is a no-op.
    """
    learnings = _dedupe_preserve_order(
        learning for branch in branches for learning in branch.learnings
    )
    sources = _dedupe_preserve_order(
        source for branch in branches for source in branch.sources
    )
    return ResearchResult(learnings=learnings, sources=sources)
