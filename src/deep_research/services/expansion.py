"""Query expansion strategies.

A query expander turns one research query into several narrower
sub-questions, each with a stated research goal.  The engine calls the
expander exactly once per run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from deep_research.domain.values import ExpandedQuery


def fallback_query(query: str) -> ExpandedQuery:
    """The single sub-query used when expansion fails or returns nothing."""
    return ExpandedQuery(
        question=f"What are the key aspects of {query}?",
        goal=f"Research and analyze: {query}",
    )


class BaseQueryExpander(ABC):
    """Abstract base class for query expansion.

    Subclasses must implement :meth:`expand`.
    """

    @abstractmethod
    async def expand(
        self,
        query: str,
        num_queries: int,
        learnings: Sequence[str] = (),
    ) -> list[ExpandedQuery]:
        """Produce up to *num_queries* sub-questions for *query*.

        Parameters
        ----------
        query:
            The research query to expand.
        num_queries:
            Requested number of sub-questions.  Returning more is tolerated;
            the engine keeps only the first *num_queries*.
        learnings:
            Findings already known, which the expander may use to avoid
            asking for them again.

        Returns
        -------
        list[ExpandedQuery]
            Sub-questions in priority order.

        Raises
        ------
        ExpansionError
            If no usable sub-questions could be produced.
        """
