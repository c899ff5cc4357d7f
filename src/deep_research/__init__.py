"""Deep research engine.

Expands a query into sub-questions, retrieves content for each, extracts
findings, and recursively researches follow-up questions under breadth and
depth budgets, merging everything into one deduplicated result.
"""

__version__ = "0.1.0"

from deep_research.domain import ResearchProgress, ResearchResult, ResearchSpec
from deep_research.services.engine import ResearchEngine, start_research

__all__ = [
    "ResearchEngine",
    "ResearchProgress",
    "ResearchResult",
    "ResearchSpec",
    "start_research",
]
