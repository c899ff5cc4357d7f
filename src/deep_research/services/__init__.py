"""Service layer for the deep research engine.

Re-exports public service types for convenient top-level access::

    from deep_research.services import (
        ResearchEngine, ResearchTraversal, start_research,
        BaseQueryExpander, BaseFindingsExtractor,
        LLMQueryExpander, LLMFindingsExtractor, LLMSummaryWriter,
    )
"""

from deep_research.services.engine import ResearchEngine, start_research
from deep_research.services.expansion import BaseQueryExpander, fallback_query
from deep_research.services.extraction import BaseFindingsExtractor, truncate_contents
from deep_research.services.llm_expansion import (
    LLMQueryExpander,
    QueryExpansionOutput,
    ResearchQuery,
)
from deep_research.services.llm_extraction import ExtractionOutput, LLMFindingsExtractor
from deep_research.services.llm_summary import SUMMARY_FAILED, LLMSummaryWriter
from deep_research.services.parsing import parse_learnings, parse_queries
from deep_research.services.traversal import (
    ResearchTraversal,
    continuation_query,
    error_findings,
)

__all__ = [
    # Engine
    "ResearchEngine",
    "ResearchTraversal",
    "continuation_query",
    "error_findings",
    "start_research",
    # Collaborator interfaces
    "BaseFindingsExtractor",
    "BaseQueryExpander",
    "fallback_query",
    "truncate_contents",
    # LLM adapters
    "ExtractionOutput",
    "LLMFindingsExtractor",
    "LLMQueryExpander",
    "LLMSummaryWriter",
    "QueryExpansionOutput",
    "ResearchQuery",
    "SUMMARY_FAILED",
    # Parsers
    "parse_learnings",
    "parse_queries",
]
