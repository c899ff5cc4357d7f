"""Domain layer for the deep research engine.

Re-exports all public domain types so that consumers can write::

    from deep_research.domain import ResearchSpec, FindingSet, ResearchProgress
"""

# -- Enumerations -------------------------------------------------------------
from .enums import SearchErrorCode, TraversalState

# -- Value Objects ------------------------------------------------------------
from .values import (
    ContentItem,
    ExpandedQuery,
    Extraction,
    FindingSet,
    ResearchResult,
    ResearchSpec,
    merge_results,
)

# -- Entities -----------------------------------------------------------------
from .entities import ResearchProgress

# -- Branching arithmetic -----------------------------------------------------
from .branching import decay_breadth, queries_per_level, total_queries

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    ConfigurationError,
    DeepResearchError,
    ExpansionError,
    ExtractionError,
    MaxRetriesExceededError,
    SearchError,
    SearchRateLimitError,
)

__all__ = [
    # Enums
    "SearchErrorCode",
    "TraversalState",
    # Values
    "ContentItem",
    "ExpandedQuery",
    "Extraction",
    "FindingSet",
    "ResearchResult",
    "ResearchSpec",
    "merge_results",
    # Entities
    "ResearchProgress",
    # Branching
    "decay_breadth",
    "queries_per_level",
    "total_queries",
    # Exceptions
    "ConfigurationError",
    "DeepResearchError",
    "ExpansionError",
    "ExtractionError",
    "MaxRetriesExceededError",
    "SearchError",
    "SearchRateLimitError",
]
