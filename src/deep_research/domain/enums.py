"""Domain enumerations for the deep research engine.

Fixed vocabularies shared by the domain and service layers: search failure
codes reported by retrieval providers and the lifecycle states a research
traversal moves through.
"""

from enum import Enum


class SearchErrorCode(Enum):
    """Classification of a failed content-retrieval call."""

    RATE_LIMIT = "RATE_LIMIT"  # provider throttled us, retryable
    API_ERROR = "API_ERROR"  # provider answered with a non-429 error
    UNKNOWN_ERROR = "UNKNOWN_ERROR"  # transport failure or malformed payload
    MODEL_ERROR = "MODEL_ERROR"  # grounded chat model call failed


class TraversalState(Enum):
    """Finite-state-machine states for a single research branch."""

    EXPANDING = "expanding"
    SEARCHING = "searching"
    EXTRACTING = "extracting"
    RECURSING = "recursing"
    DONE = "done"
    FAILED = "failed"
