"""Content-retrieval providers.

Public API
----------
SearchProvider
    Abstract base class every provider implements.
BraveSearchProvider
    Brave Web Search API client.
GroundedSearchProvider
    Retrieval delegated to a web-grounded chat model.
create_search_provider
    Build a provider by registered name.
"""

from deep_research.infrastructure.search.base import SearchProvider
from deep_research.infrastructure.search.brave import BraveSearchProvider
from deep_research.infrastructure.search.grounded import GroundedSearchProvider
from deep_research.infrastructure.search.factory import (
    SearchProviderFactory,
    create_search_provider,
    create_search_provider_from_config,
)

__all__ = [
    "BraveSearchProvider",
    "GroundedSearchProvider",
    "SearchProvider",
    "SearchProviderFactory",
    "create_search_provider",
    "create_search_provider_from_config",
]
