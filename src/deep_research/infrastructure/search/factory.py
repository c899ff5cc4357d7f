"""Search provider factory.

Registry mapping provider names to constructor functions.  Built-in providers
are registered lazily so their modules are only imported when used.

Usage::

    factory = SearchProviderFactory()
    provider = factory.create("brave", api_key="...")

    # or, from a SearchConfig (the grounded provider needs a chat model)
    provider = create_search_provider_from_config(config.search, model=model)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from deep_research.domain.exceptions import ConfigurationError
from deep_research.infrastructure.config import SearchConfig
from deep_research.infrastructure.search.base import SearchProvider

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

ProviderConstructor = Callable[..., SearchProvider]


class SearchProviderFactory:
    """Registry-based factory for :class:`SearchProvider` instances.

    Parameters
    ----------
    auto_discover:
        If ``True`` (default), pre-register the built-in providers.
    """

    def __init__(self, auto_discover: bool = True) -> None:
        self._registry: dict[str, ProviderConstructor] = {}
        if auto_discover:
            self._registry["brave"] = self._create_brave
            self._registry["grounded"] = self._create_grounded

    def register(
        self,
        name: str,
        constructor: ProviderConstructor,
        overwrite: bool = False,
    ) -> None:
        """Register *constructor* under *name*.

        Raises
        ------
        ValueError
            If *name* is taken and ``overwrite`` is ``False``.
        """
        if name in self._registry and not overwrite:
            raise ValueError(
                f"Search provider {name!r} is already registered. "
                f"Use overwrite=True to replace it."
            )
        self._registry[name] = constructor
        logger.debug("SearchProviderFactory: registered provider %r", name)

    def create(self, provider_name: str, **kwargs: Any) -> SearchProvider:
        """Build the provider registered as *provider_name*.

        Raises
        ------
        ConfigurationError
            If the name is unknown, or the provider rejects its settings.
        """
        constructor = self._registry.get(provider_name)
        if constructor is None:
            available = ", ".join(sorted(self._registry))
            raise ConfigurationError(
                f"Unknown search provider {provider_name!r}. "
                f"Available providers: {available}",
                details={"provider": provider_name},
            )
        logger.info(
            "SearchProviderFactory: creating provider %r with kwargs %s",
            provider_name,
            sorted(k for k in kwargs if k != "api_key"),
        )
        return constructor(**kwargs)

    @property
    def registered_providers(self) -> list[str]:
        return sorted(self._registry)

    @staticmethod
    def _create_brave(**kwargs: Any) -> SearchProvider:
        from deep_research.infrastructure.search.brave import BraveSearchProvider

        return BraveSearchProvider(**kwargs)

    @staticmethod
    def _create_grounded(**kwargs: Any) -> SearchProvider:
        from deep_research.infrastructure.search.grounded import GroundedSearchProvider

        return GroundedSearchProvider(**kwargs)


_default_factory = SearchProviderFactory()


def create_search_provider(name: str = "brave", **kwargs: Any) -> SearchProvider:
    """Build a search provider by name using the default registry."""
    return _default_factory.create(name, **kwargs)


def create_search_provider_from_config(
    config: SearchConfig,
    model: BaseChatModel | None = None,
) -> SearchProvider:
    """Build the provider described by a :class:`SearchConfig`.

    Raises
    ------
    ConfigurationError
        If the grounded provider is selected without a chat *model*.
    """
    if config.provider == "grounded":
        if model is None:
            raise ConfigurationError(
                "The grounded search provider needs a chat model",
                details={"provider": config.provider},
            )
        return create_search_provider(
            "grounded",
            model=model,
            max_sources=config.results_per_query,
            max_retries=config.max_retries,
        )
    return create_search_provider(
        config.provider,
        api_key=config.api_key,
        count=config.results_per_query,
        max_retries=config.max_retries,
        base_retry_delay=config.base_retry_delay,
        timeout=config.timeout,
    )
