"""Chat model factory.

The services layer only depends on ``langchain_core``'s ``BaseChatModel``.
This module builds the concrete LangChain model (``ChatAnthropic`` or
``ChatOpenAI``) named by a :class:`ModelConfig`; the provider package is
imported only when that provider is requested.
"""

from __future__ import annotations

import logging

from langchain_core.language_models import BaseChatModel

from deep_research.domain.exceptions import ConfigurationError
from deep_research.infrastructure.config import ModelConfig

logger = logging.getLogger(__name__)


def create_chat_model(settings: ModelConfig) -> BaseChatModel:
    """Instantiate the chat model described by *settings*.

    Credentials are read by the LangChain integrations themselves
    (``ANTHROPIC_API_KEY`` / ``OPENAI_API_KEY``).

    Raises
    ------
    ConfigurationError
        If the provider is unknown.
    """
    logger.info(
        "create_chat_model: provider=%s model=%s", settings.provider, settings.model
    )
    if settings.provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(model=settings.model, temperature=settings.temperature)
    if settings.provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(model=settings.model, temperature=settings.temperature)
    raise ConfigurationError(
        f"Unknown model provider {settings.provider!r}",
        details={"provider": settings.provider},
    )
