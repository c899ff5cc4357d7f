"""Search provider that delegates retrieval to a web-grounded chat model.

Some chat models search the web themselves and cite what they found.  This
provider asks such a model for findings on a query and turns each cited
source into a :class:`ContentItem`.  When the model cites nothing, its answer
comes back as a single item attributed to :data:`GROUNDED_SOURCE_ID`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from deep_research.domain.enums import SearchErrorCode
from deep_research.domain.exceptions import SearchError
from deep_research.domain.values import ContentItem
from deep_research.infrastructure.retry import is_transient_error, run_with_retry
from deep_research.infrastructure.search.base import SearchProvider

logger = logging.getLogger(__name__)

GROUNDED_SOURCE_ID = "llm-grounded"


# -- Structured output schema ------------------------------------------------


class GroundedSource(BaseModel):
    """One web page the model consulted."""

    url: str = Field(description="URL of the page")
    title: str = Field(default="", description="Page title")
    snippet: str = Field(default="", description="Relevant excerpt from the page")


class GroundedSearchOutput(BaseModel):
    """The model's findings and the sources backing them."""

    answer: str = Field(description="Detailed findings about the query")
    sources: list[GroundedSource] = Field(
        default_factory=list,
        description="Web sources the findings are based on",
    )


_GROUNDED_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a research assistant. Use web search to find accurate, "
            "up-to-date information.",
        ),
        (
            "human",
            "Search for comprehensive information about: {query}\n\n"
            "Provide detailed findings with sources.",
        ),
    ]
)


class GroundedSearchProvider(SearchProvider):
    """Search provider backed by a LangChain chat model with web access.

    Parameters
    ----------
    model:
        Chat model able to search the web (for example one bound to a
        provider's web-search tool).
    max_sources:
        Maximum number of cited sources turned into content items.
    structured:
        Request :class:`GroundedSearchOutput` via ``with_structured_output``.
        When ``False`` the plain answer text is used and no sources are
        reported.
    prompt:
        Optional custom ``ChatPromptTemplate`` receiving ``query``.
    max_retries:
        Retries on transient model errors.
    sleep:
        Coroutine used for retry backoff.
    """

    def __init__(
        self,
        model: BaseChatModel,
        max_sources: int = 10,
        structured: bool = True,
        prompt: ChatPromptTemplate | None = None,
        max_retries: int = 2,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.model = model
        self.max_sources = max_sources
        self.structured = structured
        self._prompt = prompt or _GROUNDED_PROMPT
        self._max_retries = max_retries
        self._sleep = sleep or asyncio.sleep
        self._chain = self._build_chain()

    @property
    def provider_name(self) -> str:
        return "grounded"

    def _build_chain(self) -> Any:
        if self.structured:
            return self._prompt | self.model.with_structured_output(GroundedSearchOutput)
        return self._prompt | self.model | StrOutputParser()

    async def search(self, query: str) -> list[ContentItem]:
        """Ask the model about *query* and return its cited content.

        Raises
        ------
        SearchError
            With code ``MODEL_ERROR`` when the model call fails after
            retries.
        """
        if not query.strip():
            return []
        logger.debug("GroundedSearchProvider: searching %r", query)
        try:
            raw = await run_with_retry(
                lambda: self._chain.ainvoke({"query": query}),
                is_transient=is_transient_error,
                max_retries=self._max_retries,
                base_delay=1.0,
                sleep=self._sleep,
                description="GroundedSearchProvider",
            )
        except Exception as exc:
            logger.warning("GroundedSearchProvider: search for %r failed: %s", query, exc)
            raise SearchError(
                f"Grounded search failed: {exc}",
                code=SearchErrorCode.MODEL_ERROR,
                provider=self.provider_name,
            ) from exc

        if isinstance(raw, GroundedSearchOutput):
            answer, sources = raw.answer.strip(), raw.sources
        else:
            answer, sources = str(raw).strip(), []

        items = [
            ContentItem(text=source.snippet.strip() or answer, source_id=source.url.strip())
            for source in sources[: self.max_sources]
            if source.url.strip()
        ]
        if not items and answer:
            logger.info("GroundedSearchProvider: no citations for %r, using answer", query)
            items = [ContentItem(text=answer, source_id=GROUNDED_SOURCE_ID)]
        return items
