"""LLM-backed query expansion using LangChain.

Asks a chat model for distinct research questions about a query.  With
structured output enabled the model fills a :class:`QueryExpansionOutput`
schema; otherwise its plain-text reply is parsed line by line.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from deep_research.domain.exceptions import ExpansionError
from deep_research.domain.values import ExpandedQuery
from deep_research.infrastructure.retry import is_transient_error, run_with_retry
from deep_research.services.expansion import BaseQueryExpander
from deep_research.services.parsing import parse_queries

logger = logging.getLogger(__name__)


# -- Structured output schemas -----------------------------------------------


class ResearchQuery(BaseModel):
    """A single research question with its goal."""

    query: str = Field(description="The research question")
    research_goal: str = Field(
        default="", description="What answering this question should achieve"
    )


class QueryExpansionOutput(BaseModel):
    """Research questions generated for a query."""

    queries: list[ResearchQuery] = Field(description="Distinct research questions")


# -- Prompt ------------------------------------------------------------------

SYSTEM_PROMPT = (
    "You are a research assistant helping to explore topics in depth. "
    "Your responses must be structured, focused on the specific task, "
    "factual and precise, and easy to parse programmatically.\n\n"
    "When generating queries:\n"
    '- Start each query with "What", "How", "Why", "When", "Where" or "Which"\n'
    "- Make each query specific and focused\n"
    "- End each query with a question mark\n"
    "- Focus on different aspects of the topic\n\n"
    "Format your responses as lists without any introductory text."
)

_EXPANSION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", SYSTEM_PROMPT),
        (
            "human",
            'Generate {num_queries} specific research questions about: "{query}"\n\n'
            "{previous_findings}"
            "Requirements:\n"
            "1. Each question must start with What, How, Why, When, Where or Which\n"
            "2. Each question must end with a question mark\n"
            "3. Each question must focus on a different aspect\n"
            "4. Questions must be specific and detailed\n\n"
            "Example format:\n"
            "What are the fundamental principles of quantum entanglement?\n"
            "How does quantum superposition enable parallel computation?\n\n"
            "Do not include any introductory text. Just list the questions.",
        ),
    ]
)


def _format_findings(learnings: Sequence[str]) -> str:
    if not learnings:
        return ""
    return "Previous Findings:\n" + "\n".join(learnings) + "\n\n"


# -- LLMQueryExpander --------------------------------------------------------


class LLMQueryExpander(BaseQueryExpander):
    """Query expander backed by a LangChain chat model.

    Parameters
    ----------
    model:
        A LangChain chat model (e.g. ``ChatAnthropic``, ``ChatOpenAI``).
    structured:
        Use ``with_structured_output`` (default) instead of plain-text
        parsing.
    prompt:
        Optional custom ``ChatPromptTemplate``.  Receives ``query``,
        ``num_queries`` and ``previous_findings``.
    max_retries:
        Retries on transient model errors (429, 5xx, resets, timeouts).
    sleep:
        Coroutine used for retry backoff.
    """

    def __init__(
        self,
        model: BaseChatModel,
        structured: bool = True,
        prompt: ChatPromptTemplate | None = None,
        max_retries: int = 2,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.model = model
        self.structured = structured
        self._prompt = prompt or _EXPANSION_PROMPT
        self._max_retries = max_retries
        self._sleep = sleep or asyncio.sleep
        self._chain = self._build_chain()

    def _build_chain(self) -> Any:
        if self.structured:
            return self._prompt | self.model.with_structured_output(QueryExpansionOutput)
        return self._prompt | self.model | StrOutputParser()

    async def expand(
        self,
        query: str,
        num_queries: int,
        learnings: Sequence[str] = (),
    ) -> list[ExpandedQuery]:
        """Ask the model for up to *num_queries* research questions.

        Raises
        ------
        ExpansionError
            If the model call fails or yields no questions.
        """
        inputs = {
            "query": query,
            "num_queries": num_queries,
            "previous_findings": _format_findings(learnings),
        }
        try:
            raw = await run_with_retry(
                lambda: self._chain.ainvoke(inputs),
                is_transient=is_transient_error,
                max_retries=self._max_retries,
                base_delay=1.0,
                sleep=self._sleep,
                description="LLMQueryExpander",
            )
        except Exception as exc:
            raise ExpansionError(
                f"Query expansion failed: {exc}", query=query
            ) from exc

        if isinstance(raw, QueryExpansionOutput):
            queries = [
                ExpandedQuery(
                    question=q.query.strip(),
                    goal=q.research_goal or f"Research and analyze: {q.query.strip()}",
                )
                for q in raw.queries
                if q.query.strip()
            ]
        else:
            queries = parse_queries(str(raw))

        if not queries:
            raise ExpansionError("Model returned no research questions", query=query)

        logger.debug(
            "LLMQueryExpander: %d questions for %r (requested %d)",
            len(queries),
            query,
            num_queries,
        )
        return queries[:num_queries]
