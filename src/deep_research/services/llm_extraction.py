"""LLM-backed findings extraction using LangChain.

Given the content retrieved for one query, asks the chat model for concrete
learnings and follow-up questions.  Output is capped to the requested
counts.
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

from deep_research.domain.exceptions import ExtractionError
from deep_research.domain.values import ContentItem, Extraction
from deep_research.infrastructure.retry import is_transient_error, run_with_retry
from deep_research.services.extraction import BaseFindingsExtractor
from deep_research.services.llm_expansion import SYSTEM_PROMPT
from deep_research.services.parsing import parse_learnings

logger = logging.getLogger(__name__)


# -- Structured output schema ------------------------------------------------


class ExtractionOutput(BaseModel):
    """Learnings and follow-up questions extracted from content."""

    learnings: list[str] = Field(
        default_factory=list,
        description="Specific facts, data points and relationships",
    )
    follow_up_questions: list[str] = Field(
        default_factory=list,
        description="Specific questions about aspects not fully covered",
    )


# -- Prompt ------------------------------------------------------------------

_EXTRACTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", SYSTEM_PROMPT),
        (
            "human",
            'Analyze the following content about "{query}":\n\n'
            "Content:\n{content}\n\n"
            "Extract:\n"
            "1. Key Learnings (at least {num_learnings}):\n"
            "   - Focus on specific facts, data points, and relationships\n"
            "   - Each learning should be a complete, meaningful statement\n"
            "   - Include technical details when available\n"
            "   - Avoid generic or obvious statements\n\n"
            "2. Follow-up Questions (at least {num_follow_ups}):\n"
            "   - Questions should explore aspects not fully covered\n"
            "   - Each question should start with What, How, Why, When, Where, or Which\n"
            "   - Questions should be specific and detailed\n\n"
            'Format your response with clear sections for "Key Learnings:" and '
            '"Follow-up Questions:"',
        ),
    ]
)


def _format_contents(contents: Sequence[ContentItem]) -> str:
    if not contents:
        return "(no content was retrieved)"
    return "\n".join(f"---\n{item.text}\n---" for item in contents)


# -- LLMFindingsExtractor ----------------------------------------------------


class LLMFindingsExtractor(BaseFindingsExtractor):
    """Findings extractor backed by a LangChain chat model.

    Parameters
    ----------
    model:
        A LangChain chat model.
    num_learnings:
        Maximum number of learnings kept per extraction (default 3).
    structured:
        Use ``with_structured_output`` (default) instead of plain-text
        parsing.
    prompt:
        Optional custom ``ChatPromptTemplate``.  Receives ``query``,
        ``content``, ``num_learnings`` and ``num_follow_ups``.
    max_retries:
        Retries on transient model errors.
    sleep:
        Coroutine used for retry backoff.
    """

    def __init__(
        self,
        model: BaseChatModel,
        num_learnings: int = 3,
        structured: bool = True,
        prompt: ChatPromptTemplate | None = None,
        max_retries: int = 2,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.model = model
        self.num_learnings = num_learnings
        self.structured = structured
        self._prompt = prompt or _EXTRACTION_PROMPT
        self._max_retries = max_retries
        self._sleep = sleep or asyncio.sleep
        self._chain = self._build_chain()

    def _build_chain(self) -> Any:
        if self.structured:
            return self._prompt | self.model.with_structured_output(ExtractionOutput)
        return self._prompt | self.model | StrOutputParser()

    async def extract(
        self,
        query: str,
        contents: Sequence[ContentItem],
        num_follow_ups: int,
    ) -> Extraction:
        """Extract learnings and follow-up questions for *query*.

        Raises
        ------
        ExtractionError
            If the model call fails after retries.
        """
        inputs = {
            "query": query,
            "content": _format_contents(contents),
            "num_learnings": self.num_learnings,
            "num_follow_ups": num_follow_ups,
        }
        try:
            raw = await run_with_retry(
                lambda: self._chain.ainvoke(inputs),
                is_transient=is_transient_error,
                max_retries=self._max_retries,
                base_delay=1.0,
                sleep=self._sleep,
                description="LLMFindingsExtractor",
            )
        except Exception as exc:
            raise ExtractionError(
                f"Findings extraction failed: {exc}", query=query
            ) from exc

        if isinstance(raw, ExtractionOutput):
            learnings = tuple(s.strip() for s in raw.learnings if s.strip())
            questions = tuple(s.strip() for s in raw.follow_up_questions if s.strip())
        else:
            parsed = parse_learnings(str(raw))
            learnings, questions = parsed.learnings, parsed.follow_up_questions

        extraction = Extraction(
            learnings=learnings[: self.num_learnings],
            follow_up_questions=questions[: max(0, num_follow_ups)],
        )
        logger.debug(
            "LLMFindingsExtractor: %r -> %d learnings, %d follow-ups",
            query,
            len(extraction.learnings),
            len(extraction.follow_up_questions),
        )
        return extraction
