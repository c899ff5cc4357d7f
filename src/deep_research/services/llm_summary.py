"""Narrative summary of research learnings."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from deep_research.infrastructure.retry import is_transient_error, run_with_retry
from deep_research.services.llm_expansion import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

SUMMARY_FAILED = "Failed to generate summary."

_SUMMARY_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", SYSTEM_PROMPT),
        (
            "human",
            "Write a comprehensive narrative summary about {query} based on "
            "these key findings:\n\n{findings}\n\n"
            "Requirements:\n"
            "1. Write in a clear, engaging style\n"
            "2. Organize information logically\n"
            "3. Connect related concepts\n"
            "4. Highlight key relationships and implications\n"
            "5. Maintain technical accuracy\n"
            "6. Break into paragraphs for readability\n\n"
            'Do not include any introductory text like "Here\'s a summary". '
            "Just write the narrative directly.",
        ),
    ]
)


class LLMSummaryWriter:
    """Writes a prose summary of a run's learnings.

    Never raises for model failures; returns :data:`SUMMARY_FAILED` instead.
    """

    def __init__(
        self,
        model: BaseChatModel,
        prompt: ChatPromptTemplate | None = None,
        max_retries: int = 2,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.model = model
        self._chain = (prompt or _SUMMARY_PROMPT) | model | StrOutputParser()
        self._max_retries = max_retries
        self._sleep = sleep or asyncio.sleep

    async def summarize(self, query: str, learnings: Sequence[str]) -> str:
        findings = "\n".join(f"{i}. {learning}" for i, learning in enumerate(learnings, 1))
        try:
            text = await run_with_retry(
                lambda: self._chain.ainvoke({"query": query, "findings": findings}),
                is_transient=is_transient_error,
                max_retries=self._max_retries,
                base_delay=1.0,
                sleep=self._sleep,
                description="LLMSummaryWriter",
            )
        except Exception as exc:
            logger.warning("LLMSummaryWriter: summary for %r failed: %s", query, exc)
            return SUMMARY_FAILED
        text = str(text).strip()
        return text or SUMMARY_FAILED
