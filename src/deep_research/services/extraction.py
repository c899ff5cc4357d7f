"""Findings extraction strategies.

A findings extractor reads the content retrieved for one query and returns
learnings plus follow-up questions that drive the next level of research.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from deep_research.domain.values import ContentItem, Extraction

DEFAULT_CONTENT_CHAR_LIMIT = 25_000


def truncate_contents(
    contents: Iterable[ContentItem],
    limit: int = DEFAULT_CONTENT_CHAR_LIMIT,
) -> list[ContentItem]:
    """Hard-truncate each item's text to *limit* characters.

    Items whose text is empty are dropped.
    """
    truncated: list[ContentItem] = []
    for item in contents:
        if not item.text:
            continue
        if len(item.text) > limit:
            item = ContentItem(text=item.text[:limit], source_id=item.source_id)
        truncated.append(item)
    return truncated


class BaseFindingsExtractor(ABC):
    """Abstract base class for findings extraction.

    Subclasses must implement :meth:`extract`.
    """

    @abstractmethod
    async def extract(
        self,
        query: str,
        contents: Sequence[ContentItem],
        num_follow_ups: int,
    ) -> Extraction:
        """Extract learnings and follow-up questions from *contents*.

        Parameters
        ----------
        query:
            The query the contents were retrieved for.
        contents:
            Retrieved content, already truncated.  May be empty.
        num_follow_ups:
            Requested number of follow-up questions.

        Returns
        -------
        Extraction
            Fewer (or zero) learnings and questions than requested is valid.

        Raises
        ------
        ExtractionError
            If extraction could not be performed at all.
        """
