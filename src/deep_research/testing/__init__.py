"""Test doubles for the deep research engine."""

from deep_research.testing.fakes import (
    ScriptedFindingsExtractor,
    ScriptedSearchProvider,
    StaticQueryExpander,
)
from deep_research.testing.mock_llm import MockStructuredChatModel

__all__ = [
    "MockStructuredChatModel",
    "ScriptedFindingsExtractor",
    "ScriptedSearchProvider",
    "StaticQueryExpander",
]
