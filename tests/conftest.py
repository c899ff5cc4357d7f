"""Shared fixtures for the deep research test suite."""

from __future__ import annotations

import pytest

from deep_research.domain.values import ContentItem, Extraction, ResearchSpec
from deep_research.infrastructure.config import TraversalConfig
from deep_research.testing import (
    ScriptedFindingsExtractor,
    ScriptedSearchProvider,
    StaticQueryExpander,
)

# ---------------------------------------------------------------------------
# Time control
# ---------------------------------------------------------------------------


class RecordingSleep:
    """Async sleep replacement that records requested delays and returns."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_spec() -> ResearchSpec:
    """The canonical breadth=3, depth=2 request (5 total queries)."""
    return ResearchSpec(query="solid-state batteries", breadth=3, depth=2)


@pytest.fixture
def fast_config() -> TraversalConfig:
    """Traversal config with no search spacing."""
    return TraversalConfig(search_min_interval=0.0)


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def search_provider() -> ScriptedSearchProvider:
    """Returns one content item per query, sourced from a per-query URL."""
    return ScriptedSearchProvider(
        default=lambda q: [ContentItem(text=f"content about {q}", source_id=f"https://example.com/{q}")]
    )


@pytest.fixture
def extractor() -> ScriptedFindingsExtractor:
    """Learns one fact per query and asks no follow-ups."""
    return ScriptedFindingsExtractor(
        default=lambda q, contents, n: Extraction(learnings=(f"fact about {q}",))
    )


@pytest.fixture
def expander() -> StaticQueryExpander:
    return StaticQueryExpander(["q1?", "q2?", "q3?"])
