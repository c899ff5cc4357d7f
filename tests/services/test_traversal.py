"""Tests for the recursive research traversal."""

from __future__ import annotations

import pytest

from deep_research.domain.entities import ResearchProgress
from deep_research.domain.exceptions import (
    ExtractionError,
    MaxRetriesExceededError,
    SearchError,
    SearchRateLimitError,
)
from deep_research.domain.values import ContentItem, Extraction, FindingSet
from deep_research.infrastructure.config import TraversalConfig
from deep_research.infrastructure.progress import ProgressTracker
from deep_research.services.traversal import ResearchTraversal, continuation_query
from deep_research.testing import ScriptedFindingsExtractor, ScriptedSearchProvider


def _traversal(search, extractor, sleep, config=None, tracker=None) -> ResearchTraversal:
    return ResearchTraversal(
        search,
        extractor,
        tracker=tracker,
        config=config or TraversalConfig(search_min_interval=0.0),
        sleep=sleep,
    )


class TestContinuationQuery:

    def test_strips_trailing_question_mark(self) -> None:
        assert continuation_query("What is X?") == "Tell me more about What is X"

    def test_plain_query(self) -> None:
        assert continuation_query("graphene") == "Tell me more about graphene"


class TestResearchTraversal:

    @pytest.mark.asyncio
    async def test_single_level(self, search_provider, extractor, recording_sleep) -> None:
        traversal = _traversal(search_provider, extractor, recording_sleep)

        findings = await traversal.research("q1?", depth=1, breadth=3)

        assert findings.learnings == ("fact about q1?",)
        assert findings.sources == ("https://example.com/q1?",)
        assert search_provider.calls == ["q1?"]

    @pytest.mark.asyncio
    async def test_recurses_on_first_follow_up(self, search_provider, recording_sleep) -> None:
        extractor = ScriptedFindingsExtractor(
            {
                "root?": Extraction(
                    learnings=("L-root",),
                    follow_up_questions=("deeper?", "other?"),
                ),
                "deeper?": Extraction(learnings=("L-deeper",)),
            }
        )
        traversal = _traversal(search_provider, extractor, recording_sleep)

        findings = await traversal.research("root?", depth=2, breadth=4)

        assert search_provider.calls == ["root?", "deeper?"]
        assert findings.learnings == ("L-root", "L-deeper")
        # follow-ups requested: ceil(4/2) at depth 2, ceil(2/2) at depth 1
        assert [n for _, _, n in extractor.calls] == [2, 1]

    @pytest.mark.asyncio
    async def test_no_follow_ups_uses_continuation(
        self, search_provider, extractor, recording_sleep
    ) -> None:
        traversal = _traversal(search_provider, extractor, recording_sleep)

        await traversal.research("What is X?", depth=2, breadth=3)

        assert search_provider.calls == ["What is X?", "Tell me more about What is X"]

    @pytest.mark.asyncio
    async def test_blank_follow_ups_are_skipped(self, search_provider, recording_sleep) -> None:
        extractor = ScriptedFindingsExtractor(
            {"q?": Extraction(learnings=("L",), follow_up_questions=("", "   "))}
        )
        traversal = _traversal(search_provider, extractor, recording_sleep)

        await traversal.research("q?", depth=2, breadth=2)

        assert search_provider.calls == ["q?", "Tell me more about q"]

    @pytest.mark.asyncio
    async def test_first_non_blank_follow_up_used(self, search_provider, recording_sleep) -> None:
        extractor = ScriptedFindingsExtractor(
            {"q?": Extraction(follow_up_questions=(" ", "next?"))}
        )
        traversal = _traversal(search_provider, extractor, recording_sleep)

        await traversal.research("q?", depth=2, breadth=2)

        assert search_provider.calls == ["q?", "next?"]

    @pytest.mark.asyncio
    async def test_recursion_ends_after_depth_levels(
        self, search_provider, extractor, recording_sleep
    ) -> None:
        traversal = _traversal(search_provider, extractor, recording_sleep)
        await traversal.research("q", depth=4, breadth=10)
        assert len(search_provider.calls) == 4

    @pytest.mark.asyncio
    async def test_prior_findings_are_kept(self, search_provider, extractor, recording_sleep) -> None:
        traversal = _traversal(search_provider, extractor, recording_sleep)
        prior = FindingSet(learnings=("old",), sources=("s0",))

        findings = await traversal.research("q", depth=1, breadth=2, findings=prior)

        assert findings.learnings == ("old", "fact about q")
        assert findings.sources == ("s0", "https://example.com/q")
        assert prior.learnings == ("old",)

    @pytest.mark.asyncio
    async def test_content_truncated_and_empty_dropped(self, extractor, recording_sleep) -> None:
        search = ScriptedSearchProvider(
            default=[
                ContentItem(text="x" * 30, source_id="long"),
                ContentItem(text="", source_id="empty"),
            ]
        )
        config = TraversalConfig(search_min_interval=0.0, content_char_limit=10)
        traversal = _traversal(search, extractor, recording_sleep, config=config)

        findings = await traversal.research("q", depth=1, breadth=2)

        _, contents, _ = extractor.calls[0]
        assert [c.text for c in contents] == ["x" * 10]
        # sources still come from every retrieved item
        assert findings.sources == ("long", "empty")

    @pytest.mark.asyncio
    async def test_zero_results_still_extracts(self, extractor, recording_sleep) -> None:
        search = ScriptedSearchProvider(default=[])
        traversal = _traversal(search, extractor, recording_sleep)

        findings = await traversal.research("q", depth=1, breadth=2)

        assert extractor.calls[0][1] == []
        assert findings.learnings == ("fact about q",)
        assert findings.sources == ()

    @pytest.mark.asyncio
    async def test_progress_updated_per_step(
        self, search_provider, extractor, recording_sleep
    ) -> None:
        tracker = ProgressTracker(ResearchProgress(2, 2, 3, 3, total_queries=5))
        seen: list[ResearchProgress] = []
        tracker.subscribe(seen.append)
        traversal = _traversal(search_provider, extractor, recording_sleep, tracker=tracker)

        await traversal.research("q", depth=2, breadth=3)

        assert [p.completed_queries for p in seen] == [1, 2]
        assert [(p.current_depth, p.current_breadth) for p in seen] == [(2, 3), (1, 2)]
        assert seen[-1].current_query == "Tell me more about q"


class TestTraversalFailures:

    @pytest.mark.asyncio
    async def test_rate_limit_exhaustion_propagates(self, extractor, recording_sleep) -> None:
        search = ScriptedSearchProvider(default=SearchRateLimitError(provider="scripted"))
        traversal = _traversal(search, extractor, recording_sleep)

        with pytest.raises(MaxRetriesExceededError) as info:
            await traversal.research("q", depth=2, breadth=3)

        assert recording_sleep.delays == [10.0, 20.0, 40.0]
        assert len(search.calls) == 4
        assert isinstance(info.value.last_error, SearchRateLimitError)
        assert extractor.calls == []

    @pytest.mark.asyncio
    async def test_rate_limit_then_recovery(self, extractor, recording_sleep) -> None:
        search = ScriptedSearchProvider(
            {
                "q": (
                    SearchRateLimitError(),
                    [ContentItem(text="t", source_id="s")],
                )
            }
        )
        traversal = _traversal(search, extractor, recording_sleep)

        findings = await traversal.research("q", depth=1, breadth=2)

        assert recording_sleep.delays == [10.0]
        assert findings.sources == ("s",)

    @pytest.mark.asyncio
    async def test_search_error_degrades_branch(self, extractor, recording_sleep) -> None:
        search = ScriptedSearchProvider(default=SearchError("HTTP 500"))
        traversal = _traversal(search, extractor, recording_sleep)
        prior = FindingSet(learnings=("old",), sources=("s0",))

        findings = await traversal.research("q", depth=3, breadth=3, findings=prior)

        assert findings == FindingSet(learnings=("Error researching: q",), sources=())
        assert search.calls == ["q"]
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_extraction_error_degrades_branch(self, search_provider, recording_sleep) -> None:
        extractor = ScriptedFindingsExtractor(default=ExtractionError("model down"))
        traversal = _traversal(search_provider, extractor, recording_sleep)

        findings = await traversal.research("q", depth=2, breadth=3)

        assert findings.learnings == ("Error researching: q",)
        assert search_provider.calls == ["q"]

    @pytest.mark.asyncio
    async def test_failure_at_depth_discards_branch_findings(
        self, search_provider, recording_sleep
    ) -> None:
        extractor = ScriptedFindingsExtractor(
            {
                "q": Extraction(learnings=("L1",), follow_up_questions=("bad?",)),
                "bad?": RuntimeError("boom"),
            }
        )
        traversal = _traversal(search_provider, extractor, recording_sleep)

        findings = await traversal.research("q", depth=2, breadth=2)

        assert findings.learnings == ("Error researching: bad?",)

    @pytest.mark.asyncio
    async def test_searches_go_through_rate_limiter(
        self, search_provider, extractor, recording_sleep
    ) -> None:
        config = TraversalConfig(search_min_interval=5.0)
        traversal = _traversal(search_provider, extractor, recording_sleep, config=config)

        await traversal.research("q", depth=3, breadth=3)

        assert len(recording_sleep.delays) == 2
        assert all(0 < d <= 5.0 for d in recording_sleep.delays)
