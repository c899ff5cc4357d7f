"""Tests for the research engine facade."""

from __future__ import annotations

import asyncio

import pytest

from deep_research.domain.entities import ResearchProgress
from deep_research.domain.exceptions import ExpansionError, SearchRateLimitError
from deep_research.domain.values import ContentItem, Extraction, ResearchSpec
from deep_research.infrastructure.config import TraversalConfig
from deep_research.services.engine import ResearchEngine, start_research
from deep_research.testing import (
    ScriptedFindingsExtractor,
    ScriptedSearchProvider,
    StaticQueryExpander,
)


def _engine(expander, extractor, search, sleep, **config) -> ResearchEngine:
    config.setdefault("search_min_interval", 0.0)
    return ResearchEngine(
        expander, extractor, search, config=TraversalConfig(**config), sleep=sleep
    )


class TestResearchEngine:

    @pytest.mark.asyncio
    async def test_breadth_three_depth_two(
        self, sample_spec, expander, extractor, search_provider, recording_sleep
    ) -> None:
        engine = _engine(expander, extractor, search_provider, recording_sleep)
        seen: list[ResearchProgress] = []

        result = await engine.run(sample_spec, on_progress=seen.append)

        assert expander.calls == [("solid-state batteries", 3)]
        # 3 branches x 2 levels
        assert len(search_provider.calls) == 6
        assert len(result.learnings) == 6
        assert not result.degraded
        assert all(p.total_queries == 5 for p in seen)
        assert seen[-1].completed_queries == 5

    @pytest.mark.asyncio
    async def test_async_progress_callback_awaited(
        self, sample_spec, expander, extractor, search_provider, recording_sleep
    ) -> None:
        engine = _engine(expander, extractor, search_provider, recording_sleep)
        seen: list[ResearchProgress] = []

        async def on_progress(progress: ResearchProgress) -> None:
            await asyncio.sleep(0)
            seen.append(progress)

        await engine.run(sample_spec, on_progress=on_progress)

        assert seen
        assert max(p.completed_queries for p in seen) == 5

    @pytest.mark.asyncio
    async def test_overlapping_branches_deduplicated(self, recording_sleep) -> None:
        extractor = ScriptedFindingsExtractor(
            {
                "a?": Extraction(learnings=("L1", "L2", "shared")),
                "b?": Extraction(learnings=("shared", "L4", "L5")),
            }
        )
        search = ScriptedSearchProvider(
            {
                "a?": [ContentItem("t", "u1"), ContentItem("t", "common")],
                "b?": [ContentItem("t", "common"), ContentItem("t", "u2")],
            }
        )
        engine = _engine(
            StaticQueryExpander(["a?", "b?"]), extractor, search, recording_sleep,
            max_concurrency=1,
        )

        result = await engine.run(ResearchSpec("topic", breadth=2, depth=1))

        assert result.learnings == ("L1", "L2", "shared", "L4", "L5")
        assert result.sources == ("u1", "common", "u2")

    @pytest.mark.asyncio
    async def test_expander_extra_queries_truncated(
        self, extractor, search_provider, recording_sleep
    ) -> None:
        expander = StaticQueryExpander(["a?", "b?", "c?", "d?"])
        engine = _engine(expander, extractor, search_provider, recording_sleep)

        await engine.run(ResearchSpec("topic", breadth=2, depth=1))

        assert sorted(search_provider.calls) == ["a?", "b?"]

    @pytest.mark.asyncio
    async def test_expansion_failure_uses_fallback(
        self, extractor, search_provider, recording_sleep
    ) -> None:
        expander = StaticQueryExpander(ExpansionError("model down"))
        engine = _engine(expander, extractor, search_provider, recording_sleep)

        result = await engine.run(ResearchSpec("fusion", breadth=3, depth=1))

        assert search_provider.calls == ["What are the key aspects of fusion?"]
        assert result.learnings == ("fact about What are the key aspects of fusion?",)

    @pytest.mark.asyncio
    async def test_empty_expansion_uses_fallback(
        self, extractor, search_provider, recording_sleep
    ) -> None:
        engine = _engine(StaticQueryExpander([]), extractor, search_provider, recording_sleep)
        await engine.run(ResearchSpec("fusion", breadth=2, depth=1))
        assert search_provider.calls == ["What are the key aspects of fusion?"]

    @pytest.mark.asyncio
    async def test_concurrency_cap(self, expander, extractor, recording_sleep) -> None:
        search = ScriptedSearchProvider(default=[], delay=0.01)
        expander = StaticQueryExpander([f"q{i}?" for i in range(6)])
        engine = _engine(expander, extractor, search, recording_sleep, max_concurrency=2)

        await engine.run(ResearchSpec("topic", breadth=6, depth=1))

        assert len(search.calls) == 6
        assert search.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_default_concurrency_cap_is_three(self, extractor, recording_sleep) -> None:
        search = ScriptedSearchProvider(default=[], delay=0.01)
        expander = StaticQueryExpander([f"q{i}?" for i in range(6)])
        engine = _engine(expander, extractor, search, recording_sleep)

        await engine.run(ResearchSpec("topic", breadth=6, depth=1))

        assert engine.config.max_concurrency == 3
        assert len(search.calls) == 6
        assert search.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_narrow_breadth_caps_concurrency(self, extractor, recording_sleep) -> None:
        search = ScriptedSearchProvider(default=[], delay=0.01)
        expander = StaticQueryExpander(["a?", "b?"])
        engine = _engine(expander, extractor, search, recording_sleep)

        await engine.run(ResearchSpec("topic", breadth=2, depth=1))

        assert search.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_rate_limit_exhaustion_returns_fallback(
        self, expander, extractor, recording_sleep
    ) -> None:
        search = ScriptedSearchProvider(default=SearchRateLimitError())
        engine = _engine(expander, extractor, search, recording_sleep)

        result = await engine.run(ResearchSpec("quantum dots", breadth=3, depth=2))

        assert result.learnings == ("Research attempted on: quantum dots",)
        assert result.sources == ()
        assert result.degraded

    @pytest.mark.asyncio
    async def test_branch_failure_is_isolated(self, search_provider, recording_sleep) -> None:
        extractor = ScriptedFindingsExtractor(
            {"bad?": RuntimeError("boom")},
            default=Extraction(learnings=("good",)),
        )
        engine = _engine(
            StaticQueryExpander(["ok?", "bad?"]), extractor, search_provider, recording_sleep
        )

        result = await engine.run(ResearchSpec("topic", breadth=2, depth=1))

        assert set(result.learnings) == {"good", "Error researching: bad?"}
        assert not result.degraded

    @pytest.mark.asyncio
    async def test_sink_error_does_not_affect_result(
        self, sample_spec, expander, extractor, search_provider, recording_sleep
    ) -> None:
        def broken(_: ResearchProgress) -> None:
            raise RuntimeError("display crashed")

        engine = _engine(expander, extractor, search_provider, recording_sleep)
        result = await engine.run(sample_spec, on_progress=broken)
        assert len(result.learnings) == 6

    @pytest.mark.asyncio
    async def test_current_query_set_after_expansion(
        self, expander, extractor, search_provider, recording_sleep
    ) -> None:
        seen: list[ResearchProgress] = []
        engine = _engine(expander, extractor, search_provider, recording_sleep)

        await engine.run(ResearchSpec("topic", breadth=3, depth=1), on_progress=seen.append)

        assert seen[0].current_query == "q1?"
        assert seen[0].completed_queries == 0

    @pytest.mark.asyncio
    async def test_cancellation_not_swallowed(self, expander, extractor, recording_sleep) -> None:
        search = ScriptedSearchProvider(default=[], delay=10.0)
        engine = _engine(expander, extractor, search, recording_sleep)

        task = asyncio.ensure_future(engine.run(ResearchSpec("topic", breadth=3, depth=1)))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


class TestStartResearch:

    @pytest.mark.asyncio
    async def test_entry_point(self, expander, extractor, search_provider) -> None:
        seen: list[ResearchProgress] = []
        result = await start_research(
            "topic",
            3,
            1,
            seen.append,
            expander=expander,
            extractor=extractor,
            search_provider=search_provider,
            config=TraversalConfig(search_min_interval=0.0),
        )
        assert len(result.learnings) == 3
        assert seen[-1].completed_queries == 3
