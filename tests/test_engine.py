# tests/test_engine.py
"""
Tests for the ToolIntelligenceEngine facade.
"""

from datetime import datetime

import pytest

from chuk_ai_tool_intelligence.config import EngineConfig
from chuk_ai_tool_intelligence.exceptions import InvalidFeedbackError, RecommendationError
from chuk_ai_tool_intelligence.memory.models import MemoryEntry, MemoryType
from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.tool import ExternalToolSpec, ToolPerformanceRecord
from chuk_ai_tool_intelligence.models.workflow import CompositionRequest
from chuk_ai_tool_intelligence.orchestrator import ToolIntelligenceEngine


@pytest.fixture
async def engine(store, clock):
    engine = ToolIntelligenceEngine.create(store=store, clock=clock)
    await engine.initialize()
    return engine


class TestRecommend:
    @pytest.mark.asyncio
    async def test_recommend_ranks_read_file_first(self, engine, context):
        result = await engine.recommend("read config.json and summarize it", context)

        assert result.recommendations[0].tool.name == "read_file"
        assert len(result.recommendations) == 5
        assert result.reasoning[0] == "Found 5 relevant tools"
        assert result.reasoning[1].startswith("Top recommendation: read_file (confidence: ")
        assert 0.0 < result.confidence <= 1.0
        assert result.workflows

    @pytest.mark.asyncio
    async def test_related_memories_attached(self, engine):
        await engine.memory.add_memory_entry(
            MemoryEntry(type=MemoryType.EPISODIC, title="Earlier", content="read config.json and summarize it quickly")
        )

        result = await engine.recommend("read config.json and summarize it")

        assert [m.title for m in result.related_memories] == ["Earlier"]

    @pytest.mark.asyncio
    async def test_candidates_come_from_registry_relevance(self, engine, context):
        """Tools below the registry relevance threshold are never scored."""
        relevant = {t.name for t in engine.registry.relevant_tools(context)}

        result = await engine.recommend(context.user_request, context, limit=10)

        names = {r.tool.name for r in result.recommendations}
        assert "list_code_definition_names" not in relevant
        assert "list_code_definition_names" not in names
        assert names == relevant

    @pytest.mark.asyncio
    async def test_restricted_candidates(self, engine, context):
        result = await engine.recommend("read config.json", context, available_tools=["list_files", "ghost"])

        assert [r.tool.name for r in result.recommendations] == ["list_files"]

    @pytest.mark.asyncio
    async def test_no_matching_tools(self, engine, context):
        result = await engine.recommend("read config.json", context, available_tools=["ghost"])

        assert result.recommendations == []
        assert result.confidence == 0.0
        assert result.reasoning[0] == "No registered tool matched the request"

    @pytest.mark.asyncio
    async def test_component_failure_is_wrapped(self, engine, monkeypatch):
        def boom(request):
            raise RuntimeError("planner exploded")

        monkeypatch.setattr(engine.planner, "compose", boom)

        with pytest.raises(RecommendationError) as exc_info:
            await engine.recommend("read config.json")

        assert exc_info.value.operation == "recommend"
        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_compose_workflow(self, engine):
        result = await engine.compose_workflow(
            CompositionRequest(task_description="list things", required_capabilities=["directory-listing"])
        )

        assert result.workflows[0].tool_sequence == ["list_files"]


class TestOutcomes:
    @pytest.mark.asyncio
    async def test_record_failed_execution(self, engine, clock):
        record = ToolPerformanceRecord(
            tool_name="execute_command",
            execution_time=1200,
            success=False,
            error="command not found: npm",
            timestamp=clock(),
            context=TaskContext(user_request="run the build"),
        )

        await engine.record_execution(record)

        assert engine.registry.get("execute_command").performance_metrics.usage_count == 1
        episodes = engine.memory.entries(MemoryType.EPISODIC)
        assert len(episodes) == 1
        assert episodes[0].title == "Tool execute_command failed"
        assert episodes[0].importance == 7
        assert episodes[0].context == "run the build"
        assert episodes[0].tags == ["tool-execution", "execute_command", "failure"]
        errors = engine.memory.get_error_history()
        assert errors[0].tool_used == "execute_command"

    @pytest.mark.asyncio
    async def test_record_successful_execution(self, engine):
        await engine.record_execution(ToolPerformanceRecord(tool_name="read_file", execution_time=50, success=True))

        episode = engine.memory.entries(MemoryType.EPISODIC)[0]
        assert episode.importance == 4
        assert episode.context == "tool_execution"
        assert engine.memory.get_error_history() == []

    @pytest.mark.asyncio
    async def test_invalid_feedback_is_wrapped(self, engine):
        with pytest.raises(RecommendationError) as exc_info:
            await engine.submit_feedback("read_file", "t1", rating=7)

        assert exc_info.value.operation == "submit_feedback"
        assert isinstance(exc_info.value.cause, InvalidFeedbackError)

    @pytest.mark.asyncio
    async def test_feedback_adapts_scoring(self, engine, context):
        for _ in range(5):
            await engine.submit_feedback("read_file", "t1", rating=1, comment="wrong output")

        assert engine.registry.is_deprioritized("read_file")
        score = engine.scorer.score(context, ["read_file"])[0]
        assert any(r.startswith("De-prioritized from user feedback") for r in score.reasoning)

        report = await engine.get_health_report()
        assert report.user_satisfaction == 1.0

    @pytest.mark.asyncio
    async def test_manual_adapt(self, engine):
        result = await engine.adapt()
        assert result.adapted_tools == []

    @pytest.mark.asyncio
    async def test_naive_timestamp_does_not_break_scoring(self, engine):
        await engine.record_execution(
            ToolPerformanceRecord(tool_name="read_file", execution_time=40, success=True, timestamp=datetime(2026, 3, 2, 9, 0))
        )

        assert engine.registry.get("read_file").performance_metrics.last_used.tzinfo is not None
        result = await engine.recommend("read config.json")
        assert result.recommendations[0].tool.name == "read_file"


class TestExternalTools:
    @pytest.mark.asyncio
    async def test_register_external_tools(self, engine):
        tools = await engine.register_external_tools(
            "github",
            [ExternalToolSpec(name="search_code", description="Search code in repositories")],
            description="GitHub tools",
        )

        assert [t.name for t in tools] == ["github.search_code"]
        server = engine.registry.get_server("github")
        assert server.tool_count == 1
        assert server.description == "GitHub tools"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_starts_and_stops(self, store, clock):
        async with ToolIntelligenceEngine.create(store=store, clock=clock) as engine:
            assert engine.preloader.running
            assert engine.feedback.running

        assert not engine.preloader.running
        assert not engine.feedback.running

    @pytest.mark.asyncio
    async def test_file_storage_persists_across_engines(self, tmp_path, clock):
        config = EngineConfig(storage_dir=str(tmp_path))
        first = ToolIntelligenceEngine.create(config, clock=clock)
        await first.register_external_tools("github", [ExternalToolSpec(name="create_issue")])
        await first.submit_feedback("read_file", "t1", rating=4)

        second = ToolIntelligenceEngine.create(config, clock=clock)
        await second.initialize()

        assert "github.create_issue" in second.registry
        assert len(second.feedback.history) == 1

    @pytest.mark.asyncio
    async def test_stats(self, engine):
        stats = engine.get_stats()

        assert set(stats) == {"registry", "memory", "preload_cache", "feedback"}
        assert stats["registry"]["total_tools"] == 10
