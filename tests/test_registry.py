# tests/test_registry.py
"""
Tests for the tool registry.

Covers:
- Built-in bootstrap and idempotent registration
- Lookup by domain, capability and alternatives
- Relevance ranking
- Bounded performance history and derived metrics
- External tool inference and server tracking
- De-prioritization flags
- Persistence and storage-failure tolerance
"""

import pytest

from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.enums import Complexity
from chuk_ai_tool_intelligence.models.tool import ExternalToolSpec, ToolPerformanceRecord
from chuk_ai_tool_intelligence.registry.inference import InferenceRules, infer_complexity
from chuk_ai_tool_intelligence.registry.registry import ToolRegistry, categorize_error, compute_metrics
from tests.helpers import make_tool


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_builtins_registered(self, registry):
        assert "read_file" in registry
        assert "execute_command" in registry
        assert len(registry) == 10

    @pytest.mark.asyncio
    async def test_register_same_name_twice_keeps_one(self, registry):
        """Last write wins; never two entries."""
        before = len(registry)
        await registry.register(make_tool("read_file", ["file-reading"], reliability=0.5))

        assert len(registry) == before
        assert registry.get("read_file").reliability == 0.5
        assert registry.tool_names().count("read_file") == 1

    @pytest.mark.asyncio
    async def test_without_builtins(self, store):
        registry = ToolRegistry(store=store, include_builtins=False)
        await registry.initialize()

        assert len(registry) == 0


class TestLookup:
    @pytest.mark.asyncio
    async def test_by_capability_and_domain(self, registry):
        assert [t.name for t in registry.by_capability("file-writing")] == ["write_to_file"]
        assert "read_file" in {t.name for t in registry.by_domain("file-operations")}

    @pytest.mark.asyncio
    async def test_alternatives_only_registered(self, registry):
        names = {t.name for t in registry.get_alternatives("read_file")}
        assert names == {"list_files", "search_files"}
        assert registry.get_alternatives("missing") == []

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        assert registry.get("nope") is None


class TestRelevance:
    @pytest.mark.asyncio
    async def test_relevance_bounded(self, registry, context):
        for tool in registry.all_tools():
            assert 0.0 <= registry.relevance_score(tool, context) <= 1.0

    @pytest.mark.asyncio
    async def test_relevant_tools_prefers_matching_capability(self, registry, context):
        relevant = registry.relevant_tools(context)

        assert len(relevant) <= 10
        assert relevant[0].name == "read_file"
        assert all(registry.relevance_score(t, context) > 0.3 for t in relevant)

    @pytest.mark.asyncio
    async def test_success_rate_separates_unmatched_tools(self, registry):
        tool = registry.get("execute_command")
        base = registry.relevance_score(tool, TaskContext(user_request="hello"))
        assert base < registry.relevance_score(registry.get("read_file"), TaskContext(user_request="hello"))


class TestPerformanceHistory:
    @pytest.mark.asyncio
    async def test_metrics_recomputed(self, registry, clock):
        await registry.record_performance(
            "read_file", ToolPerformanceRecord(tool_name="read_file", execution_time=100, success=True, timestamp=clock())
        )
        metrics = await registry.record_performance(
            "read_file",
            ToolPerformanceRecord(
                tool_name="read_file", execution_time=300, success=False, error="Permission denied", timestamp=clock()
            ),
        )

        assert metrics.avg_execution_time == 200
        assert metrics.success_rate == 0.5
        assert metrics.usage_count == 2
        assert metrics.error_patterns == ["permission-denied"]
        assert metrics.last_used == clock()

    @pytest.mark.asyncio
    async def test_history_is_bounded(self, store):
        registry = ToolRegistry(store=store, history_limit=3)
        await registry.initialize()

        for i in range(5):
            await registry.record_performance(
                "list_files", ToolPerformanceRecord(tool_name="list_files", execution_time=i, success=True)
            )

        history = registry.get_performance_history("list_files")
        assert [r.execution_time for r in history] == [2, 3, 4]
        assert registry.get("list_files").performance_metrics.usage_count == 3

    @pytest.mark.asyncio
    async def test_unknown_tool_returns_none(self, registry):
        result = await registry.record_performance("ghost", ToolPerformanceRecord(tool_name="ghost", success=True))
        assert result is None

    def test_categorize_error(self):
        assert categorize_error("Request timed out") == "timeout"
        assert categorize_error("file does not exist") == "not-found"
        assert categorize_error("???") == "other-error"

    def test_compute_metrics_empty(self):
        metrics = compute_metrics([])
        assert metrics.usage_count == 0
        assert metrics.last_used is None


class TestExternalTools:
    @pytest.mark.asyncio
    async def test_inferred_metadata(self, registry):
        tools = await registry.register_external_tools(
            "github",
            [
                ExternalToolSpec(
                    name="search_code",
                    description="Search code in repositories",
                    input_schema={"properties": {"query": {"type": "string"}}},
                )
            ],
        )

        tool = registry.get("github.search_code")
        assert tools[0].name == "github.search_code"
        assert "searching" in tool.capabilities
        assert "code-analysis" in tool.domains
        assert tool.server == "github"
        assert tool.prerequisites == ["mcp-server-connected"]

    def test_complexity_from_schema_shape(self):
        rules = InferenceRules()
        assert infer_complexity(None, rules) == Complexity.LOW
        assert infer_complexity({"properties": {"a": {}, "b": {}, "c": {}}}, rules) == Complexity.MEDIUM
        assert infer_complexity({"properties": {"a": {"type": "object"}}}, rules) == Complexity.HIGH

    @pytest.mark.asyncio
    async def test_server_registration_and_health(self, registry):
        specs = [ExternalToolSpec(name="read_page", description="Read a web page"), ExternalToolSpec(name="run_query")]
        server = await registry.register_server("browser", tools=specs)

        assert server.tool_count == 2
        assert server.confidence == pytest.approx(0.7)
        assert "web-services" in server.domains

        await registry.update_server_performance("browser", success=False, response_time=0, error_type="timeout")
        updated = await registry.update_server_performance("browser", success=True, response_time=1000)

        metrics = updated.performance_metrics
        assert metrics.total_requests == 2
        assert metrics.success_rate == 0.5
        assert metrics.timeout_rate == 0.5
        assert metrics.consecutive_failures == 0
        assert await registry.update_server_performance("nope", True, 1) is None


class TestDeprioritization:
    @pytest.mark.asyncio
    async def test_flag_and_clear(self, registry):
        assert await registry.flag_for_deprioritization("execute_command", "poor ratings") is True
        assert registry.is_deprioritized("execute_command")
        assert registry.deprioritization_reason("execute_command") == "poor ratings"
        assert registry.get_stats().deprioritized_tools == ["execute_command"]

        await registry.clear_deprioritization("execute_command")
        assert not registry.is_deprioritized("execute_command")

    @pytest.mark.asyncio
    async def test_unknown_tool_not_flagged(self, registry):
        assert await registry.flag_for_deprioritization("ghost", "x") is False


class TestPersistence:
    @pytest.mark.asyncio
    async def test_state_survives_reload(self, store, clock):
        first = ToolRegistry(store=store, clock=clock)
        await first.initialize()
        await first.register(make_tool("custom", ["custom-capability"]))
        await first.record_performance("custom", ToolPerformanceRecord(tool_name="custom", execution_time=42, success=True))
        await first.flag_for_deprioritization("custom", "slow")

        second = ToolRegistry(store=store, clock=clock)
        await second.initialize()

        assert second.get("custom").performance_metrics.avg_execution_time == 42
        assert len(second.get_performance_history("custom")) == 1
        assert second.is_deprioritized("custom")

    @pytest.mark.asyncio
    async def test_storage_failures_are_absence(self, exploding_store):
        """A broken store never raises; the registry still bootstraps."""
        registry = ToolRegistry(store=exploding_store)
        await registry.initialize()

        assert "read_file" in registry
        await registry.record_performance("read_file", ToolPerformanceRecord(tool_name="read_file", success=True))
        assert registry.get("read_file").performance_metrics.usage_count == 1
