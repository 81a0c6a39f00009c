# tests/test_planner.py
"""
Tests for the composition planner.
"""

import pytest

from chuk_ai_tool_intelligence.composition.planner import CompositionPlanner, critical_path_time
from chuk_ai_tool_intelligence.models.enums import Complexity
from chuk_ai_tool_intelligence.models.workflow import CompositionConstraints, CompositionRequest
from chuk_ai_tool_intelligence.registry.registry import ToolRegistry
from tests.helpers import make_tool

CAPABILITIES = ["fetching", "transforming", "storing"]


@pytest.fixture
async def pipeline_registry(store):
    """Three single-capability tools and nothing else."""
    registry = ToolRegistry(store=store, include_builtins=False)
    await registry.initialize()
    await registry.register(make_tool("fetch", ["fetching"], avg_time=100))
    await registry.register(make_tool("transform", ["transforming"], avg_time=200))
    await registry.register(make_tool("store", ["storing"], avg_time=300))
    return registry


@pytest.fixture
def planner(pipeline_registry):
    return CompositionPlanner(pipeline_registry)


class TestLinearPlan:
    @pytest.mark.asyncio
    async def test_three_ordered_steps(self, planner):
        result = planner.compose(CompositionRequest(task_description="do it", required_capabilities=CAPABILITIES))

        plan = result.workflows[0]
        assert plan.tool_sequence == ["fetch", "transform", "store"]
        assert [s.dependencies for s in plan.steps] == [[], ["step-1"], ["step-2"]]
        assert plan.estimated_total_time == 600
        assert plan.dependencies_are_ordered()

    @pytest.mark.asyncio
    async def test_parallel_duplicate_is_dropped(self, planner):
        """Without prerequisites the parallel plan has the same tool sequence."""
        result = planner.compose(CompositionRequest(task_description="do it", required_capabilities=CAPABILITIES))

        assert len(result.workflows) == 1
        assert result.workflows[0].id.startswith("linear-")

    @pytest.mark.asyncio
    async def test_confidence_after_rescoring(self, planner):
        result = planner.compose(CompositionRequest(task_description="do it", required_capabilities=CAPABILITIES))

        # three medium-risk steps: 0.8 - 0.15, then the flat performance factor
        assert result.workflows[0].confidence == pytest.approx(0.65 * 0.85)
        assert result.confidence == pytest.approx(result.workflows[0].confidence)

    @pytest.mark.asyncio
    async def test_reorder_alternatives(self, planner):
        result = planner.compose(CompositionRequest(task_description="do it", required_capabilities=CAPABILITIES))

        assert 0 < len(result.alternatives) <= 5
        assert all(a.confidence > 0.3 for a in result.alternatives)
        reordered = result.alternatives[0]
        assert reordered.description.endswith("(reordered)")
        assert reordered.dependencies_are_ordered()

    @pytest.mark.asyncio
    async def test_missing_capability_yields_no_linear_plan(self, planner, pipeline_registry):
        assert planner.linear_plan(["fetching", "flying"], pipeline_registry.all_tools()) is None


class TestParallelPlan:
    @pytest.mark.asyncio
    async def test_prerequisite_forces_second_group(self, planner, pipeline_registry):
        await pipeline_registry.register(make_tool("store", ["storing"], avg_time=300, prerequisites=["transforming"]))
        tools = pipeline_registry.all_tools()

        assert planner.parallel_groups(CAPABILITIES, tools) == [["fetching", "transforming"], ["storing"]]

        plan = planner.parallel_plan(CAPABILITIES, tools)
        assert plan.steps[2].dependencies == ["step-1", "step-2"]
        assert plan.dependencies_are_ordered()
        assert plan.estimated_total_time == 500
        assert plan.estimated_total_time == critical_path_time(plan.steps)

    @pytest.mark.asyncio
    async def test_parallel_is_discounted(self, planner, pipeline_registry):
        tools = pipeline_registry.all_tools()
        linear = planner.linear_plan(CAPABILITIES, tools)
        parallel = planner.parallel_plan(CAPABILITIES, tools)

        assert parallel.confidence == pytest.approx(linear.confidence * 0.9)
        assert parallel.estimated_total_time == 300

    @pytest.mark.asyncio
    async def test_missing_capability_yields_no_parallel_plan(self, planner, pipeline_registry):
        assert planner.parallel_plan(["fetching", "flying"], pipeline_registry.all_tools()) is None

    @pytest.mark.asyncio
    async def test_partial_coverage_is_not_offered(self, planner):
        """A plan covering only some capabilities never reaches the result."""
        result = planner.compose(
            CompositionRequest(task_description="fetch and fly", required_capabilities=["fetching", "flying"])
        )

        assert result.workflows == []
        assert result.confidence == 0.0
        assert "No available tool set covers every required capability" in result.reasoning


class TestConstraints:
    @pytest.mark.asyncio
    async def test_max_steps(self, planner):
        result = planner.compose(
            CompositionRequest(
                task_description="do it",
                required_capabilities=CAPABILITIES,
                constraints=CompositionConstraints(max_steps=2),
            )
        )
        assert result.workflows == []

    @pytest.mark.asyncio
    async def test_excluded_tool_never_planned(self, planner):
        result = planner.compose(
            CompositionRequest(
                task_description="do it",
                required_capabilities=CAPABILITIES,
                constraints=CompositionConstraints(exclude_tools=["store"]),
            )
        )
        for plan in result.workflows + result.alternatives:
            assert "store" not in plan.tool_sequence

    @pytest.mark.asyncio
    async def test_max_complexity(self, planner, pipeline_registry):
        await pipeline_registry.register(make_tool("heavy", ["heavy-lifting"], complexity=Complexity.HIGH))
        result = planner.compose(
            CompositionRequest(
                task_description="do it",
                required_capabilities=["heavy-lifting"],
                constraints=CompositionConstraints(max_complexity=Complexity.MEDIUM),
            )
        )
        assert result.workflows == []


class TestReasoning:
    @pytest.mark.asyncio
    async def test_no_tools_available(self, planner):
        result = planner.compose(CompositionRequest(task_description="read the file", available_tools=["ghost"]))

        assert result.workflows == []
        assert result.confidence == 0.0
        assert "No available tool set covers every required capability" in result.reasoning

    @pytest.mark.asyncio
    async def test_no_capabilities(self, planner):
        result = planner.compose(CompositionRequest(task_description="hello there"))
        assert "Required capabilities: none identified" in result.reasoning


class TestAnalysis:
    @pytest.mark.asyncio
    async def test_analyze_task(self, planner):
        analysis = planner.analyze_task("build a complex thing then test it")

        assert analysis.complexity == Complexity.HIGH
        assert analysis.required_capabilities == ["build-tools", "compilation", "testing", "validation"]
        assert analysis.estimated_steps == 2


class TestPatterns:
    @pytest.mark.asyncio
    async def test_seeded_pattern_instantiated(self, registry):
        await registry.register(make_tool("analyze_content", ["content-analysis"]))
        planner = CompositionPlanner(registry)

        result = planner.compose(CompositionRequest(task_description="read the report and write a summary"))

        descriptions = [w.description for w in result.workflows]
        assert "Read file, analyze content, write results" in descriptions
        pattern_plan = next(w for w in result.workflows if w.description.startswith("Read file"))
        assert pattern_plan.tool_sequence == ["read_file", "analyze_content", "write_to_file"]

    @pytest.mark.asyncio
    async def test_pattern_needs_every_tool(self, registry):
        """analyze_content is not registered, so the seeded pattern is skipped."""
        planner = CompositionPlanner(registry)
        result = planner.compose(CompositionRequest(task_description="read the report and write a summary"))

        assert all(not w.id.startswith("file-read-analyze-write") for w in result.workflows)

    @pytest.mark.asyncio
    async def test_record_pattern_outcome(self, planner):
        pattern = planner.record_pattern_outcome("file-read-analyze-write", success=True, execution_time=1000)

        assert pattern.usage_count == 1
        assert pattern.success_rate == 1.0
        assert pattern.avg_execution_time == 1000
        assert planner.record_pattern_outcome("nope", True, 1) is None
