# tests/test_scorer.py
"""
Tests for the contextual tool scorer.
"""

import pytest

from chuk_ai_tool_intelligence.memory.models import LearnedPattern, PatternType
from chuk_ai_tool_intelligence.memory.store import MemoryStore
from chuk_ai_tool_intelligence.models.context import FileStructure, TaskContext, UserPreferences
from chuk_ai_tool_intelligence.models.enums import RiskLevel
from chuk_ai_tool_intelligence.scoring.scorer import ContextualToolScorer, assess_risk
from tests.helpers import make_tool, tool_use


@pytest.fixture
def scorer(registry, clock):
    return ContextualToolScorer(registry, clock=clock)


class TestScore:
    @pytest.mark.asyncio
    async def test_read_file_beats_execute_command(self, registry, scorer, context):
        await registry.register(make_tool("summarize", ["summarization"]))

        scores = scorer.score(context, ["execute_command", "summarize", "read_file"])
        names = [s.tool_name for s in scores]

        assert names.index("read_file") < names.index("execute_command")

    @pytest.mark.asyncio
    async def test_scores_bounded_and_sorted(self, registry, scorer, context):
        scores = scorer.score(context, registry.tool_names())

        for s in scores:
            assert 0.0 <= s.score <= 1.0
            assert 0.0 <= s.confidence <= 1.0
            assert all(0.0 <= v <= 1.0 for v in s.factors.values())

        keys = [(s.score, s.confidence) for s in scores]
        assert keys == sorted(keys, reverse=True)

    @pytest.mark.asyncio
    async def test_unknown_candidates_skipped(self, scorer, context):
        scores = scorer.score(context, ["ghost", "read_file"])
        assert [s.tool_name for s in scores] == ["read_file"]

    @pytest.mark.asyncio
    async def test_get_top_tools_limit(self, registry, scorer, context):
        assert len(scorer.get_top_tools(context, registry.tool_names(), limit=3)) == 3

    @pytest.mark.asyncio
    async def test_deprioritized_tool_is_scaled(self, registry, scorer, context):
        before = scorer.score(context, ["read_file"])[0]
        await registry.flag_for_deprioritization("read_file", "poor ratings")
        after = scorer.score(context, ["read_file"])[0]

        assert after.score == pytest.approx(before.score * 0.8)
        assert "De-prioritized from user feedback: poor ratings" in after.reasoning


class TestFactors:
    @pytest.mark.asyncio
    async def test_relevance_from_capability_and_use_case(self, registry, scorer, context):
        # file-reading capability, documentation-reading use case, "all" project types
        assert scorer.relevance_match(registry.get("read_file"), context) == pytest.approx(0.8)
        assert scorer.relevance_match(registry.get("execute_command"), context) == pytest.approx(0.2)

    @pytest.mark.asyncio
    async def test_context_fit_recent_use_and_files(self, registry, scorer, clock):
        context = TaskContext(
            user_request="look around",
            file_structure=FileStructure(important_files=["src/app.py"]),
            recent_activity=[tool_use("read_file", clock())],
        )

        assert scorer.context_fit(registry.get("read_file"), context) == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_prerequisites_partially_met(self, registry, scorer, context):
        # shell-access is always satisfiable, working-directory is not
        assert scorer.prerequisites_met(registry.get("execute_command").prerequisites, context) == 0.5
        assert scorer.prerequisites_met([], context) == 1.0

    @pytest.mark.asyncio
    async def test_user_preferences(self, registry, scorer):
        context = TaskContext(
            user_request="x",
            user_preferences=UserPreferences(avoidance_patterns=["execute"], coding_style="automated"),
        )

        assert scorer.user_preference_score(registry.get("execute_command"), context) == pytest.approx(0.3)
        assert scorer.user_preference_score(registry.get("read_file"), context) == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_learned_patterns_raise_preference(self, registry, store, clock):
        memory = MemoryStore(store=store, clock=clock)
        project = await memory.load_project_memory("/work/py")
        project.context.project_type = "python"
        await memory.add_learned_pattern(
            project.project_id,
            LearnedPattern(
                type=PatternType.USER_PREFERENCE,
                description="Reads before editing",
                pattern="always use read_file before editing",
                confidence=0.9,
            ),
        )
        scorer = ContextualToolScorer(registry, memory=memory, clock=clock)
        context = TaskContext(user_request="x", project_type="python")

        assert scorer.user_preference_score(registry.get("read_file"), context) == pytest.approx(0.54)

    @pytest.mark.asyncio
    async def test_reliability_penalizes_errors_and_complexity(self, registry, scorer):
        assert scorer.reliability_score(registry.get("execute_command")) == pytest.approx(0.025)
        assert scorer.reliability_score(make_tool("clean", ["x"], reliability=1.0)) == pytest.approx(0.7)


class TestRecommendations:
    @pytest.mark.asyncio
    async def test_alternatives_share_capability(self, registry, scorer, context):
        await registry.register(make_tool("summarize", ["summarization"]))
        await registry.register(make_tool("digest", ["summarization"]))

        scores = scorer.score(context, ["summarize", "digest", "read_file"])
        recs = {r.tool.name: r for r in scorer.build_recommendations(scores)}

        assert [a.tool.name for a in recs["summarize"].alternative_options] == ["digest"]
        assert recs["read_file"].alternative_options == []
        assert recs["read_file"].risk_assessment == RiskLevel.LOW
        assert recs["read_file"].estimated_execution_time == 500

    @pytest.mark.asyncio
    async def test_recommendation_limit(self, registry, scorer, context):
        scores = scorer.score(context, registry.tool_names())
        assert len(scorer.build_recommendations(scores, limit=2)) == 2

    @pytest.mark.asyncio
    async def test_explain_score(self, scorer, context):
        text = scorer.explain_score("read_file", context)

        assert text.startswith("Tool: read_file\nOverall Score:")
        assert "- Relevance Match: 80.0%" in text
        assert scorer.explain_score("ghost", context) == "Tool ghost not found in registry"

    @pytest.mark.asyncio
    async def test_risk_levels(self, registry):
        assert assess_risk(registry.get("execute_command")) == RiskLevel.MEDIUM
        assert assess_risk(make_tool("flaky", ["x"], reliability=0.5, success_rate=0.5)) == RiskLevel.HIGH
