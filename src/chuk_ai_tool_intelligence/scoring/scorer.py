# chuk_ai_tool_intelligence/scoring/scorer.py
"""
Contextual Tool Scorer - ranks candidate tools for a task.

Five independent factors, each clamped to [0, 1], are combined with fixed
weights (ScoringWeights). Scoring is pure computation over already
materialized registry and memory state: no I/O happens here.
"""

from __future__ import annotations

import fnmatch
import logging
import statistics

from chuk_ai_tool_intelligence.memory.store import MemoryStore
from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.enums import ActivityType, Complexity, RiskLevel
from chuk_ai_tool_intelligence.models.scoring import (
    ScoreFactors,
    ScoringWeights,
    ToolRecommendation,
    ToolScore,
)
from chuk_ai_tool_intelligence.models.tool import ToolMetadata
from chuk_ai_tool_intelligence.registry.builtins import SOURCE_EXTENSIONS
from chuk_ai_tool_intelligence.registry.registry import ToolRegistry
from chuk_ai_tool_intelligence.utils import Clock, days_since, mentions, utc_now

logger = logging.getLogger(__name__)

# Expected latency (ms) per tool; proximity to this earns the time factor
OPTIMAL_EXECUTION_TIME: dict[str, float] = {
    "read_file": 500,
    "write_to_file": 800,
    "replace_in_file": 600,
    "execute_command": 3000,
    "search_files": 2000,
    "list_files": 300,
    "list_code_definition_names": 1500,
    "use_mcp_tool": 2000,
    "ask_followup_question": 100,
    "attempt_completion": 100,
}
DEFAULT_OPTIMAL_TIME = 2000.0

COMPLEXITY_PENALTY: dict[Complexity, float] = {
    Complexity.LOW: 0.0,
    Complexity.MEDIUM: 0.1,
    Complexity.HIGH: 0.2,
    Complexity.VARIABLE: 0.15,
}

HIGH_CONFIDENCE_PATTERN = 0.7
MAX_ALTERNATIVES = 3


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def assess_risk(tool: ToolMetadata) -> RiskLevel:
    """Risk from declared reliability and observed success rate."""
    success_rate = tool.performance_metrics.success_rate
    if tool.reliability > 0.9 and success_rate > 0.95:
        return RiskLevel.LOW
    if tool.reliability > 0.7 and success_rate > 0.8:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


class ContextualToolScorer:
    """
    Scores tools against a TaskContext.

    The registry supplies metadata and de-prioritization flags; the
    optional memory store supplies learned patterns for the
    user-preference factor.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        memory: MemoryStore | None = None,
        weights: ScoringWeights | None = None,
        deprioritization_factor: float = 0.8,
        clock: Clock | None = None,
    ) -> None:
        self.registry = registry
        self.memory = memory
        self.weights = weights or ScoringWeights()
        self.deprioritization_factor = deprioritization_factor
        self._clock = clock or utc_now

    # =========================================================================
    # Public API
    # =========================================================================

    def score(self, context: TaskContext, candidates: list[str]) -> list[ToolScore]:
        """Score every known candidate; unknown names are skipped."""
        scores = []
        for name in candidates:
            tool = self.registry.get(name)
            if tool is None:
                logger.debug("Skipping unknown tool %s", name)
                continue
            scores.append(self.score_tool(tool, context))

        scores.sort(key=lambda s: (s.score, s.confidence), reverse=True)
        return scores

    def get_top_tools(self, context: TaskContext, candidates: list[str], limit: int = 5) -> list[ToolScore]:
        return self.score(context, candidates)[:limit]

    def score_tool(self, tool: ToolMetadata, context: TaskContext) -> ToolScore:
        factors = ScoreFactors(
            relevance_match=self.relevance_match(tool, context),
            performance_score=self.performance_score(tool),
            context_fit=self.context_fit(tool, context),
            reliability_score=self.reliability_score(tool),
            user_preference_score=self.user_preference_score(tool, context),
        )
        w = self.weights
        total = (
            factors.relevance_match * w.relevance
            + factors.performance_score * w.performance
            + factors.context_fit * w.context
            + factors.reliability_score * w.reliability
            + factors.user_preference_score * w.user_preference
        )

        reasoning = self._reasoning(tool, factors)
        if self.registry.is_deprioritized(tool.name):
            total *= self.deprioritization_factor
            reason = self.registry.deprioritization_reason(tool.name)
            reasoning.append(f"De-prioritized from user feedback: {reason}")

        return ToolScore(
            tool_name=tool.name,
            score=_clamp(total),
            confidence=self._confidence(tool, factors),
            reasoning=reasoning,
            factors=factors,
        )

    def explain_score(self, tool_name: str, context: TaskContext) -> str:
        tool = self.registry.get(tool_name)
        if tool is None:
            return f"Tool {tool_name} not found in registry"

        score = self.score_tool(tool, context)
        f = score.factors
        lines = [
            f"Tool: {tool_name}",
            f"Overall Score: {score.score * 100:.1f}%",
            f"Confidence: {score.confidence * 100:.1f}%",
            "",
            "Scoring Factors:",
            f"- Relevance Match: {f.relevance_match * 100:.1f}%",
            f"- Performance Score: {f.performance_score * 100:.1f}%",
            f"- Context Fit: {f.context_fit * 100:.1f}%",
            f"- Reliability Score: {f.reliability_score * 100:.1f}%",
            f"- User Preference Score: {f.user_preference_score * 100:.1f}%",
            "",
            "Reasoning:",
            *[f"- {reason}" for reason in score.reasoning],
        ]
        return "\n".join(lines)

    def build_recommendations(self, scores: list[ToolScore], limit: int = 5) -> list[ToolRecommendation]:
        """Top scores as presentation-ready recommendations with alternatives."""
        recommendations = []
        for score in scores[:limit]:
            tool = self.registry.get(score.tool_name)
            if tool is None:
                continue

            alternatives = []
            for other in scores:
                if len(alternatives) >= MAX_ALTERNATIVES:
                    break
                other_tool = self.registry.get(other.tool_name)
                if other_tool is None or other_tool.name == tool.name or not tool.shares_capability(other_tool):
                    continue
                alternatives.append(self._recommendation(other_tool, other))

            rec = self._recommendation(tool, score)
            rec.alternative_options = alternatives
            recommendations.append(rec)
        return recommendations

    @staticmethod
    def _recommendation(tool: ToolMetadata, score: ToolScore) -> ToolRecommendation:
        return ToolRecommendation(
            tool=tool,
            score=score.score,
            confidence=score.confidence,
            reasoning="; ".join(score.reasoning),
            prerequisites=list(tool.prerequisites),
            estimated_execution_time=tool.performance_metrics.avg_execution_time,
            risk_assessment=assess_risk(tool),
        )

    # =========================================================================
    # Factors
    # =========================================================================

    def relevance_match(self, tool: ToolMetadata, context: TaskContext) -> float:
        request = context.user_request
        score = 0.4 * sum(1 for c in tool.capabilities if mentions(request, c))
        score += 0.3 * sum(1 for d in tool.domains if mentions(request, d))
        score += 0.2 * sum(1 for u in tool.typical_use_cases if mentions(request, u))

        if context.technologies:
            overlap = sum(1 for t in context.technologies if t in tool.contextual_relevance.technologies)
            score += 0.1 * (overlap / len(context.technologies))

        if tool.contextual_relevance.matches_project_type(context.project_type):
            score += 0.2
        return _clamp(score)

    def performance_score(self, tool: ToolMetadata) -> float:
        metrics = tool.performance_metrics
        optimal = OPTIMAL_EXECUTION_TIME.get(tool.name, DEFAULT_OPTIMAL_TIME)

        score = 0.6 * metrics.success_rate
        score += 0.2 * max(0.0, 1 - abs(metrics.avg_execution_time - optimal) / optimal)
        score += 0.1 * min(1.0, metrics.usage_count / 50)
        score += 0.1 * max(0.0, 1 - days_since(metrics.last_used, self._clock()) / 30)
        return _clamp(score)

    def context_fit(self, tool: ToolMetadata, context: TaskContext) -> float:
        files = context.file_structure.important_files
        score = 0.0

        if files and any(_matches_file_pattern(p, files) for p in tool.contextual_relevance.file_patterns):
            score += 0.3

        recent = [a for a in context.recent_activity if a.type == ActivityType.TOOL_USE and a.success]
        if any(a.mentions_tool(tool.name) for a in recent[-5:]):
            score += 0.2

        if any(tool.name in s.tools_used and s.success for s in context.session_history):
            score += 0.2

        score += 0.3 * self.prerequisites_met(tool.prerequisites, context)
        return _clamp(score)

    @staticmethod
    def prerequisites_met(prerequisites: list[str], context: TaskContext) -> float:
        """Fraction of prerequisites satisfiable from context (1.0 when none are declared)."""
        if not prerequisites:
            return 1.0

        fs = context.file_structure
        met = 0
        for prereq in prerequisites:
            if prereq == "directory-exists" and fs.directories:
                met += 1
            elif prereq == "file-exists" and fs.important_files:
                met += 1
            elif prereq in ("shell-access", "mcp-server-connected"):
                met += 1
            elif prereq == "source-files-exist" and any(f.endswith(SOURCE_EXTENSIONS) for f in fs.important_files):
                met += 1
        return met / len(prerequisites)

    @staticmethod
    def reliability_score(tool: ToolMetadata) -> float:
        score = tool.reliability * 0.7
        score -= min(0.3, 0.1 * len(tool.performance_metrics.error_patterns))
        score -= COMPLEXITY_PENALTY.get(tool.complexity, 0.1)
        return _clamp(score)

    def user_preference_score(self, tool: ToolMetadata, context: TaskContext) -> float:
        prefs = context.user_preferences
        name = tool.name.lower()
        score = 0.5

        if any(lib.lower() in name for lib in prefs.preferred_libraries if lib):
            score += 0.3
        if any(p.lower() in name for p in prefs.avoidance_patterns if p):
            score -= 0.4
        if prefs.coding_style == "automated" and ("execute" in name or "run" in name):
            score += 0.2

        if self.memory is not None:
            patterns = self.memory.get_learned_patterns(context.project_type)
            matching = sum(
                1 for p in patterns if p.confidence > HIGH_CONFIDENCE_PATTERN and name in p.pattern.lower()
            )
            score += 0.2 * min(1.0, matching / 5)
        return _clamp(score)

    # =========================================================================
    # Confidence and reasoning
    # =========================================================================

    @staticmethod
    def _confidence(tool: ToolMetadata, factors: ScoreFactors) -> float:
        confidence = 0.5
        usage = tool.performance_metrics.usage_count
        if usage > 10:
            confidence += 0.2
        if usage > 50:
            confidence += 0.1

        confidence += max(0.0, 0.3 - statistics.pvariance(factors.values()))

        if factors.relevance_match > 0.7:
            confidence += 0.1
        if factors.reliability_score > 0.8:
            confidence += 0.1
        return _clamp(confidence)

    @staticmethod
    def _reasoning(tool: ToolMetadata, factors: ScoreFactors) -> list[str]:
        reasoning = []
        if factors.relevance_match > 0.7:
            reasoning.append(f"Strong relevance to task: {', '.join(tool.capabilities[:2])}")
        elif factors.relevance_match > 0.4:
            reasoning.append("Moderate relevance to task")

        if factors.performance_score > 0.8:
            rate = tool.performance_metrics.success_rate * 100
            reasoning.append(f"Excellent historical performance ({rate:.1f}% success rate)")
        elif factors.performance_score > 0.6:
            reasoning.append("Good historical performance")

        if factors.context_fit > 0.7:
            reasoning.append("Well-suited to current project context")

        if factors.reliability_score > 0.8:
            reasoning.append("Highly reliable tool")
        elif factors.reliability_score < 0.5:
            reasoning.append("Lower reliability score")

        if factors.user_preference_score > 0.7:
            reasoning.append("Matches user preferences")

        if tool.complexity == Complexity.HIGH:
            reasoning.append("High complexity tool")
        elif tool.complexity == Complexity.LOW:
            reasoning.append("Simple, reliable tool")
        return reasoning


def _matches_file_pattern(pattern: str, files: list[str]) -> bool:
    if pattern == "*":
        return True
    return any(fnmatch.fnmatch(f, pattern) or fnmatch.fnmatch(f.rsplit("/", 1)[-1], pattern) for f in files)
