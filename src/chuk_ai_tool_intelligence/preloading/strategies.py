# chuk_ai_tool_intelligence/preloading/strategies.py
"""
Prediction strategies for the pre-loader.

Each strategy turns the current context plus recent tool usage into
predictions, and decides for itself whether a prediction is worth
preloading under the current load. Strategies never mutate the cache.

Defaults:
1. PatternBasedStrategy - repeating tool transitions in recent usage
2. ContextAwareStrategy - request entities vs tool domains/technologies
3. SequentialWorkflowStrategy - static "what usually comes next" table
4. TimeBasedStrategy - tools used at this hour on this weekday
"""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from chuk_ai_tool_intelligence.models.context import ActivityRecord, TaskContext
from chuk_ai_tool_intelligence.models.enums import ActivityType, PreloadPriority
from chuk_ai_tool_intelligence.preloading.models import PreloadPrediction, SystemLoad
from chuk_ai_tool_intelligence.registry.registry import ToolRegistry
from chuk_ai_tool_intelligence.utils import mentions

TECHNOLOGY_KEYWORDS = (
    "javascript",
    "typescript",
    "python",
    "java",
    "cpp",
    "csharp",
    "go",
    "rust",
    "react",
    "vue",
    "angular",
    "node",
)


def tool_uses(contexts: list[TaskContext]) -> list[ActivityRecord]:
    """Successful tool-use activities across contexts, oldest first."""
    uses = [
        a
        for ctx in contexts
        for a in ctx.recent_activity
        if a.type == ActivityType.TOOL_USE and a.success and a.tool_name
    ]
    uses.sort(key=lambda a: a.timestamp)
    return uses


def _prediction(
    strategy: str,
    tool_name: str,
    probability: float,
    confidence: float,
    reason: str,
    eta_ms: float,
) -> PreloadPrediction:
    probability = max(0.0, min(1.0, probability))
    return PreloadPrediction(
        tool_name=tool_name,
        probability=probability,
        confidence=confidence,
        reasoning=[reason],
        estimated_time_to_use=eta_ms,
        priority=PreloadPriority.from_score(probability, confidence),
        strategies=[strategy],
    )


@runtime_checkable
class PreloadStrategy(Protocol):
    name: str

    def predict(
        self,
        context: TaskContext,
        usage: list[ActivityRecord],
        now: datetime,
    ) -> list[PreloadPrediction]: ...

    def should_preload(self, prediction: PreloadPrediction, load: SystemLoad) -> bool: ...


# =============================================================================
# Pattern-based
# =============================================================================


class PatternBasedStrategy:
    """
    Learns "A is followed by B" from recent usage.

    For the most recent tool A, every successor B seen at least
    `min_occurrences` times is predicted with probability
    count(A->B) / count(A->*).
    """

    name = "pattern-based"
    confidence = 0.7

    def __init__(self, window: int = 50, min_occurrences: int = 2) -> None:
        self.window = window
        self.min_occurrences = min_occurrences

    def predict(self, context: TaskContext, usage: list[ActivityRecord], now: datetime) -> list[PreloadPrediction]:  # noqa: ARG002
        recent = usage[-self.window :]
        if len(recent) < 2:
            return []

        transitions: dict[str, Counter] = defaultdict(Counter)
        gaps: dict[tuple[str, str], list[float]] = defaultdict(list)
        for prev, nxt in zip(recent, recent[1:], strict=False):
            transitions[prev.tool_name][nxt.tool_name] += 1
            gaps[(prev.tool_name, nxt.tool_name)].append((nxt.timestamp - prev.timestamp).total_seconds() * 1000)

        last = recent[-1].tool_name
        followers = transitions.get(last)
        if not followers:
            return []

        total = sum(followers.values())
        predictions = []
        for tool, count in followers.items():
            if count < self.min_occurrences:
                continue
            observed = gaps[(last, tool)]
            predictions.append(
                _prediction(
                    self.name,
                    tool,
                    count / total,
                    self.confidence,
                    f"Pattern-based: {last} was followed by {tool} in {count} of {total} recent transitions",
                    sum(observed) / len(observed),
                )
            )
        return predictions

    def should_preload(self, prediction: PreloadPrediction, load: SystemLoad) -> bool:
        return (
            prediction.probability > 0.3 and load.memory_usage < 0.8 and prediction.priority != PreloadPriority.LOW
        )


# =============================================================================
# Context-aware
# =============================================================================


class ContextAwareStrategy:
    """Scores registry-relevant tools by domain and technology overlap with the request."""

    name = "context-aware"
    confidence = 0.8
    eta_ms = 5000.0
    threshold = 0.5

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    @staticmethod
    def technologies(context: TaskContext) -> set[str]:
        request = context.user_request.lower()
        found = {t.lower() for t in context.technologies}
        found.update(t for t in TECHNOLOGY_KEYWORDS if t in request.split())
        return found

    def predict(self, context: TaskContext, usage: list[ActivityRecord], now: datetime) -> list[PreloadPrediction]:  # noqa: ARG002
        techs = self.technologies(context)
        predictions = []
        for tool in self.registry.relevant_tools(context):
            domains = [d for d in tool.domains if mentions(context.user_request, d)]
            tool_techs = [t for t in tool.contextual_relevance.technologies if t.lower() in techs]
            relevance = min(1.0, 0.1 + 0.3 * len(domains) + 0.2 * len(tool_techs))
            if relevance <= self.threshold:
                continue
            predictions.append(
                _prediction(
                    self.name,
                    tool.name,
                    relevance,
                    self.confidence,
                    f"Context-aware: {', '.join(domains + tool_techs)} match current task",
                    self.eta_ms,
                )
            )
        return predictions

    def should_preload(self, prediction: PreloadPrediction, load: SystemLoad) -> bool:
        return prediction.probability > 0.6 and load.cpu_usage < 0.7 and prediction.priority != PreloadPriority.LOW


# =============================================================================
# Sequential workflow
# =============================================================================


class NextTool(BaseModel):
    tool_name: str
    probability: float
    avg_time_to_next: float  # ms


def default_workflow_table() -> dict[str, list[NextTool]]:
    return {
        "read_file": [
            NextTool(tool_name="analyze_code", probability=0.8, avg_time_to_next=5000),
            NextTool(tool_name="replace_in_file", probability=0.5, avg_time_to_next=8000),
        ],
        "search_web": [NextTool(tool_name="extract_data", probability=0.7, avg_time_to_next=8000)],
        "tavily-search": [NextTool(tool_name="tavily-extract", probability=0.7, avg_time_to_next=8000)],
        "list_files": [NextTool(tool_name="read_file", probability=0.7, avg_time_to_next=3000)],
        "search_files": [NextTool(tool_name="read_file", probability=0.75, avg_time_to_next=3000)],
        "write_to_file": [NextTool(tool_name="execute_command", probability=0.5, avg_time_to_next=10000)],
        "replace_in_file": [NextTool(tool_name="execute_command", probability=0.5, avg_time_to_next=10000)],
    }


class SequentialWorkflowStrategy:
    """Predicts the usual continuation of the last tool used."""

    name = "sequential-workflow"
    confidence = 0.6

    def __init__(self, table: dict[str, list[NextTool]] | None = None) -> None:
        self.table = table if table is not None else default_workflow_table()

    def predict(self, context: TaskContext, usage: list[ActivityRecord], now: datetime) -> list[PreloadPrediction]:  # noqa: ARG002
        if not usage:
            return []
        last = usage[-1].tool_name
        return [
            _prediction(
                self.name,
                nxt.tool_name,
                nxt.probability,
                self.confidence,
                f"Sequential workflow: {last} -> {nxt.tool_name}",
                nxt.avg_time_to_next,
            )
            for nxt in self.table.get(last, [])
        ]

    def should_preload(self, prediction: PreloadPrediction, load: SystemLoad) -> bool:
        return prediction.probability > 0.4 and load.active_preloads < load.max_preloads * 0.8


# =============================================================================
# Time-based
# =============================================================================


class TimeBasedStrategy:
    """Share of each tool among past uses in the same hour on the same weekday."""

    name = "time-based"
    confidence = 0.5
    eta_ms = 15000.0

    def __init__(self, min_samples: int = 2) -> None:
        self.min_samples = min_samples

    def predict(self, context: TaskContext, usage: list[ActivityRecord], now: datetime) -> list[PreloadPrediction]:  # noqa: ARG002
        slot = [a for a in usage if a.timestamp.hour == now.hour and a.timestamp.weekday() == now.weekday()]
        if len(slot) < self.min_samples:
            return []

        counts = Counter(a.tool_name for a in slot)
        return [
            _prediction(
                self.name,
                tool,
                count / len(slot),
                self.confidence,
                f"Time-based: frequently used at {now.hour}:00 on day {now.weekday()}",
                self.eta_ms,
            )
            for tool, count in counts.most_common()
        ]

    def should_preload(self, prediction: PreloadPrediction, load: SystemLoad) -> bool:
        return prediction.probability > 0.2 and load.memory_usage < 0.6


def default_strategies(registry: ToolRegistry) -> list[PreloadStrategy]:
    return [
        PatternBasedStrategy(),
        ContextAwareStrategy(registry),
        SequentialWorkflowStrategy(),
        TimeBasedStrategy(),
    ]
