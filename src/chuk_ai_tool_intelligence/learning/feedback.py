# chuk_ai_tool_intelligence/learning/feedback.py
"""
Feedback Learning Loop - turns user ratings into scoring adjustments.

Handles:
- Feedback collection with immediate investigate/reinforce logging
- Windowed feedback analysis (satisfaction, per-tool scores, issues, trends)
- Four insight analyzers over the recorded feedback
- Adaptation: high-confidence insights flag tools for de-prioritization
  or become descriptive adaptations (tools are never removed)
- Health report and feedback statistics
- Heuristic A/B tests
- A periodic adaptation check with a cancellable task handle
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import re
import uuid
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError

from chuk_ai_tool_intelligence.exceptions import InvalidFeedbackError, StorageError
from chuk_ai_tool_intelligence.learning.models import (
    ABTestConfig,
    ABTestMetric,
    ABTestResult,
    AdaptationConfig,
    AdaptationResult,
    FeedbackAnalysis,
    FeedbackStatistics,
    HealthReport,
    LearningInsight,
    TrendAnalysis,
    UserFeedback,
)
from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.enums import HealthStatus, Impact, InsightType, Trend
from chuk_ai_tool_intelligence.registry.registry import ToolRegistry
from chuk_ai_tool_intelligence.storage.base import KeyValueStore
from chuk_ai_tool_intelligence.storage.providers.memory import InMemoryKeyValueStore
from chuk_ai_tool_intelligence.utils import Clock, utc_now

logger = logging.getLogger(__name__)

FEEDBACK_KEY = "feedback/history"

POOR_RATING = 2
EXCELLENT_RATING = 5
LOW_SCORE = 3.0
TREND_DELTA = 0.5
RECENT_TREND_DELTA = 0.3
MIN_TREND_SAMPLES = 3
PATTERN_MIN_SUPPORT = 2
PREFERENCE_MIN_SUPPORT = 3
ERROR_MIN_SUPPORT = 2
MAX_SYSTEM_RECOMMENDATIONS = 10
AB_MIN_IMPROVEMENT = 0.05

# Complaint category -> keywords, checked against comments on ratings <= 3
ISSUE_CATEGORIES: dict[str, tuple[str, ...]] = {
    "Performance issues": ("slow", "timeout"),
    "Reliability problems": ("error", "fail"),
    "Usability concerns": ("confusing", "unclear"),
    "Accuracy issues": ("wrong", "incorrect"),
}

STOPWORDS = frozenset(
    {
        "this", "that", "with", "from", "have", "were", "been", "very", "really",
        "just", "when", "what", "they", "them", "then", "than", "there", "here",
        "would", "could", "should", "about", "into", "your", "more", "some",
        "much", "also", "only", "every", "time", "tool", "used", "work", "works",
    }
)  # fmt: skip

_WORD_RE = re.compile(r"[a-z][a-z_-]{3,}")


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _issues_in(comment: str) -> list[str]:
    text = comment.lower()
    return [issue for issue, keywords in ISSUE_CATEGORIES.items() if any(k in text for k in keywords)]


class FeedbackLearningLoop:
    """
    Collects ratings and adapts tool selection from them.

    Usage::

        loop = FeedbackLearningLoop(registry, store=store)
        await loop.initialize()

        await loop.collect_feedback("execute_command", "task-1", rating=1, comment="too slow")
        result = await loop.adapt_tool_selection()
        report = await loop.get_health_report()
    """

    def __init__(
        self,
        registry: ToolRegistry,
        store: KeyValueStore | None = None,
        config: AdaptationConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or AdaptationConfig()
        self._store = store or InMemoryKeyValueStore()
        self._clock = clock or utc_now

        self._history: list[UserFeedback] = []
        self._insights: list[LearningInsight] = []
        self._last_adaptation: datetime | None = None
        self._ab_tests: dict[str, ABTestConfig] = {}
        self._ab_observations: dict[str, dict[str, list[dict[str, float]]]] = {}
        self._task: asyncio.Task | None = None

    # =========================================================================
    # Persistence
    # =========================================================================

    async def initialize(self) -> None:
        """Load persisted feedback history and the last adaptation time."""
        try:
            data = await self._store.read(FEEDBACK_KEY)
        except StorageError:
            logger.warning("Feedback read failed for %s", FEEDBACK_KEY, exc_info=True)
            return
        if not isinstance(data, dict):
            return

        try:
            self._history = [UserFeedback.model_validate(f) for f in data.get("feedback", [])]
        except ValidationError:
            logger.warning("Discarding invalid feedback history at %s", FEEDBACK_KEY, exc_info=True)
            self._history = []

        last = data.get("last_adaptation")
        if last:
            with contextlib.suppress(ValueError):
                self._last_adaptation = datetime.fromisoformat(last)

    async def _save(self) -> None:
        document = {
            "feedback": [f.model_dump(mode="json") for f in self._history],
            "last_adaptation": self._last_adaptation.isoformat() if self._last_adaptation else None,
        }
        try:
            await self._store.write(FEEDBACK_KEY, document)
        except StorageError:
            logger.warning("Feedback write failed for %s", FEEDBACK_KEY, exc_info=True)

    # =========================================================================
    # Collection
    # =========================================================================

    async def collect_feedback(
        self,
        tool_name: str,
        task_id: str,
        rating: int,
        comment: str | None = None,
        context: TaskContext | None = None,
    ) -> UserFeedback:
        """
        Record one rating.

        Raises:
            InvalidFeedbackError: rating is not an integer between 1 and 5
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise InvalidFeedbackError(f"rating must be an integer between 1 and 5, got {rating!r}")

        feedback = UserFeedback(
            tool_name=tool_name,
            task_id=task_id,
            rating=rating,
            comment=comment,
            timestamp=self._clock(),
        )
        self._history.append(feedback)
        if len(self._history) > self.config.history_limit:
            self._history = self._history[-self.config.history_limit :]
        await self._save()

        if rating <= POOR_RATING:
            self._investigate(feedback, context)
        elif rating >= EXCELLENT_RATING:
            logger.info("Reinforcing positive pattern for %s (task %s)", tool_name, task_id)

        await self.maybe_adapt()
        return feedback

    def _investigate(self, feedback: UserFeedback, context: TaskContext | None) -> None:
        history = self.registry.get_performance_history(feedback.tool_name)
        failures = [r for r in history if not r.success]
        logger.warning(
            "Negative feedback for %s (rating %d): %s; %d of %d recorded runs failed%s",
            feedback.tool_name,
            feedback.rating,
            feedback.comment or "no comment",
            len(failures),
            len(history),
            f"; request: {context.user_request}" if context else "",
        )

    @property
    def history(self) -> list[UserFeedback]:
        return list(self._history)

    @property
    def last_adaptation(self) -> datetime | None:
        return self._last_adaptation

    def _recent(self, days: float) -> list[UserFeedback]:
        cutoff = self._clock() - timedelta(days=days)
        return [f for f in self._history if f.timestamp >= cutoff]

    # =========================================================================
    # Analysis
    # =========================================================================

    async def analyze_feedback(self) -> FeedbackAnalysis:
        feedback = self._recent(self.config.analysis_window_days)
        if not feedback:
            return FeedbackAnalysis()

        tool_scores = self.tool_scores(feedback)
        common_issues = self.common_issues(feedback)

        improvement_areas = [f"Improve {tool} performance and reliability" for tool, s in tool_scores.items() if s < LOW_SCORE]
        improvement_areas.extend(self.common_issues([f for f in feedback if f.rating <= POOR_RATING]))

        return FeedbackAnalysis(
            overall_satisfaction=_mean([f.rating for f in feedback]),
            tool_scores=tool_scores,
            common_issues=common_issues,
            improvement_areas=list(dict.fromkeys(improvement_areas)),
            trends=self.analyze_trends(feedback),
        )

    @staticmethod
    def tool_scores(feedback: list[UserFeedback]) -> dict[str, float]:
        ratings: dict[str, list[int]] = defaultdict(list)
        for f in feedback:
            ratings[f.tool_name].append(f.rating)
        return {tool: _mean(r) for tool, r in ratings.items()}

    @staticmethod
    def common_issues(feedback: list[UserFeedback], limit: int = 5) -> list[str]:
        counts: Counter = Counter()
        for f in feedback:
            if f.rating <= 3 and f.comment:
                counts.update(_issues_in(f.comment))
        return [issue for issue, _ in counts.most_common(limit)]

    @staticmethod
    def analyze_trends(feedback: list[UserFeedback]) -> TrendAnalysis:
        """Recent half vs older half of each tool's ratings; >0.5 delta is a trend."""
        ratings: dict[str, list[int]] = defaultdict(list)
        for f in sorted(feedback, key=lambda f: f.timestamp):
            ratings[f.tool_name].append(f.rating)

        trends = TrendAnalysis()
        for tool, values in ratings.items():
            if len(values) < MIN_TREND_SAMPLES:
                trends.stable.append(tool)
                continue
            recent = values[-math.ceil(len(values) / 2) :]
            older = values[: len(values) // 2]
            delta = _mean(recent) - _mean(older)
            if delta > TREND_DELTA:
                trends.improving.append(tool)
            elif delta < -TREND_DELTA:
                trends.declining.append(tool)
            else:
                trends.stable.append(tool)
        return trends

    # =========================================================================
    # Insight generation
    # =========================================================================

    async def generate_learning_insights(self) -> list[LearningInsight]:
        """Run all analyzers over the analysis window, strongest first."""
        feedback = self._recent(self.config.analysis_window_days)
        insights = [
            *self.discover_usage_patterns(feedback),
            *self.analyze_performance(feedback),
            *self.analyze_user_preferences(feedback),
            *self.identify_error_patterns(feedback),
        ]
        insights.sort(key=lambda i: i.rank_score, reverse=True)
        self._insights = insights
        return insights

    @staticmethod
    def discover_usage_patterns(feedback: list[UserFeedback]) -> list[LearningInsight]:
        """Tool transitions inside tasks where every rating was 4 or better."""
        by_task: dict[str, list[UserFeedback]] = defaultdict(list)
        for f in feedback:
            by_task[f.task_id].append(f)

        transitions: Counter = Counter()
        for items in by_task.values():
            if any(f.rating < 4 for f in items):
                continue
            sequence = [f.tool_name for f in sorted(items, key=lambda f: f.timestamp)]
            for a, b in zip(sequence, sequence[1:], strict=False):
                if a != b:
                    transitions[f"{a} -> {b}"] += 1

        patterns = [{"pattern": p, "occurrences": n} for p, n in transitions.most_common() if n >= PATTERN_MIN_SUPPORT]
        if not patterns:
            return []

        support = sum(p["occurrences"] for p in patterns)
        return [
            LearningInsight(
                type=InsightType.PATTERN_DISCOVERY,
                confidence=min(0.95, 0.6 + 0.05 * support),
                description=f"Discovered {len(patterns)} successful tool usage patterns",
                impact=Impact.MEDIUM,
                actionable_recommendations=[
                    "Incorporate successful patterns into tool selection logic",
                    "Prioritize tools that work well together",
                ],
                supporting_data={"patterns": patterns},
            )
        ]

    @staticmethod
    def analyze_performance(feedback: list[UserFeedback]) -> list[LearningInsight]:
        """One insight per tool whose mean rating is below 3.0."""
        ratings: dict[str, list[int]] = defaultdict(list)
        for f in feedback:
            ratings[f.tool_name].append(f.rating)

        insights = []
        for tool, values in ratings.items():
            average = _mean(values)
            if average >= LOW_SCORE:
                continue
            insights.append(
                LearningInsight(
                    type=InsightType.PERFORMANCE_OPTIMIZATION,
                    confidence=min(0.95, 0.5 + 0.1 * len(values)),
                    description=f"{tool} averages {average:.1f}/5 over {len(values)} ratings",
                    impact=Impact.HIGH if average < 2.0 else Impact.MEDIUM,
                    actionable_recommendations=[
                        f"Review and optimize {tool}",
                        f"Consider alternative tools to {tool} for affected use cases",
                    ],
                    supporting_data={"tools": [tool], "average_rating": average, "samples": len(values)},
                )
            )
        return insights

    @staticmethod
    def analyze_user_preferences(feedback: list[UserFeedback]) -> list[LearningInsight]:
        """Recurring words in positive comments plus consistently top-rated tools."""
        keyword_support: Counter = Counter()
        for f in feedback:
            if f.rating >= 4 and f.comment:
                words = {w for w in _WORD_RE.findall(f.comment.lower()) if w not in STOPWORDS}
                keyword_support.update(words)

        keywords = [{"keyword": w, "occurrences": n} for w, n in keyword_support.most_common(10) if n >= PREFERENCE_MIN_SUPPORT]

        ratings: dict[str, list[int]] = defaultdict(list)
        for f in feedback:
            ratings[f.tool_name].append(f.rating)
        preferred = [
            {"tool": tool, "average_rating": _mean(values)}
            for tool, values in ratings.items()
            if len(values) >= PREFERENCE_MIN_SUPPORT and _mean(values) >= 4.5
        ]

        if not keywords and not preferred:
            return []

        support = sum(k["occurrences"] for k in keywords) + len(preferred)
        return [
            LearningInsight(
                type=InsightType.USER_PREFERENCE,
                confidence=min(0.9, 0.5 + 0.05 * support),
                description=f"Identified {len(keywords) + len(preferred)} user preference patterns",
                impact=Impact.MEDIUM,
                actionable_recommendations=[
                    "Personalize tool selection based on user preferences",
                    *(f"Favor {p['tool']} where it applies" for p in preferred),
                ],
                supporting_data={"keywords": keywords, "preferred_tools": preferred},
            )
        ]

    @staticmethod
    def identify_error_patterns(feedback: list[UserFeedback]) -> list[LearningInsight]:
        """Complaint categories that recur in low-rated comments."""
        counts: Counter = Counter()
        tools: dict[str, set[str]] = defaultdict(set)
        for f in feedback:
            if f.rating <= 3 and f.comment:
                for issue in _issues_in(f.comment):
                    counts[issue] += 1
                    tools[issue].add(f.tool_name)

        errors = [
            {"category": issue, "occurrences": n, "tools": sorted(tools[issue])}
            for issue, n in counts.most_common()
            if n >= ERROR_MIN_SUPPORT
        ]
        if not errors:
            return []

        top = errors[0]["occurrences"]
        return [
            LearningInsight(
                type=InsightType.ERROR_PREVENTION,
                confidence=min(0.95, 0.5 + 0.1 * top),
                description=f"Identified {len(errors)} common error patterns",
                impact=Impact.HIGH if top >= 5 else Impact.MEDIUM,
                actionable_recommendations=[
                    "Implement preventive measures for common errors",
                    "Add validation and guidance for error-prone scenarios",
                ],
                supporting_data={"errors": errors},
            )
        ]

    # =========================================================================
    # Adaptation
    # =========================================================================

    async def adapt_tool_selection(self) -> AdaptationResult:
        """Apply every insight at or above the confidence threshold."""
        insights = await self.generate_learning_insights()
        applied = [i for i in insights if i.confidence >= self.config.confidence_threshold]

        adapted_tools: list[str] = []
        adaptations: list[str] = []
        for insight in applied:
            try:
                tools, description = await self._apply_insight(insight)
            except Exception:
                logger.error("Failed to apply %s insight", insight.type.value, exc_info=True)
                continue
            adapted_tools.extend(tools)
            adaptations.append(description)

        restored = await self._restore_recovered_tools()
        adapted_tools.extend(restored)
        adaptations.extend(f"Restored {tool} after ratings recovered" for tool in restored)

        self._last_adaptation = self._clock()
        await self._save()

        result = AdaptationResult(
            adapted_tools=list(dict.fromkeys(adapted_tools)),
            adaptations=adaptations,
            confidence=_mean([i.confidence for i in applied]),
        )
        logger.info("Adaptation complete: %d tools adapted from %d insights", len(result.adapted_tools), len(applied))
        return result

    async def _apply_insight(self, insight: LearningInsight) -> tuple[list[str], str]:
        if insight.type == InsightType.PERFORMANCE_OPTIMIZATION:
            flagged = []
            for tool in insight.supporting_data.get("tools", []):
                if await self.registry.flag_for_deprioritization(tool, insight.description):
                    flagged.append(tool)
            return flagged, f"Applied performance optimization: {insight.description}"

        if insight.type == InsightType.PATTERN_DISCOVERY:
            return [], f"Applied pattern discovery: {insight.description}"
        if insight.type == InsightType.ERROR_PREVENTION:
            return [], f"Recorded error prevention guidance: {insight.description}"
        return [], f"Recorded user preference: {insight.description}"

    async def _restore_recovered_tools(self) -> list[str]:
        """Clear de-prioritization for tools whose windowed mean is back at 3.0 or above."""
        scores = self.tool_scores(self._recent(self.config.analysis_window_days))
        restored = []
        for tool, score in scores.items():
            if score >= LOW_SCORE and self.registry.is_deprioritized(tool):
                await self.registry.clear_deprioritization(tool)
                restored.append(tool)
        return restored

    def should_trigger_adaptation(self) -> bool:
        if len(self._history) < self.config.min_feedback_count:
            return False
        if self._last_adaptation is None:
            return True
        elapsed = self._clock() - self._last_adaptation
        return elapsed >= timedelta(hours=self.config.adaptation_hours)

    async def maybe_adapt(self) -> AdaptationResult | None:
        if not self.should_trigger_adaptation():
            return None
        return await self.adapt_tool_selection()

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._adaptation_loop())
        logger.info("Adaptation checks started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Adaptation checks stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _adaptation_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.check_interval_seconds)
            try:
                await self.maybe_adapt()
            except Exception:
                logger.error("Periodic adaptation failed", exc_info=True)

    # =========================================================================
    # Reporting
    # =========================================================================

    async def get_health_report(self) -> HealthReport:
        analysis = await self.analyze_feedback()
        insights = await self.generate_learning_insights()
        satisfaction = analysis.overall_satisfaction
        high_impact = [i for i in insights if i.impact == Impact.HIGH]

        if satisfaction >= 4.0 and not high_impact:
            status = HealthStatus.HEALTHY
        elif satisfaction >= 3.0 and len(high_impact) <= 2:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.CRITICAL

        issues = []
        if satisfaction < 3.0:
            issues.append("Low user satisfaction")
        if len(analysis.common_issues) > 3:
            issues.append("Multiple recurring issues")
        if len(high_impact) > 2:
            issues.append("Multiple high-impact problems")

        recommendations = [r for i in insights for r in i.actionable_recommendations]
        if satisfaction < 3.5:
            recommendations.append("Focus on improving user satisfaction")

        return HealthReport(
            overall_status=status,
            recommendation_quality=min(satisfaction / 5, 1.0),
            system_performance=self._system_performance(),
            learning_effectiveness=self._learning_effectiveness(insights),
            user_satisfaction=satisfaction,
            issues=issues,
            recommendations=list(dict.fromkeys(recommendations))[:MAX_SYSTEM_RECOMMENDATIONS],
            last_updated=self._clock(),
        )

    def _system_performance(self) -> float:
        recent = self._recent(7)
        if not recent:
            return 0.5
        rated = [f.rating for f in recent if f.comment and "performance" in f.comment.lower()]
        if not rated:
            return 0.7
        return _mean(rated) / 5

    def _learning_effectiveness(self, insights: list[LearningInsight]) -> float:
        if not insights:
            return 0.5
        strong = [i for i in insights if i.confidence >= self.config.confidence_threshold]
        return len(strong) / len(insights)

    def get_feedback_statistics(self) -> FeedbackStatistics:
        stats = FeedbackStatistics(total_feedback=len(self._history))
        if not self._history:
            return stats

        stats.average_rating = _mean([f.rating for f in self._history])
        for f in self._history:
            stats.rating_distribution[f.rating] += 1
        per_tool = Counter(f.tool_name for f in self._history)
        stats.most_rated_tools = [tool for tool, _ in per_tool.most_common(5)]
        stats.recent_trend = self._recent_trend()
        return stats

    def _recent_trend(self) -> Trend:
        """Last 7 days vs the 7 days before."""
        now = self._clock()
        week = timedelta(days=7)
        recent = [f.rating for f in self._history if f.timestamp >= now - week]
        older = [f.rating for f in self._history if now - 2 * week <= f.timestamp < now - week]
        if not recent or not older:
            return Trend.STABLE

        delta = _mean(recent) - _mean(older)
        if delta > RECENT_TREND_DELTA:
            return Trend.IMPROVING
        if delta < -RECENT_TREND_DELTA:
            return Trend.DECLINING
        return Trend.STABLE

    # =========================================================================
    # A/B tests
    # =========================================================================

    def create_ab_test(self, config: ABTestConfig) -> str:
        test_id = f"ab-{uuid.uuid4().hex[:12]}"
        self._ab_tests[test_id] = config
        self._ab_observations[test_id] = {"control": [], "variant": []}
        logger.info("Created A/B test %s: %s", test_id, config.test_name)
        return test_id

    def record_ab_test_result(self, test_id: str, group: str, metrics: dict[str, float]) -> None:
        if test_id not in self._ab_tests:
            raise KeyError(f"A/B test {test_id} not found")
        if group not in ("control", "variant"):
            raise ValueError(f"group must be 'control' or 'variant', got {group!r}")
        self._ab_observations[test_id][group].append(dict(metrics))

    def get_ab_test_result(self, test_id: str) -> ABTestResult | None:
        """
        Compare group means; the first configured metric decides.

        A winner needs min_samples observations per group and more than
        5% relative improvement. No significance testing is done.
        """
        config = self._ab_tests.get(test_id)
        if config is None:
            return None

        observations = self._ab_observations[test_id]
        names = list(config.metrics)
        for obs in observations["control"] + observations["variant"]:
            names.extend(k for k in obs if k not in names)

        metrics: dict[str, ABTestMetric] = {}
        for name in names:
            control = _mean([o[name] for o in observations["control"] if name in o])
            variant = _mean([o[name] for o in observations["variant"] if name in o])
            metrics[name] = ABTestMetric(control=control, variant=variant, improvement=self._improvement(control, variant))

        result = ABTestResult(test_name=config.test_name, metrics=metrics)
        samples = min(len(observations["control"]), len(observations["variant"]))
        if not names or samples < config.min_samples:
            result.recommendations.append(f"Collect at least {config.min_samples} observations per group")
            return result

        primary = metrics[names[0]]
        if abs(primary.improvement) <= AB_MIN_IMPROVEMENT:
            result.recommendations.append("No meaningful difference; keep the control configuration")
            return result

        result.winner = "variant" if primary.improvement > 0 else "control"
        result.confidence = min(1.0, samples / (2 * config.min_samples))
        chosen = config.variant_group if result.winner == "variant" else config.control_group
        result.recommendations.append(f"Adopt {chosen} ({names[0]} {primary.improvement:+.0%})")
        return result

    @staticmethod
    def _improvement(control: float, variant: float) -> float:
        if control == 0:
            return 0.0 if variant == 0 else math.copysign(1.0, variant)
        return (variant - control) / abs(control)

    def stats(self) -> dict[str, Any]:
        return {
            "feedback": len(self._history),
            "insights": len(self._insights),
            "ab_tests": len(self._ab_tests),
            "last_adaptation": self._last_adaptation.isoformat() if self._last_adaptation else None,
        }
