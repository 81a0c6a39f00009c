# tests/test_preloader.py
"""
Tests for the predictive pre-loader.

Covers:
- Each default strategy's predictions and admission rule
- Merging predictions across strategies
- Budgeted admission and skipping at capacity
- TTL expiry, sweeping and the background task
- Effectiveness reporting and bounded prediction history
"""

import asyncio
from datetime import timedelta

import pytest

from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.enums import PreloadPriority
from chuk_ai_tool_intelligence.preloading.models import PreloadPrediction, SystemLoad
from chuk_ai_tool_intelligence.preloading.preloader import PredictivePreloader, merge_predictions
from chuk_ai_tool_intelligence.preloading.strategies import (
    ContextAwareStrategy,
    PatternBasedStrategy,
    SequentialWorkflowStrategy,
    TimeBasedStrategy,
)
from tests.helpers import START, tool_use


def prediction(tool, probability, strategy="stub", confidence=0.9, eta=1000.0):
    return PreloadPrediction(
        tool_name=tool,
        probability=probability,
        confidence=confidence,
        reasoning=[f"{strategy} likes {tool}"],
        estimated_time_to_use=eta,
        priority=PreloadPriority.from_score(probability, confidence),
        strategies=[strategy],
    )


class StubStrategy:
    """Returns canned predictions and a fixed admission answer."""

    def __init__(self, predictions, name="stub", admit=True):
        self.name = name
        self.predictions = predictions
        self.admit = admit

    def predict(self, context, usage, now):
        return [p.model_copy(deep=True) for p in self.predictions]

    def should_preload(self, prediction, load):
        return self.admit


class BrokenStrategy:
    name = "broken"

    def predict(self, context, usage, now):
        raise RuntimeError("model unavailable")

    def should_preload(self, prediction, load):
        return True


def alternating_usage(*names, count=5):
    return [tool_use(names[i % len(names)], START + timedelta(minutes=i)) for i in range(count)]


class TestPatternBasedStrategy:
    def test_predicts_repeated_follower(self):
        usage = alternating_usage("read_file", "replace_in_file")

        predictions = PatternBasedStrategy().predict(TaskContext(user_request="x"), usage, START)

        assert len(predictions) == 1
        p = predictions[0]
        assert p.tool_name == "replace_in_file"
        assert p.probability == 1.0
        assert p.priority == PreloadPriority.HIGH
        assert p.estimated_time_to_use == 60000
        assert p.strategies == ["pattern-based"]

    def test_single_occurrence_ignored(self):
        usage = alternating_usage("a", "b", count=3)
        assert PatternBasedStrategy().predict(TaskContext(user_request="x"), usage, START) == []

    def test_admission_respects_memory(self):
        strategy = PatternBasedStrategy()
        p = prediction("a", 0.9, "pattern-based", confidence=0.7)

        assert strategy.should_preload(p, SystemLoad(memory_usage=0.5))
        assert not strategy.should_preload(p, SystemLoad(memory_usage=0.9))


class TestContextAwareStrategy:
    def test_technologies(self):
        context = TaskContext(user_request="port this python script to rust", technologies=["Go"])
        assert ContextAwareStrategy.technologies(context) == {"go", "python", "rust"}

    @pytest.mark.asyncio
    async def test_domain_mentions_drive_probability(self, registry):
        context = TaskContext(user_request="file operations for code analysis")

        predictions = ContextAwareStrategy(registry).predict(context, [], START)
        by_tool = {p.tool_name: p for p in predictions}

        assert by_tool["read_file"].probability == pytest.approx(0.7)
        assert all(p.probability > 0.5 for p in predictions)
        assert "execute_command" not in by_tool


class TestSequentialWorkflowStrategy:
    def test_follows_table(self):
        usage = [tool_use("list_files", START)]

        predictions = SequentialWorkflowStrategy().predict(TaskContext(user_request="x"), usage, START)

        assert [(p.tool_name, p.probability) for p in predictions] == [("read_file", 0.7)]
        assert predictions[0].priority == PreloadPriority.MEDIUM

    def test_admission_backs_off_near_capacity(self):
        strategy = SequentialWorkflowStrategy()
        p = prediction("read_file", 0.7, "sequential-workflow", confidence=0.6)

        assert strategy.should_preload(p, SystemLoad(active_preloads=2, max_preloads=10))
        assert not strategy.should_preload(p, SystemLoad(active_preloads=8, max_preloads=10))


class TestTimeBasedStrategy:
    def test_same_hour_same_weekday(self):
        usage = [
            tool_use("read_file", START),
            tool_use("read_file", START + timedelta(minutes=20)),
            tool_use("list_files", START + timedelta(hours=3)),
        ]
        now = START + timedelta(days=7)

        predictions = TimeBasedStrategy().predict(TaskContext(user_request="x"), usage, now)

        assert [(p.tool_name, p.probability) for p in predictions] == [("read_file", 1.0)]

    def test_needs_samples(self):
        usage = [tool_use("read_file", START)]
        assert TimeBasedStrategy().predict(TaskContext(user_request="x"), usage, START) == []


class TestMerge:
    def test_merge_combines_per_tool(self):
        merged = merge_predictions(
            [
                prediction("a", 0.4, "one", confidence=0.9, eta=5000),
                prediction("a", 0.9, "two", confidence=0.5, eta=2000),
                prediction("b", 0.5, "one"),
            ]
        )

        a = next(p for p in merged if p.tool_name == "a")
        assert len(merged) == 2
        assert a.probability == 0.9
        assert a.confidence == 0.9
        assert a.estimated_time_to_use == 2000
        assert a.strategies == ["one", "two"]
        assert len(a.reasoning) == 2
        assert a.priority == PreloadPriority.MEDIUM


class TestAdmission:
    @pytest.mark.asyncio
    async def test_at_capacity_everything_is_skipped(self, registry, clock, fixed_probe):
        preloader = PredictivePreloader(
            registry,
            strategies=[StubStrategy([prediction("a", 0.9), prediction("b", 0.8)])],
            probe=fixed_probe(active_preloads=10, max_preloads=10),
            clock=clock,
        )

        result = await preloader.predict_and_preload(TaskContext(user_request="x"))

        assert result.preloaded == []
        assert result.skipped == ["a", "b"]
        assert len(preloader.cache) == 0

    @pytest.mark.asyncio
    async def test_budget_fills_then_skips(self, registry, clock):
        preloader = PredictivePreloader(
            registry,
            strategies=[StubStrategy([prediction("b", 0.8), prediction("a", 0.9)])],
            max_preloads=1,
            clock=clock,
        )

        result = await preloader.predict_and_preload(TaskContext(user_request="x"))

        assert [p.tool_name for p in result.predictions] == ["a", "b"]
        assert result.preloaded == ["a"]
        assert result.skipped == ["b"]
        assert result.system_load.active_preloads == 1

    @pytest.mark.asyncio
    async def test_live_entry_counts_without_budget(self, registry, clock):
        preloader = PredictivePreloader(
            registry,
            strategies=[StubStrategy([prediction("a", 0.9), prediction("b", 0.8)])],
            max_preloads=1,
            clock=clock,
        )
        await preloader.predict_and_preload(TaskContext(user_request="x"))

        result = await preloader.predict_and_preload(TaskContext(user_request="x"))

        assert result.preloaded == ["a"]
        assert result.skipped == ["b"]

    @pytest.mark.asyncio
    async def test_rejected_predictions_neither_loaded_nor_skipped(self, registry, clock):
        preloader = PredictivePreloader(
            registry, strategies=[StubStrategy([prediction("a", 0.9)], admit=False)], clock=clock
        )

        result = await preloader.predict_and_preload(TaskContext(user_request="x"))

        assert [p.tool_name for p in result.predictions] == ["a"]
        assert result.preloaded == []
        assert result.skipped == []

    @pytest.mark.asyncio
    async def test_any_contributing_strategy_can_admit(self, registry, clock):
        preloader = PredictivePreloader(
            registry,
            strategies=[
                StubStrategy([prediction("a", 0.9, "strict")], name="strict", admit=False),
                StubStrategy([prediction("a", 0.5, "lenient")], name="lenient", admit=True),
            ],
            clock=clock,
        )

        result = await preloader.predict_and_preload(TaskContext(user_request="x"))

        assert result.preloaded == ["a"]
        assert result.predictions[0].strategies == ["strict", "lenient"]

    @pytest.mark.asyncio
    async def test_failing_strategy_is_isolated(self, registry, clock):
        preloader = PredictivePreloader(
            registry, strategies=[BrokenStrategy(), StubStrategy([prediction("a", 0.9)])], clock=clock
        )

        result = await preloader.predict_and_preload(TaskContext(user_request="x"))

        assert result.preloaded == ["a"]

    @pytest.mark.asyncio
    async def test_recorded_usage_feeds_patterns(self, registry, clock):
        preloader = PredictivePreloader(registry, strategies=[PatternBasedStrategy()], clock=clock)
        for name in ["read_file", "replace_in_file", "read_file", "replace_in_file", "read_file"]:
            preloader.record_tool_use(name)
            clock.advance(minutes=1)

        result = await preloader.predict_and_preload(TaskContext(user_request="x"))

        assert result.preloaded == ["replace_in_file"]

    @pytest.mark.asyncio
    async def test_session_history_feeds_patterns(self, registry, clock):
        preloader = PredictivePreloader(registry, strategies=[PatternBasedStrategy()], clock=clock)
        history = [TaskContext(user_request="earlier", recent_activity=alternating_usage("list_files", "read_file"))]

        result = await preloader.predict_and_preload(TaskContext(user_request="x"), history)

        assert result.preloaded == ["read_file"]


class TestCache:
    @pytest.fixture
    def preloader(self, registry, clock):
        return PredictivePreloader(
            registry, strategies=[StubStrategy([prediction("a", 0.9), prediction("b", 0.8)])], clock=clock
        )

    @pytest.mark.asyncio
    async def test_expired_entry_is_absent(self, preloader, clock):
        await preloader.predict_and_preload(TaskContext(user_request="x"))
        assert preloader.is_preloaded("a")

        clock.advance(minutes=31)

        assert not preloader.is_preloaded("a")
        assert preloader.get_preloaded("a") is None
        stats = preloader.get_cache_stats()
        assert stats.misses == 1
        assert stats.expirations == 1

    @pytest.mark.asyncio
    async def test_get_counts_access(self, preloader):
        await preloader.predict_and_preload(TaskContext(user_request="x"))

        entry = preloader.get_preloaded("a")

        assert entry.access_count == 1
        assert preloader.get_cache_stats().hits == 1

    @pytest.mark.asyncio
    async def test_record_tool_use_touches_live_entry(self, preloader):
        await preloader.predict_and_preload(TaskContext(user_request="x"))

        preloader.record_tool_use("a")
        preloader.record_tool_use("never-loaded")

        assert preloader.cache.peek("a", START).access_count == 1
        assert preloader.get_cache_stats().misses == 0

    @pytest.mark.asyncio
    async def test_sweep_evicts_expired(self, preloader, clock):
        await preloader.predict_and_preload(TaskContext(user_request="x"))
        clock.advance(minutes=31)

        assert await preloader.sweep() == 2
        assert len(preloader.cache) == 0
        assert preloader.system_load.active_preloads == 0

    @pytest.mark.asyncio
    async def test_background_sweep(self, registry, clock):
        preloader = PredictivePreloader(
            registry, strategies=[StubStrategy([prediction("a", 0.9)])], sweep_interval_seconds=0.01, clock=clock
        )
        await preloader.predict_and_preload(TaskContext(user_request="x"))
        clock.advance(minutes=31)

        await preloader.start()
        assert preloader.running
        await asyncio.sleep(0.05)
        await preloader.stop()

        assert not preloader.running
        assert "a" not in preloader.cache


class TestEffectiveness:
    @pytest.mark.asyncio
    async def test_empty_preloader_advice(self, registry, clock):
        report = PredictivePreloader(registry, strategies=[], clock=clock).get_effectiveness()

        assert report.hit_rate == 0.0
        assert report.prediction_accuracy == 0.0
        assert "Preload hit rate is low. Consider adjusting prediction strategies." in report.recommendations
        assert "Prediction accuracy is low. Retrain prediction models with more data." in report.recommendations

    @pytest.mark.asyncio
    async def test_measures_hits_and_accuracy(self, registry, clock):
        preloader = PredictivePreloader(
            registry, strategies=[StubStrategy([prediction("a", 0.9), prediction("b", 0.8)])], clock=clock
        )
        await preloader.predict_and_preload(TaskContext(user_request="x"))
        clock.advance(minutes=10)
        preloader.get_preloaded("a")

        report = preloader.get_effectiveness()

        assert report.hit_rate == 0.5
        assert report.prediction_accuracy == 0.5
        assert report.average_cache_age_seconds == 600
        assert report.recommendations == []

    @pytest.mark.asyncio
    async def test_prediction_history_is_bounded(self, registry, clock):
        many = [prediction(f"tool-{i}", 0.5) for i in range(600)]
        preloader = PredictivePreloader(registry, strategies=[StubStrategy(many, admit=False)], clock=clock)

        await preloader.predict_and_preload(TaskContext(user_request="x"))
        assert len(preloader.prediction_history) == 600

        await preloader.predict_and_preload(TaskContext(user_request="x"))
        assert len(preloader.prediction_history) == 500
