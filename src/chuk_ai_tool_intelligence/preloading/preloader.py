# chuk_ai_tool_intelligence/preloading/preloader.py
"""
Predictive Pre-loader - prepares tools before they are asked for.

Each cycle runs every strategy, merges their predictions per tool, ranks
them, and admits the ones some contributing strategy approves until the
SystemLoad budget is exhausted. Anything eligible after that point is
reported as skipped.

Usage::

    preloader = PredictivePreloader(registry)
    result = await preloader.predict_and_preload(context, session_history)
    if preloader.is_preloaded("read_file"):
        ...
    await preloader.start()   # periodic sweep of expired entries
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta

from chuk_ai_tool_intelligence.models.context import ActivityRecord, TaskContext
from chuk_ai_tool_intelligence.models.enums import ActivityType
from chuk_ai_tool_intelligence.preloading.cache import PreloadCache
from chuk_ai_tool_intelligence.preloading.models import (
    PreloadCacheEntry,
    PreloadCacheStats,
    PreloadEffectiveness,
    PreloadPrediction,
    PreloadResult,
    SystemLoad,
)
from chuk_ai_tool_intelligence.preloading.probes import SimulatedLoadProbe, SystemLoadProbe
from chuk_ai_tool_intelligence.preloading.strategies import PreloadStrategy, default_strategies, tool_uses
from chuk_ai_tool_intelligence.registry.registry import ToolRegistry
from chuk_ai_tool_intelligence.utils import Clock, utc_now

logger = logging.getLogger(__name__)

PREDICTION_HISTORY_LIMIT = 1000
PREDICTION_HISTORY_KEEP = 500
USAGE_LOG_LIMIT = 500
ACCURACY_WINDOW = 100


def merge_predictions(predictions: list[PreloadPrediction]) -> list[PreloadPrediction]:
    """
    Collapse predictions per tool.

    probability and confidence take the max, reasoning and strategies
    the union, ETA the min, priority the highest rank.
    """
    merged: dict[str, PreloadPrediction] = {}
    for prediction in predictions:
        current = merged.get(prediction.tool_name)
        if current is None:
            merged[prediction.tool_name] = prediction.model_copy(deep=True)
            continue

        current.probability = max(current.probability, prediction.probability)
        current.confidence = max(current.confidence, prediction.confidence)
        current.estimated_time_to_use = min(current.estimated_time_to_use, prediction.estimated_time_to_use)
        if prediction.priority.rank > current.priority.rank:
            current.priority = prediction.priority
        current.reasoning.extend(r for r in prediction.reasoning if r not in current.reasoning)
        current.strategies.extend(s for s in prediction.strategies if s not in current.strategies)
    return list(merged.values())


class PredictivePreloader:
    """Runs preload strategies and keeps the TTL cache of prepared tools."""

    def __init__(
        self,
        registry: ToolRegistry,
        strategies: list[PreloadStrategy] | None = None,
        probe: SystemLoadProbe | None = None,
        max_preloads: int = 10,
        ttl_minutes: float = 30,
        sweep_interval_seconds: float = 30,
        clock: Clock | None = None,
    ):
        self.registry = registry
        self.strategies = strategies if strategies is not None else default_strategies(registry)
        self.probe = probe or SimulatedLoadProbe()
        self.max_preloads = max_preloads
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock or utc_now

        self.cache = PreloadCache(ttl=timedelta(minutes=ttl_minutes), max_entries=max_preloads)
        self._prediction_history: list[PreloadPrediction] = []
        self._usage_log: list[ActivityRecord] = []
        self._load = self._sample_load()
        self._sweep_task: asyncio.Task | None = None

    # =========================================================================
    # Prediction cycle
    # =========================================================================

    async def predict_and_preload(
        self,
        context: TaskContext,
        session_history: list[TaskContext] | None = None,
    ) -> PreloadResult:
        now = self._clock()
        self._load = self._sample_load()

        usage = tool_uses([*(session_history or []), context])
        usage = sorted(usage + self._usage_log, key=lambda a: a.timestamp)

        raw: list[PreloadPrediction] = []
        for strategy in self.strategies:
            try:
                raw.extend(strategy.predict(context, usage, now))
            except Exception:
                logger.warning("Preload strategy %s failed", strategy.name, exc_info=True)

        ranked = sorted(merge_predictions(raw), key=lambda p: p.rank_score, reverse=True)
        by_name = {s.name: s for s in self.strategies}

        preloaded: list[str] = []
        skipped: list[str] = []
        for prediction in ranked:
            if not self._admissible(prediction, by_name):
                continue

            if self.cache.peek(prediction.tool_name, now) is not None:
                preloaded.append(prediction.tool_name)
                continue

            if self._load.at_capacity:
                skipped.append(prediction.tool_name)
                continue

            self.cache.put(prediction.tool_name, now)
            preloaded.append(prediction.tool_name)
            self._load = self._sample_load()

        self._prediction_history.extend(ranked)
        if len(self._prediction_history) > PREDICTION_HISTORY_LIMIT:
            self._prediction_history = self._prediction_history[-PREDICTION_HISTORY_KEEP:]

        if skipped:
            logger.info("Preload budget exhausted, skipped %d predictions", len(skipped))
        logger.debug("Preloaded %s from %d predictions", preloaded, len(ranked))

        return PreloadResult(
            predictions=ranked,
            preloaded=preloaded,
            skipped=skipped,
            system_load=self._load,
        )

    def _admissible(self, prediction: PreloadPrediction, by_name: dict[str, PreloadStrategy]) -> bool:
        load = self._load
        for name in prediction.strategies:
            strategy = by_name.get(name)
            if strategy is not None and strategy.should_preload(prediction, load):
                return True
        return False

    def _sample_load(self) -> SystemLoad:
        active = len(self.cache.live_entries(self._clock()))
        return self.probe.sample(active, self.max_preloads)

    @property
    def system_load(self) -> SystemLoad:
        return self._load

    @property
    def prediction_history(self) -> list[PreloadPrediction]:
        return list(self._prediction_history)

    # =========================================================================
    # Cache access
    # =========================================================================

    def is_preloaded(self, tool_name: str) -> bool:
        return self.cache.peek(tool_name, self._clock()) is not None

    def get_preloaded(self, tool_name: str) -> PreloadCacheEntry | None:
        """Cache lookup that counts as an access (or a miss)."""
        return self.cache.get(tool_name, self._clock())

    def record_tool_use(self, tool_name: str, success: bool = True) -> None:
        """Feed an observed tool call into the usage log strategies learn from."""
        now = self._clock()
        self._usage_log.append(
            ActivityRecord(
                type=ActivityType.TOOL_USE,
                timestamp=now,
                tool_name=tool_name,
                success=success,
                description=f"Used {tool_name}",
            )
        )
        if len(self._usage_log) > USAGE_LOG_LIMIT:
            self._usage_log = self._usage_log[-USAGE_LOG_LIMIT:]

        if self.cache.peek(tool_name, now) is not None:
            self.cache.get(tool_name, now)

    # =========================================================================
    # Background sweep
    # =========================================================================

    async def sweep(self) -> int:
        """Evict expired entries and refresh the load snapshot."""
        evicted = self.cache.evict_expired(self._clock())
        self._load = self._sample_load()
        return evicted

    async def start(self) -> None:
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info("Preload sweep started")

    async def stop(self) -> None:
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweep_task
        self._sweep_task = None
        logger.info("Preload sweep stopped")

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                await self.sweep()
            except Exception:
                logger.error("Preload sweep failed", exc_info=True)

    # =========================================================================
    # Reporting
    # =========================================================================

    def get_cache_stats(self) -> PreloadCacheStats:
        return self.cache.get_stats()

    def get_effectiveness(self) -> PreloadEffectiveness:
        now = self._clock()
        entries = self.cache.live_entries(now)

        accessed = [e for e in entries if e.access_count > 0]
        hit_rate = len(accessed) / len(entries) if entries else 0.0
        avg_age = sum((now - e.preloaded_at).total_seconds() for e in entries) / len(entries) if entries else 0.0

        recent = self._prediction_history[-ACCURACY_WINDOW:]
        accessed_names = {e.tool_name for e in accessed}
        accuracy = sum(1 for p in recent if p.tool_name in accessed_names) / len(recent) if recent else 0.0

        recommendations = []
        if hit_rate < 0.3:
            recommendations.append("Preload hit rate is low. Consider adjusting prediction strategies.")
        if avg_age > self.cache.ttl.total_seconds():
            recommendations.append("Cache items are aging. Consider reducing preload TTL.")
        if accuracy < 0.5:
            recommendations.append("Prediction accuracy is low. Retrain prediction models with more data.")
        if self._load.active_preloads >= self._load.max_preloads * 0.8:
            recommendations.append(
                "Preload cache is near capacity. Consider increasing max preloads or improving cleanup."
            )

        return PreloadEffectiveness(
            hit_rate=hit_rate,
            average_cache_age_seconds=avg_age,
            prediction_accuracy=accuracy,
            recommendations=recommendations,
        )
