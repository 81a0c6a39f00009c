# chuk_ai_tool_intelligence/preloading/__init__.py
"""Predictive Pre-loader: strategy-driven, load-budgeted TTL cache of prepared tools."""

from chuk_ai_tool_intelligence.preloading.cache import PreloadCache
from chuk_ai_tool_intelligence.preloading.models import (
    PreloadCacheEntry,
    PreloadCacheStats,
    PreloadEffectiveness,
    PreloadPrediction,
    PreloadResult,
    SystemLoad,
)
from chuk_ai_tool_intelligence.preloading.preloader import PredictivePreloader, merge_predictions
from chuk_ai_tool_intelligence.preloading.probes import SimulatedLoadProbe, SystemLoadProbe
from chuk_ai_tool_intelligence.preloading.strategies import (
    ContextAwareStrategy,
    NextTool,
    PatternBasedStrategy,
    PreloadStrategy,
    SequentialWorkflowStrategy,
    TimeBasedStrategy,
    default_strategies,
    default_workflow_table,
    tool_uses,
)

__all__ = [
    "PredictivePreloader",
    "PreloadCache",
    "PreloadCacheEntry",
    "PreloadCacheStats",
    "PreloadEffectiveness",
    "PreloadPrediction",
    "PreloadResult",
    "SystemLoad",
    "SystemLoadProbe",
    "SimulatedLoadProbe",
    "PreloadStrategy",
    "PatternBasedStrategy",
    "ContextAwareStrategy",
    "SequentialWorkflowStrategy",
    "TimeBasedStrategy",
    "NextTool",
    "default_strategies",
    "default_workflow_table",
    "merge_predictions",
    "tool_uses",
]
