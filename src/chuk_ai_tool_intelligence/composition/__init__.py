# chuk_ai_tool_intelligence/composition/__init__.py
"""Composition Planner: multi-tool workflow plans with risk, time and alternatives."""

from chuk_ai_tool_intelligence.composition.patterns import (
    CAPABILITY_KEYWORDS,
    TOOL_DEPENDENCIES,
    default_patterns,
)
from chuk_ai_tool_intelligence.composition.planner import (
    CompositionPlanner,
    TaskAnalysis,
    critical_path_time,
    plan_confidence,
    plan_risk,
)

__all__ = [
    "CompositionPlanner",
    "TaskAnalysis",
    "CAPABILITY_KEYWORDS",
    "TOOL_DEPENDENCIES",
    "critical_path_time",
    "default_patterns",
    "plan_confidence",
    "plan_risk",
]
