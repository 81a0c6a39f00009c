# chuk_ai_tool_intelligence/registry/__init__.py
"""Tool Registry: metadata, performance history and external tool ingestion."""

from chuk_ai_tool_intelligence.registry.builtins import builtin_tools
from chuk_ai_tool_intelligence.registry.inference import (
    InferenceRules,
    build_external_metadata,
    infer_capabilities,
    infer_complexity,
    infer_domains,
)
from chuk_ai_tool_intelligence.registry.registry import (
    ToolRegistry,
    categorize_error,
    compute_metrics,
)

__all__ = [
    "ToolRegistry",
    "InferenceRules",
    "builtin_tools",
    "build_external_metadata",
    "categorize_error",
    "compute_metrics",
    "infer_capabilities",
    "infer_complexity",
    "infer_domains",
]
