# chuk_ai_tool_intelligence/scoring/__init__.py
"""Contextual Scorer: five-factor, confidence-weighted tool ranking."""

from chuk_ai_tool_intelligence.scoring.scorer import (
    COMPLEXITY_PENALTY,
    OPTIMAL_EXECUTION_TIME,
    ContextualToolScorer,
    assess_risk,
)

__all__ = [
    "ContextualToolScorer",
    "assess_risk",
    "COMPLEXITY_PENALTY",
    "OPTIMAL_EXECUTION_TIME",
]
