# chuk_ai_tool_intelligence/learning/__init__.py
"""Feedback Learning Loop: ratings in, insights and scoring adjustments out."""

from chuk_ai_tool_intelligence.learning.feedback import FeedbackLearningLoop
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

__all__ = [
    "FeedbackLearningLoop",
    "ABTestConfig",
    "ABTestMetric",
    "ABTestResult",
    "AdaptationConfig",
    "AdaptationResult",
    "FeedbackAnalysis",
    "FeedbackStatistics",
    "HealthReport",
    "LearningInsight",
    "TrendAnalysis",
    "UserFeedback",
]
