# chuk_ai_tool_intelligence/learning/models.py
"""Feedback, insight, health and A/B test models for the learning loop."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from chuk_ai_tool_intelligence.models.enums import HealthStatus, Impact, InsightType, Trend
from chuk_ai_tool_intelligence.utils import UtcDatetime, utc_now


class UserFeedback(BaseModel):
    """A 1-5 rating of one tool execution."""

    tool_name: str
    task_id: str
    rating: int
    comment: str | None = None
    timestamp: UtcDatetime = Field(default_factory=utc_now)

    @field_validator("rating")
    @classmethod
    def _check_rating(cls, value: int) -> int:
        if not 1 <= value <= 5:
            raise ValueError(f"rating must be between 1 and 5, got {value}")
        return value


class LearningInsight(BaseModel):
    type: InsightType
    confidence: float = Field(ge=0, le=1)
    description: str
    impact: Impact = Impact.LOW
    actionable_recommendations: list[str] = Field(default_factory=list)
    supporting_data: dict[str, Any] = Field(default_factory=dict)

    @property
    def rank_score(self) -> float:
        return self.impact.rank * self.confidence


class TrendAnalysis(BaseModel):
    improving: list[str] = Field(default_factory=list)
    declining: list[str] = Field(default_factory=list)
    stable: list[str] = Field(default_factory=list)

    def trend_for(self, tool_name: str) -> Trend | None:
        if tool_name in self.improving:
            return Trend.IMPROVING
        if tool_name in self.declining:
            return Trend.DECLINING
        if tool_name in self.stable:
            return Trend.STABLE
        return None


class FeedbackAnalysis(BaseModel):
    overall_satisfaction: float = 0.0
    tool_scores: dict[str, float] = Field(default_factory=dict)
    common_issues: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)
    trends: TrendAnalysis = Field(default_factory=TrendAnalysis)


class HealthReport(BaseModel):
    overall_status: HealthStatus
    recommendation_quality: float = 0.0
    system_performance: float = 0.0
    learning_effectiveness: float = 0.0
    user_satisfaction: float = 0.0
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    last_updated: UtcDatetime = Field(default_factory=utc_now)


class AdaptationConfig(BaseModel):
    """Cadence and thresholds for automatic adaptation."""

    adaptation_hours: float = Field(default=24.0, ge=0)
    min_feedback_count: int = Field(default=5, ge=0)
    confidence_threshold: float = Field(default=0.8, ge=0, le=1)
    check_interval_seconds: float = Field(default=3600.0, gt=0)
    analysis_window_days: int = Field(default=30, ge=1)
    history_limit: int = Field(default=5000, ge=1)


class AdaptationResult(BaseModel):
    adapted_tools: list[str] = Field(default_factory=list)
    adaptations: list[str] = Field(default_factory=list)
    confidence: float = 0.0


class FeedbackStatistics(BaseModel):
    total_feedback: int = 0
    average_rating: float = 0.0
    rating_distribution: dict[int, int] = Field(default_factory=lambda: {r: 0 for r in range(1, 6)})
    most_rated_tools: list[str] = Field(default_factory=list)
    recent_trend: Trend = Trend.STABLE


class ABTestConfig(BaseModel):
    test_name: str
    control_group: str
    variant_group: str
    traffic_split: float = Field(default=0.5, ge=0, le=1)  # share routed to control
    metrics: list[str] = Field(default_factory=list)
    duration_days: int = Field(default=7, ge=1)
    min_samples: int = Field(default=10, ge=1)


class ABTestMetric(BaseModel):
    control: float = 0.0
    variant: float = 0.0
    improvement: float = 0.0  # relative, variant over control


class ABTestResult(BaseModel):
    test_name: str
    winner: str = "inconclusive"  # control | variant | inconclusive
    confidence: float = 0.0
    metrics: dict[str, ABTestMetric] = Field(default_factory=dict)
    recommendations: list[str] = Field(default_factory=list)
