# chuk_ai_tool_intelligence/models/scoring.py
"""Per-request scoring output. Created fresh per request; never persisted."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chuk_ai_tool_intelligence.models.enums import RiskLevel
from chuk_ai_tool_intelligence.models.tool import ToolMetadata


class ScoreFactors(BaseModel):
    """The five independent scoring signals, each in [0, 1]."""

    relevance_match: float = Field(default=0.0, ge=0, le=1)
    performance_score: float = Field(default=0.0, ge=0, le=1)
    context_fit: float = Field(default=0.0, ge=0, le=1)
    reliability_score: float = Field(default=0.0, ge=0, le=1)
    user_preference_score: float = Field(default=0.0, ge=0, le=1)

    def values(self) -> list[float]:
        return [
            self.relevance_match,
            self.performance_score,
            self.context_fit,
            self.reliability_score,
            self.user_preference_score,
        ]


class ScoringWeights(BaseModel):
    """Weights combining the five factors (sum to 1.0)."""

    relevance: float = 0.35
    performance: float = 0.25
    context: float = 0.20
    reliability: float = 0.15
    user_preference: float = 0.05


class ToolScore(BaseModel):
    tool_name: str
    score: float = Field(ge=0, le=1)
    confidence: float = Field(ge=0, le=1)
    reasoning: list[str] = Field(default_factory=list)
    factors: ScoreFactors = Field(default_factory=ScoreFactors)


class ToolRecommendation(BaseModel):
    """A scored tool enriched for presentation."""

    tool: ToolMetadata
    score: float = Field(ge=0, le=1)
    confidence: float = Field(ge=0, le=1)
    reasoning: str = ""
    alternative_options: list[ToolRecommendation] = Field(default_factory=list, max_length=3)
    prerequisites: list[str] = Field(default_factory=list)
    estimated_execution_time: float = 0.0
    risk_assessment: RiskLevel = RiskLevel.MEDIUM
