# chuk_ai_tool_intelligence/models/__init__.py
"""Data models shared by every engine component."""

from chuk_ai_tool_intelligence.models.context import (
    ActivityRecord,
    FileStructure,
    ProjectContext,
    SessionRecord,
    TaskContext,
    UserPreferences,
)
from chuk_ai_tool_intelligence.models.enums import (
    ActivityType,
    Complexity,
    HealthStatus,
    Impact,
    InsightType,
    PreloadPriority,
    RiskLevel,
    ServerStatus,
    Trend,
)
from chuk_ai_tool_intelligence.models.scoring import (
    ScoreFactors,
    ScoringWeights,
    ToolRecommendation,
    ToolScore,
)
from chuk_ai_tool_intelligence.models.tool import (
    ContextualRelevance,
    ExternalToolSpec,
    PerformanceMetrics,
    RegistryStats,
    ServerIntelligence,
    ServerPerformanceMetrics,
    ToolMetadata,
    ToolPerformanceRecord,
)
from chuk_ai_tool_intelligence.models.workflow import (
    CompositionConstraints,
    CompositionPattern,
    CompositionRequest,
    CompositionResult,
    WorkflowPlan,
    WorkflowStep,
)

__all__ = [
    # Enums
    "ActivityType",
    "Complexity",
    "HealthStatus",
    "Impact",
    "InsightType",
    "PreloadPriority",
    "RiskLevel",
    "ServerStatus",
    "Trend",
    # Context
    "ActivityRecord",
    "FileStructure",
    "ProjectContext",
    "SessionRecord",
    "TaskContext",
    "UserPreferences",
    # Tools
    "ContextualRelevance",
    "ExternalToolSpec",
    "PerformanceMetrics",
    "RegistryStats",
    "ServerIntelligence",
    "ServerPerformanceMetrics",
    "ToolMetadata",
    "ToolPerformanceRecord",
    # Scoring
    "ScoreFactors",
    "ScoringWeights",
    "ToolRecommendation",
    "ToolScore",
    # Workflow
    "CompositionConstraints",
    "CompositionPattern",
    "CompositionRequest",
    "CompositionResult",
    "WorkflowPlan",
    "WorkflowStep",
]
