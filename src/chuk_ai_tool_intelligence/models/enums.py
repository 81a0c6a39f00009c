# chuk_ai_tool_intelligence/models/enums.py
"""Enumeration types shared across the engine."""

from __future__ import annotations

from enum import Enum


class Complexity(str, Enum):
    """Declared complexity of a tool or a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VARIABLE = "variable"


class RiskLevel(str, Enum):
    """Risk classification for steps, plans and recommendations."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActivityType(str, Enum):
    """Kind of a recent activity record."""

    TOOL_USE = "tool_use"
    FILE_EDIT = "file_edit"
    COMMAND_EXECUTION = "command_execution"
    CONVERSATION = "conversation"


class PreloadPriority(str, Enum):
    """Priority of a preload prediction."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def from_score(cls, probability: float, confidence: float) -> PreloadPriority:
        """Derive a priority from probability x confidence."""
        score = probability * confidence
        if score > 0.8:
            return cls.CRITICAL
        if score > 0.6:
            return cls.HIGH
        if score > 0.4:
            return cls.MEDIUM
        return cls.LOW


_PRIORITY_RANK = {
    PreloadPriority.CRITICAL: 4,
    PreloadPriority.HIGH: 3,
    PreloadPriority.MEDIUM: 2,
    PreloadPriority.LOW: 1,
}


class InsightType(str, Enum):
    """Analyzer that produced a learning insight."""

    PATTERN_DISCOVERY = "pattern_discovery"
    PERFORMANCE_OPTIMIZATION = "performance_optimization"
    USER_PREFERENCE = "user_preference"
    ERROR_PREVENTION = "error_prevention"


class Impact(str, Enum):
    """Impact tier of an insight."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class ServerStatus(str, Enum):
    """Connection status of an external tool server."""

    CONNECTED = "connected"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"
