# chuk_ai_tool_intelligence/models/tool.py
"""
Tool metadata and performance models.

These models represent:
- Static plus learned metadata per tool (the registry entry)
- Individual execution records (the performance history)
- Intelligence about external tool servers
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.enums import Complexity, ServerStatus
from chuk_ai_tool_intelligence.utils import UtcDatetime, utc_now


class PerformanceMetrics(BaseModel):
    """
    Derived execution statistics.

    Not independently authoritative: recomputed from the retained
    performance history window whenever a record is added.
    """

    avg_execution_time: float = Field(default=0.0, ge=0)  # ms
    success_rate: float = Field(default=0.0, ge=0, le=1)
    error_patterns: list[str] = Field(default_factory=list)
    last_used: UtcDatetime | None = None
    usage_count: int = Field(default=0, ge=0)


class ContextualRelevance(BaseModel):
    """Rules describing where a tool tends to be useful."""

    project_types: list[str] = Field(default_factory=list)
    file_patterns: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)

    def matches_project_type(self, project_type: str) -> bool:
        return "all" in self.project_types or project_type in self.project_types


class ToolMetadata(BaseModel):
    """Registry entry for one tool, keyed by name."""

    name: str
    description: str = ""
    capabilities: list[str] = Field(default_factory=list)
    domains: list[str] = Field(default_factory=list)
    complexity: Complexity = Complexity.LOW
    reliability: float = Field(default=0.8, ge=0, le=1)
    typical_use_cases: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    alternatives: list[str] = Field(default_factory=list)
    performance_metrics: PerformanceMetrics = Field(default_factory=PerformanceMetrics)
    contextual_relevance: ContextualRelevance = Field(default_factory=ContextualRelevance)

    # External tools only
    server: str | None = None
    input_schema: dict[str, Any] | None = None

    model_config = {"frozen": False}

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities

    def shares_capability(self, other: ToolMetadata) -> bool:
        return bool(set(self.capabilities) & set(other.capabilities))


class ToolPerformanceRecord(BaseModel):
    """Single tool execution outcome."""

    tool_name: str
    timestamp: UtcDatetime = Field(default_factory=utc_now)
    execution_time: float = Field(default=0.0, ge=0)  # ms
    success: bool
    error: str | None = None
    context: TaskContext | None = None
    user_input: str = ""
    output_quality: float = Field(default=0.0, ge=0, le=1)


class ExternalToolSpec(BaseModel):
    """A tool advertised by an external tool server."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] | None = None


class ServerPerformanceMetrics(BaseModel):
    avg_response_time: float = 2000.0
    success_rate: float = 1.0
    error_rate: float = 0.0
    timeout_rate: float = 0.0
    total_requests: int = 0
    failed_requests: int = 0
    last_success_time: UtcDatetime | None = None
    last_failure_time: UtcDatetime | None = None
    consecutive_failures: int = 0


class ServerIntelligence(BaseModel):
    """Capabilities and health of an external tool server."""

    server_name: str
    description: str = ""
    capabilities: list[str] = Field(default_factory=list)
    domains: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0, le=1)
    tool_count: int = 0
    resource_count: int = 0
    keywords: list[str] = Field(default_factory=list)
    status: ServerStatus = ServerStatus.CONNECTED
    last_used: UtcDatetime | None = None
    performance_metrics: ServerPerformanceMetrics = Field(default_factory=ServerPerformanceMetrics)


class RegistryStats(BaseModel):
    total_tools: int = 0
    tools_with_performance_data: int = 0
    average_reliability: float = 0.0
    most_used_tools: list[str] = Field(default_factory=list)
    deprioritized_tools: list[str] = Field(default_factory=list)
