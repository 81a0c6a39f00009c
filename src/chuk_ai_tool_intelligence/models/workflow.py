# chuk_ai_tool_intelligence/models/workflow.py
"""Workflow composition models: plans, steps, requests and patterns."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.enums import Complexity, RiskLevel


class WorkflowStep(BaseModel):
    id: str
    tool_name: str
    description: str = ""
    input_requirements: list[str] = Field(default_factory=list)
    output_expectations: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)  # ids of earlier steps
    estimated_time: float = 0.0  # ms
    confidence: float = Field(default=0.8, ge=0, le=1)
    risk_level: RiskLevel = RiskLevel.MEDIUM
    rollback_strategy: str | None = None


class WorkflowPlan(BaseModel):
    """
    An ordered or partially ordered set of tool steps.

    Dependencies form a DAG: every dependency id refers to a step that
    appears earlier in `steps`.
    """

    id: str
    description: str = ""
    steps: list[WorkflowStep] = Field(default_factory=list)
    estimated_total_time: float = 0.0
    confidence: float = Field(default=0.0, ge=0, le=1)
    risk_assessment: RiskLevel = RiskLevel.MEDIUM
    alternative_plans: list[WorkflowPlan] = Field(default_factory=list)

    @property
    def tool_sequence(self) -> list[str]:
        return [step.tool_name for step in self.steps]

    @property
    def signature(self) -> str:
        """Deduplication key: tool sequence plus step count."""
        return f"{'->'.join(self.tool_sequence)}|{len(self.steps)}"

    def dependencies_are_ordered(self) -> bool:
        """True if every dependency points at an earlier step (implies acyclic)."""
        seen: set[str] = set()
        for step in self.steps:
            if any(dep not in seen for dep in step.dependencies):
                return False
            seen.add(step.id)
        return True


class CompositionConstraints(BaseModel):
    max_steps: int | None = None
    time_limit: float | None = None  # ms
    exclude_tools: list[str] = Field(default_factory=list)
    max_complexity: Complexity | None = None


class CompositionRequest(BaseModel):
    task_description: str
    context: TaskContext | None = None
    available_tools: list[str] = Field(default_factory=list)
    required_capabilities: list[str] | None = None
    constraints: CompositionConstraints = Field(default_factory=CompositionConstraints)


class CompositionResult(BaseModel):
    workflows: list[WorkflowPlan] = Field(default_factory=list)
    confidence: float = 0.0
    reasoning: list[str] = Field(default_factory=list)
    alternatives: list[WorkflowPlan] = Field(default_factory=list)


class CompositionPattern(BaseModel):
    """A pre-seeded or learned multi-tool recipe."""

    id: str
    name: str
    description: str = ""
    required_capabilities: list[str] = Field(default_factory=list)
    tool_sequence: list[str] = Field(default_factory=list)
    success_rate: float = Field(default=0.8, ge=0, le=1)
    avg_execution_time: float = 0.0
    usage_count: int = 0
