# chuk_ai_tool_intelligence/models/context.py
"""
Request-scoped context models.

A TaskContext is built per request by the host adapter from plain data
(workspace facts, user preferences, recent activity) and is never persisted
as-is; the memory store keeps summaries instead.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from chuk_ai_tool_intelligence.models.enums import ActivityType
from chuk_ai_tool_intelligence.utils import UtcDatetime, utc_now

MAX_RECENT_ACTIVITY = 100


class FileStructure(BaseModel):
    """Snapshot of the workspace layout."""

    important_files: list[str] = Field(default_factory=list)
    frequently_modified: list[str] = Field(default_factory=list)
    file_purposes: dict[str, str] = Field(default_factory=dict)
    directories: list[str] = Field(default_factory=list)
    entry_points: list[str] = Field(default_factory=list)


class ActivityRecord(BaseModel):
    """Something the agent recently did."""

    type: ActivityType
    timestamp: UtcDatetime = Field(default_factory=utc_now)
    description: str = ""
    success: bool = True
    duration: float | None = None  # ms
    tool_name: str | None = None

    def mentions_tool(self, tool_name: str) -> bool:
        return self.tool_name == tool_name or tool_name in self.description


class UserPreferences(BaseModel):
    coding_style: str = "unknown"
    commenting_style: str = "unknown"
    naming_conventions: list[str] = Field(default_factory=list)
    preferred_libraries: list[str] = Field(default_factory=list)
    avoidance_patterns: list[str] = Field(default_factory=list)
    communication_style: str = "professional"


class SessionRecord(BaseModel):
    """Summary of a past working session."""

    id: str
    start_time: UtcDatetime = Field(default_factory=utc_now)
    end_time: UtcDatetime | None = None
    tasks: list[str] = Field(default_factory=list)
    tools_used: list[str] = Field(default_factory=list)
    success: bool = False


class ProjectContext(BaseModel):
    """Durable facts about a project (technologies, tooling, conventions)."""

    project_path: str = ""
    project_type: str = "unknown"
    technologies: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    dependencies: dict[str, str] = Field(default_factory=dict)
    build_tools: list[str] = Field(default_factory=list)
    testing_frameworks: list[str] = Field(default_factory=list)
    coding_standards: list[str] = Field(default_factory=list)
    architecture: list[str] = Field(default_factory=list)


class TaskContext(BaseModel):
    """Everything the scorer and planner know about the current request."""

    user_request: str
    project_type: str = "unknown"
    technologies: list[str] = Field(default_factory=list)
    file_structure: FileStructure = Field(default_factory=FileStructure)
    recent_activity: list[ActivityRecord] = Field(default_factory=list)
    user_preferences: UserPreferences = Field(default_factory=UserPreferences)
    session_history: list[SessionRecord] = Field(default_factory=list)

    @field_validator("recent_activity")
    @classmethod
    def _cap_activity(cls, value: list[ActivityRecord]) -> list[ActivityRecord]:
        return value[-MAX_RECENT_ACTIVITY:]

    def add_activity(self, record: ActivityRecord) -> None:
        """Append to the activity ring buffer."""
        self.recent_activity.append(record)
        if len(self.recent_activity) > MAX_RECENT_ACTIVITY:
            self.recent_activity.pop(0)

    @classmethod
    def from_project(cls, user_request: str, project: ProjectContext, **kwargs) -> TaskContext:
        """Build a task context seeded from project facts."""
        technologies = list(dict.fromkeys(project.technologies + project.frameworks + project.languages))
        return cls(
            user_request=user_request,
            project_type=project.project_type,
            technologies=technologies,
            **kwargs,
        )
