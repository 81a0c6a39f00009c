# chuk_ai_tool_intelligence/memory/models.py
"""
Memory store data models.

- MemoryEntry: a typed, retention-governed unit of knowledge
- MemoryTypeConfig: per-type cap, retention window and priority
- LearnedPattern: deduplicated observation attached to a project
- ProjectMemory: the single canonical per-project snapshot
- ErrorRecord: deduplicated error occurrences
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from chuk_ai_tool_intelligence.models.context import FileStructure, ProjectContext, UserPreferences
from chuk_ai_tool_intelligence.utils import UtcDatetime, utc_now


def _new_id() -> str:
    return uuid.uuid4().hex[:16]


class MemoryType(str, Enum):
    EPISODIC = "episodic"
    PROCEDURAL = "procedural"
    SEMANTIC = "semantic"
    WORKING = "working"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"
    LIMITED_MEMORY_AI = "limited_memory_ai"


class PatternType(str, Enum):
    CODE_PATTERN = "code_pattern"
    USER_PREFERENCE = "user_preference"
    PROJECT_CONVENTION = "project_convention"
    ERROR_SOLUTION = "error_solution"


class ErrorType(str, Enum):
    SYNTAX = "syntax"
    RUNTIME = "runtime"
    LOGICAL = "logical"
    DEPENDENCY = "dependency"
    CONFIGURATION = "configuration"
    OTHER = "other"


# =============================================================================
# Typed entries
# =============================================================================


class MemoryTypeConfig(BaseModel):
    enabled: bool = True
    max_entries: int = Field(default=100, ge=0)
    retention_days: float = Field(default=30, gt=0)
    priority: int = Field(default=5, ge=0)  # higher = more weight at retrieval


def default_type_configs() -> dict[MemoryType, MemoryTypeConfig]:
    return {
        MemoryType.EPISODIC: MemoryTypeConfig(max_entries=1000, retention_days=365, priority=8),
        MemoryType.PROCEDURAL: MemoryTypeConfig(max_entries=500, retention_days=180, priority=9),
        MemoryType.SHORT_TERM: MemoryTypeConfig(max_entries=100, retention_days=7, priority=6),
        MemoryType.LONG_TERM: MemoryTypeConfig(max_entries=2000, retention_days=730, priority=10),
        MemoryType.LIMITED_MEMORY_AI: MemoryTypeConfig(max_entries=200, retention_days=30, priority=5),
        MemoryType.SEMANTIC: MemoryTypeConfig(max_entries=800, retention_days=365, priority=7),
        MemoryType.WORKING: MemoryTypeConfig(max_entries=50, retention_days=1, priority=4),
    }


class MemoryEntry(BaseModel):
    """
    A unit of stored knowledge.

    `access_count` starts at 1 (creation counts as the first access) and is
    bumped on every retrieval hit, together with `last_accessed`.
    """

    id: str = Field(default_factory=_new_id)
    type: MemoryType
    title: str
    content: str = ""
    context: str = ""
    confidence: float = Field(default=0.5, ge=0, le=1)
    importance: int = Field(default=5, ge=1, le=10)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: UtcDatetime = Field(default_factory=utc_now)
    last_accessed: UtcDatetime = Field(default_factory=utc_now)
    access_count: int = Field(default=1, ge=0)
    related_memories: list[str] = Field(default_factory=list)


class MemoryTypeStats(BaseModel):
    count: int = 0
    enabled: bool = True
    total_access: int = 0


# =============================================================================
# Project memory
# =============================================================================


class LearnedPattern(BaseModel):
    id: str = Field(default_factory=_new_id)
    type: PatternType
    description: str
    pattern: str = ""
    context: str = ""
    confidence: float = Field(default=0.5, ge=0, le=1)
    created_at: UtcDatetime = Field(default_factory=utc_now)
    last_used: UtcDatetime = Field(default_factory=utc_now)
    usage_count: int = Field(default=1, ge=0)
    tags: list[str] = Field(default_factory=list)

    @property
    def dedup_key(self) -> tuple[str, PatternType]:
        return (self.description, self.type)

    @property
    def retention_score(self) -> float:
        return self.confidence * self.usage_count


class ConversationSummary(BaseModel):
    total_conversations: int = 0
    topics: list[str] = Field(default_factory=list)
    frequent_questions: list[str] = Field(default_factory=list)
    common_issues: list[str] = Field(default_factory=list)
    successful_solutions: list[str] = Field(default_factory=list)
    last_conversation_topics: list[str] = Field(default_factory=list)


class ProjectMemory(BaseModel):
    """Everything remembered about one project."""

    project_id: str
    project_name: str
    project_path: str = ""
    last_updated: UtcDatetime = Field(default_factory=utc_now)
    context: ProjectContext = Field(default_factory=ProjectContext)
    learned_patterns: list[LearnedPattern] = Field(default_factory=list)
    conversation_summary: ConversationSummary = Field(default_factory=ConversationSummary)
    file_structure: FileStructure = Field(default_factory=FileStructure)
    user_preferences: UserPreferences = Field(default_factory=UserPreferences)


# =============================================================================
# Errors and stats
# =============================================================================


class ErrorRecord(BaseModel):
    id: str = Field(default_factory=_new_id)
    error_type: ErrorType = ErrorType.OTHER
    error_message: str
    file_path: str | None = None
    line_number: int | None = None
    tool_used: str | None = None
    resolution: str | None = None
    resolved_at: UtcDatetime | None = None
    success: bool = False
    created_at: UtcDatetime = Field(default_factory=utc_now)
    occurrence_count: int = 1
    last_occurrence: UtcDatetime = Field(default_factory=utc_now)
    tags: list[str] = Field(default_factory=list)


class MemoryStats(BaseModel):
    total_memories: int = 0
    patterns_by_type: dict[str, int] = Field(default_factory=dict)
    conversation_count: int = 0
    project_count: int = 0
    error_count: int = 0
    resolved_error_count: int = 0
    errors_by_type: dict[str, int] = Field(default_factory=dict)
