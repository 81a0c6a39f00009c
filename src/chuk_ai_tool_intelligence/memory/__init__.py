# chuk_ai_tool_intelligence/memory/__init__.py
"""
Memory Store: typed, retention-governed knowledge backing scoring and composition.

Usage::

    from chuk_ai_tool_intelligence.memory import MemoryEntry, MemoryStore, MemoryType

    memory = MemoryStore()
    await memory.initialize()
    await memory.add_memory_entry(MemoryEntry(type=MemoryType.EPISODIC, title="Build fixed"))
"""

from chuk_ai_tool_intelligence.memory.eviction_policy import (
    EvictionCandidate,
    EvictionPolicy,
    ImportanceRecencyPolicy,
    OldestFirstPolicy,
)
from chuk_ai_tool_intelligence.memory.models import (
    ConversationSummary,
    ErrorRecord,
    ErrorType,
    LearnedPattern,
    MemoryEntry,
    MemoryStats,
    MemoryType,
    MemoryTypeConfig,
    MemoryTypeStats,
    PatternType,
    ProjectMemory,
    default_type_configs,
)
from chuk_ai_tool_intelligence.memory.store import MemoryStore, project_id_for

__all__ = [
    # Store
    "MemoryStore",
    "project_id_for",
    # Models
    "ConversationSummary",
    "ErrorRecord",
    "ErrorType",
    "LearnedPattern",
    "MemoryEntry",
    "MemoryStats",
    "MemoryType",
    "MemoryTypeConfig",
    "MemoryTypeStats",
    "PatternType",
    "ProjectMemory",
    "default_type_configs",
    # Eviction
    "EvictionCandidate",
    "EvictionPolicy",
    "ImportanceRecencyPolicy",
    "OldestFirstPolicy",
]
