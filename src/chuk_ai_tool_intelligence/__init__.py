# chuk_ai_tool_intelligence/__init__.py
"""
chuk-ai-tool-intelligence - adaptive tool recommendation and memory engine.

Ranks tools for a task, composes multi-tool workflow plans, preloads tools
it expects to be needed, learns from feedback, and keeps a typed,
retention-governed memory backing all of it.

Quick start::

    from chuk_ai_tool_intelligence import ToolIntelligenceEngine, TaskContext

    async with ToolIntelligenceEngine.create() as engine:
        result = await engine.recommend("read main.py and analyze it", TaskContext(user_request="read main.py"))
"""

from chuk_ai_tool_intelligence.composition import CompositionPlanner
from chuk_ai_tool_intelligence.config import EngineConfig, setup_logging
from chuk_ai_tool_intelligence.exceptions import (
    InvalidFeedbackError,
    MemoryImportError,
    RecommendationError,
    StorageError,
    ToolIntelligenceError,
)
from chuk_ai_tool_intelligence.learning import FeedbackLearningLoop, UserFeedback
from chuk_ai_tool_intelligence.memory import MemoryEntry, MemoryStore, MemoryType
from chuk_ai_tool_intelligence.models import (
    ActivityRecord,
    CompositionRequest,
    CompositionResult,
    TaskContext,
    ToolMetadata,
    ToolPerformanceRecord,
    ToolRecommendation,
    WorkflowPlan,
)
from chuk_ai_tool_intelligence.orchestrator import RecommendationResult, ToolIntelligenceEngine
from chuk_ai_tool_intelligence.preloading import PredictivePreloader
from chuk_ai_tool_intelligence.registry import ToolRegistry
from chuk_ai_tool_intelligence.scoring import ContextualToolScorer
from chuk_ai_tool_intelligence.storage import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore

__version__ = "0.1.0"

__all__ = [
    # Facade
    "ToolIntelligenceEngine",
    "RecommendationResult",
    "EngineConfig",
    "setup_logging",
    # Components
    "ToolRegistry",
    "ContextualToolScorer",
    "CompositionPlanner",
    "PredictivePreloader",
    "FeedbackLearningLoop",
    "MemoryStore",
    # Storage
    "KeyValueStore",
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    # Models
    "ActivityRecord",
    "CompositionRequest",
    "CompositionResult",
    "MemoryEntry",
    "MemoryType",
    "TaskContext",
    "ToolMetadata",
    "ToolPerformanceRecord",
    "ToolRecommendation",
    "UserFeedback",
    "WorkflowPlan",
    # Errors
    "ToolIntelligenceError",
    "StorageError",
    "InvalidFeedbackError",
    "MemoryImportError",
    "RecommendationError",
]
