# chuk_ai_tool_intelligence/orchestrator.py
"""
ToolIntelligenceEngine - the facade a host adapter talks to.

This module wires the components together and offers:
- Ranked tool recommendations with workflow plans and preload hints
- Workflow composition on demand
- Execution reporting (registry metrics, pre-loader usage, episodic memory)
- Feedback submission and adaptation
- Health reporting
- External tool server ingestion

Every public entry point raises RecommendationError (carrying the
operation name) on unexpected failure; component-level storage failures
never reach the caller.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, Field

from chuk_ai_tool_intelligence.composition.planner import CompositionPlanner
from chuk_ai_tool_intelligence.config import EngineConfig
from chuk_ai_tool_intelligence.exceptions import RecommendationError
from chuk_ai_tool_intelligence.learning.feedback import FeedbackLearningLoop
from chuk_ai_tool_intelligence.learning.models import (
    AdaptationConfig,
    AdaptationResult,
    HealthReport,
    UserFeedback,
)
from chuk_ai_tool_intelligence.memory.models import ErrorType, MemoryEntry, MemoryType
from chuk_ai_tool_intelligence.memory.store import MemoryStore
from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.scoring import ToolRecommendation
from chuk_ai_tool_intelligence.models.tool import ExternalToolSpec, ToolMetadata, ToolPerformanceRecord
from chuk_ai_tool_intelligence.models.workflow import CompositionRequest, CompositionResult, WorkflowPlan
from chuk_ai_tool_intelligence.preloading.preloader import PredictivePreloader
from chuk_ai_tool_intelligence.registry.registry import ToolRegistry
from chuk_ai_tool_intelligence.scoring.scorer import ContextualToolScorer
from chuk_ai_tool_intelligence.storage.base import KeyValueStore
from chuk_ai_tool_intelligence.storage.providers.file import FileKeyValueStore
from chuk_ai_tool_intelligence.storage.providers.memory import InMemoryKeyValueStore
from chuk_ai_tool_intelligence.utils import Clock

logger = logging.getLogger(__name__)

RELATED_MEMORY_LIMIT = 3


class RecommendationResult(BaseModel):
    """What `recommend()` hands back to the host."""

    recommendations: list[ToolRecommendation] = Field(default_factory=list)
    workflows: list[WorkflowPlan] = Field(default_factory=list)
    preloaded_tools: list[str] = Field(default_factory=list)
    related_memories: list[MemoryEntry] = Field(default_factory=list)
    confidence: float = 0.0
    reasoning: list[str] = Field(default_factory=list)


@contextlib.contextmanager
def _entry_point(operation: str) -> Iterator[None]:
    try:
        yield
    except RecommendationError:
        raise
    except Exception as e:
        logger.error("Engine operation %s failed", operation, exc_info=True)
        raise RecommendationError(operation, e) from e


class ToolIntelligenceEngine:
    """
    Adaptive tool recommendation engine.

    Usage::

        async with ToolIntelligenceEngine.create(EngineConfig.from_env()) as engine:
            result = await engine.recommend("read the config file and fix the bug", context)
            ...
            await engine.record_execution(record)
            await engine.submit_feedback("read_file", "task-1", rating=5)
    """

    def __init__(
        self,
        registry: ToolRegistry,
        memory: MemoryStore,
        scorer: ContextualToolScorer,
        planner: CompositionPlanner,
        preloader: PredictivePreloader,
        feedback: FeedbackLearningLoop,
    ):
        self.registry = registry
        self.memory = memory
        self.scorer = scorer
        self.planner = planner
        self.preloader = preloader
        self.feedback = feedback
        self._initialized = False

    @classmethod
    def create(
        cls,
        config: EngineConfig | None = None,
        store: KeyValueStore | None = None,
        clock: Clock | None = None,
    ) -> ToolIntelligenceEngine:
        """Build an engine with default components sharing one store."""
        config = config or EngineConfig()
        if store is None:
            store = FileKeyValueStore(config.storage_dir) if config.storage_dir else InMemoryKeyValueStore()

        registry = ToolRegistry(store=store, history_limit=config.performance_history_limit, clock=clock)
        memory = MemoryStore(store=store, clock=clock)
        return cls(
            registry=registry,
            memory=memory,
            scorer=ContextualToolScorer(registry, memory=memory, clock=clock),
            planner=CompositionPlanner(registry),
            preloader=PredictivePreloader(
                registry,
                max_preloads=config.max_preloads,
                ttl_minutes=config.preload_ttl_minutes,
                sweep_interval_seconds=config.sweep_interval_seconds,
                clock=clock,
            ),
            feedback=FeedbackLearningLoop(
                registry,
                store=store,
                config=AdaptationConfig(
                    adaptation_hours=config.adaptation_hours,
                    min_feedback_count=config.min_feedback_count,
                    confidence_threshold=config.insight_confidence_threshold,
                    check_interval_seconds=config.adaptation_check_seconds,
                ),
                clock=clock,
            ),
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        if self._initialized:
            return
        with _entry_point("initialize"):
            await self.registry.initialize()
            await self.memory.initialize()
            await self.feedback.initialize()
        self._initialized = True

    async def start(self) -> None:
        """Initialize, then launch the preload sweep and adaptation check tasks."""
        await self.initialize()
        await self.preloader.start()
        await self.feedback.start()

    async def stop(self) -> None:
        await self.preloader.stop()
        await self.feedback.stop()

    async def __aenter__(self) -> ToolIntelligenceEngine:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # =========================================================================
    # Recommendation
    # =========================================================================

    async def recommend(
        self,
        task_description: str,
        context: TaskContext | None = None,
        available_tools: list[str] | None = None,
        limit: int = 5,
        session_history: list[TaskContext] | None = None,
    ) -> RecommendationResult:
        """Rank tools, compose plans and refresh the preload cache for one request."""
        with _entry_point("recommend"):
            await self.initialize()
            context = context or TaskContext(user_request=task_description)
            if available_tools is None:
                candidates = [t.name for t in self.registry.relevant_tools(context)]
            else:
                candidates = available_tools

            scores = self.scorer.score(context, candidates)
            recommendations = self.scorer.build_recommendations(scores, limit=limit)

            composition = self.planner.compose(
                CompositionRequest(
                    task_description=task_description,
                    context=context,
                    available_tools=available_tools or [],
                )
            )
            preload = await self.preloader.predict_and_preload(context, session_history)
            memories = await self.memory.get_relevant_memories(task_description, limit=RELATED_MEMORY_LIMIT)

            confidence = (
                sum(r.confidence for r in recommendations) / len(recommendations) if recommendations else 0.0
            )
            reasoning = []
            if recommendations:
                top = recommendations[0]
                reasoning.append(f"Found {len(recommendations)} relevant tools")
                reasoning.append(f"Top recommendation: {top.tool.name} (confidence: {top.confidence:.1%})")
            else:
                reasoning.append("No registered tool matched the request")
            reasoning.extend(composition.reasoning)
            if preload.preloaded:
                reasoning.append(f"Preloaded {', '.join(preload.preloaded)}")

            logger.debug("Recommended %d tools for: %s", len(recommendations), task_description[:60])
            return RecommendationResult(
                recommendations=recommendations,
                workflows=composition.workflows,
                preloaded_tools=preload.preloaded,
                related_memories=memories,
                confidence=confidence,
                reasoning=reasoning,
            )

    async def compose_workflow(self, request: CompositionRequest) -> CompositionResult:
        with _entry_point("compose_workflow"):
            await self.initialize()
            return self.planner.compose(request)

    # =========================================================================
    # Outcomes
    # =========================================================================

    async def record_execution(self, record: ToolPerformanceRecord) -> None:
        """Feed an executed tool call back into registry, pre-loader and memory."""
        with _entry_point("record_execution"):
            await self.initialize()
            await self.registry.record_performance(record.tool_name, record)
            self.preloader.record_tool_use(record.tool_name, record.success)

            outcome = "succeeded" if record.success else "failed"
            await self.memory.add_memory_entry(
                MemoryEntry(
                    type=MemoryType.EPISODIC,
                    title=f"Tool {record.tool_name} {outcome}",
                    content=record.user_input or record.error or "",
                    context=record.context.user_request if record.context else "tool_execution",
                    confidence=0.9,
                    importance=4 if record.success else 7,
                    tags=["tool-execution", record.tool_name, "success" if record.success else "failure"],
                    metadata={"execution_time": record.execution_time},
                )
            )
            if not record.success and record.error:
                await self.memory.record_error(
                    ErrorType.RUNTIME,
                    record.error,
                    tool_used=record.tool_name,
                    tags=["tool-execution"],
                )

    async def submit_feedback(
        self,
        tool_name: str,
        task_id: str,
        rating: int,
        comment: str | None = None,
        context: TaskContext | None = None,
    ) -> UserFeedback:
        with _entry_point("submit_feedback"):
            await self.initialize()
            return await self.feedback.collect_feedback(tool_name, task_id, rating, comment, context)

    async def adapt(self) -> AdaptationResult:
        with _entry_point("adapt"):
            await self.initialize()
            return await self.feedback.adapt_tool_selection()

    async def get_health_report(self) -> HealthReport:
        with _entry_point("get_health_report"):
            await self.initialize()
            return await self.feedback.get_health_report()

    async def register_external_tools(
        self,
        server_name: str,
        specs: list[ExternalToolSpec],
        description: str = "",
    ) -> list[ToolMetadata]:
        """Ingest a tool server's tool list and start tracking the server."""
        with _entry_point("register_external_tools"):
            await self.initialize()
            tools = await self.registry.register_external_tools(server_name, specs)
            await self.registry.register_server(server_name, description=description, tools=specs)
            return tools

    def get_stats(self) -> dict[str, Any]:
        return {
            "registry": self.registry.get_stats().model_dump(mode="json"),
            "memory": self.memory.get_memory_stats().model_dump(mode="json"),
            "preload_cache": self.preloader.get_cache_stats().model_dump(mode="json"),
            "feedback": self.feedback.stats(),
        }
