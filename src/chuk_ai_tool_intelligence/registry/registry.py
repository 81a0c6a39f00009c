# chuk_ai_tool_intelligence/registry/registry.py
"""
Tool Registry - static plus learned metadata for every known tool.

Handles:
- Built-in tool bootstrap and external tool ingestion
- Lookup by name, domain and capability
- Context relevance ranking (top 10)
- Bounded performance history and derived metrics
- Tool-server health tracking
- De-prioritization flags set by the learning loop
- Write-through persistence (failures logged, never raised)
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from pydantic import ValidationError

from chuk_ai_tool_intelligence.exceptions import StorageError
from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.enums import ServerStatus
from chuk_ai_tool_intelligence.models.tool import (
    ExternalToolSpec,
    PerformanceMetrics,
    RegistryStats,
    ServerIntelligence,
    ToolMetadata,
    ToolPerformanceRecord,
)
from chuk_ai_tool_intelligence.registry.builtins import builtin_tools
from chuk_ai_tool_intelligence.registry.inference import (
    InferenceRules,
    build_external_metadata,
    infer_capabilities,
    infer_domains,
)
from chuk_ai_tool_intelligence.storage.base import KeyValueStore
from chuk_ai_tool_intelligence.storage.providers.memory import InMemoryKeyValueStore
from chuk_ai_tool_intelligence.utils import Clock, days_since, mentions, utc_now

logger = logging.getLogger(__name__)

TOOL_PREFIX = "tools/"
HISTORY_PREFIX = "performance/"
SERVER_PREFIX = "servers/"
DEPRIORITIZED_KEY = "registry/deprioritized"

RELEVANCE_THRESHOLD = 0.3
MAX_RELEVANT_TOOLS = 10
MAX_ERROR_PATTERNS = 5

# (category, keywords) checked in order; first hit wins
ERROR_CATEGORIES: list[tuple[str, tuple[str, ...]]] = [
    ("permission-denied", ("permission", "access denied")),
    ("not-found", ("not found", "doesn't exist", "does not exist")),
    ("timeout", ("timeout", "timed out")),
    ("network-error", ("network", "connection")),
    ("syntax-error", ("syntax", "parse")),
]
DEFAULT_ERROR_CATEGORY = "other-error"


def categorize_error(error: str) -> str:
    """Map a raw error message to a coarse category tag."""
    lowered = error.lower()
    for category, keywords in ERROR_CATEGORIES:
        if any(k in lowered for k in keywords):
            return category
    return DEFAULT_ERROR_CATEGORY


def compute_metrics(history: list[ToolPerformanceRecord]) -> PerformanceMetrics:
    """Pure function of the retained window."""
    if not history:
        return PerformanceMetrics()

    successes = sum(1 for r in history if r.success)
    errors = Counter(categorize_error(r.error) for r in history if not r.success and r.error)
    return PerformanceMetrics(
        avg_execution_time=sum(r.execution_time for r in history) / len(history),
        success_rate=successes / len(history),
        error_patterns=[category for category, _ in errors.most_common(MAX_ERROR_PATTERNS)],
        last_used=max(r.timestamp for r in history),
        usage_count=len(history),
    )


class ToolRegistry:
    """
    Holds metadata per tool, keyed by unique name.

    The in-memory maps are authoritative for the process lifetime; the
    key-value store is a write-through snapshot so state survives restarts.

    Usage::

        registry = ToolRegistry(store=FileKeyValueStore("~/.tool-intel"))
        await registry.initialize()

        tools = registry.relevant_tools(context)
        await registry.record_performance("read_file", record)
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        rules: InferenceRules | None = None,
        history_limit: int = 100,
        clock: Clock | None = None,
        include_builtins: bool = True,
    ) -> None:
        self._store = store or InMemoryKeyValueStore()
        self.rules = rules or InferenceRules()
        self.history_limit = history_limit
        self._clock = clock or utc_now
        self._include_builtins = include_builtins

        self._tools: dict[str, ToolMetadata] = {}
        self._history: dict[str, list[ToolPerformanceRecord]] = {}
        self._servers: dict[str, ServerIntelligence] = {}
        self._deprioritized: dict[str, str] = {}
        self._initialized = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """Load persisted state, then register any missing built-ins."""
        if self._initialized:
            return

        await self._load_tools()
        await self._load_history()
        await self._load_servers()
        self._deprioritized = await self._read(DEPRIORITIZED_KEY) or {}

        if self._include_builtins:
            for tool in builtin_tools():
                if tool.name not in self._tools:
                    await self.register(tool)

        self._initialized = True
        logger.info("Tool registry ready with %d tools", len(self._tools))

    async def _load_tools(self) -> None:
        for key in await self._list(TOOL_PREFIX):
            data = await self._read(key)
            if data is None:
                continue
            try:
                tool = ToolMetadata.model_validate(data)
            except ValidationError:
                logger.warning("Discarding invalid tool metadata at %s", key, exc_info=True)
                continue
            self._tools[tool.name] = tool

    async def _load_history(self) -> None:
        for key in await self._list(HISTORY_PREFIX):
            data = await self._read(key)
            if not isinstance(data, list):
                continue
            try:
                records = [ToolPerformanceRecord.model_validate(r) for r in data]
            except ValidationError:
                logger.warning("Discarding invalid performance history at %s", key, exc_info=True)
                continue
            self._history[key[len(HISTORY_PREFIX) :]] = records[-self.history_limit :]

    async def _load_servers(self) -> None:
        for key in await self._list(SERVER_PREFIX):
            data = await self._read(key)
            if data is None:
                continue
            try:
                server = ServerIntelligence.model_validate(data)
            except ValidationError:
                logger.warning("Discarding invalid server metadata at %s", key, exc_info=True)
                continue
            self._servers[server.server_name] = server

    # =========================================================================
    # Storage helpers (failures are logged and treated as absence)
    # =========================================================================

    async def _read(self, key: str) -> Any | None:
        try:
            return await self._store.read(key)
        except StorageError:
            logger.warning("Registry read failed for %s", key, exc_info=True)
            return None

    async def _list(self, prefix: str) -> list[str]:
        try:
            return await self._store.list(prefix)
        except StorageError:
            logger.warning("Registry list failed for %s", prefix, exc_info=True)
            return []

    async def _write(self, key: str, value: Any) -> None:
        try:
            await self._store.write(key, value)
        except StorageError:
            logger.warning("Registry write failed for %s", key, exc_info=True)

    # =========================================================================
    # Registration and lookup
    # =========================================================================

    async def register(self, metadata: ToolMetadata) -> None:
        """Register or replace a tool (last write wins)."""
        self._tools[metadata.name] = metadata
        await self._write(TOOL_PREFIX + metadata.name, metadata.model_dump(mode="json"))
        logger.debug("Registered tool %s", metadata.name)

    async def register_external_tool(
        self,
        server: str,
        name: str,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
    ) -> ToolMetadata:
        """Ingest a tool advertised by an external server, inferring its metadata."""
        metadata = build_external_metadata(server, name, description, input_schema, self.rules)
        await self.register(metadata)
        return metadata

    async def register_external_tools(self, server: str, specs: list[ExternalToolSpec]) -> list[ToolMetadata]:
        registered = []
        for spec in specs:
            registered.append(
                await self.register_external_tool(server, spec.name, spec.description, spec.input_schema)
            )
        return registered

    def get(self, name: str) -> ToolMetadata | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def all_tools(self) -> list[ToolMetadata]:
        return list(self._tools.values())

    def tool_names(self) -> list[str]:
        return list(self._tools)

    def by_domain(self, domain: str) -> list[ToolMetadata]:
        return [t for t in self._tools.values() if domain in t.domains]

    def by_capability(self, capability: str) -> list[ToolMetadata]:
        return [t for t in self._tools.values() if capability in t.capabilities]

    def get_alternatives(self, name: str) -> list[ToolMetadata]:
        """Declared alternatives that are actually registered."""
        tool = self._tools.get(name)
        if tool is None:
            return []
        return [self._tools[alt] for alt in tool.alternatives if alt in self._tools]

    # --- Relevance ---

    def relevance_score(self, tool: ToolMetadata, context: TaskContext) -> float:
        score = 0.0
        if tool.contextual_relevance.matches_project_type(context.project_type):
            score += 0.3

        if context.technologies:
            matches = sum(1 for t in context.technologies if t in tool.contextual_relevance.technologies)
            score += 0.2 * (matches / len(context.technologies))

        request = context.user_request
        score += 0.15 * sum(1 for c in tool.capabilities if mentions(request, c))
        score += 0.10 * sum(1 for d in tool.domains if mentions(request, d))
        score += 0.1 * tool.performance_metrics.success_rate

        if days_since(tool.performance_metrics.last_used, self._clock()) < 7:
            score += 0.05

        return min(score, 1.0)

    def relevant_tools(self, context: TaskContext) -> list[ToolMetadata]:
        """Tools scoring above the relevance threshold, best first, at most 10."""
        scored = [(self.relevance_score(t, context), t) for t in self._tools.values()]
        kept = [(s, t) for s, t in scored if s > RELEVANCE_THRESHOLD]
        kept.sort(key=lambda pair: pair[0], reverse=True)
        return [t for _, t in kept[:MAX_RELEVANT_TOOLS]]

    # =========================================================================
    # Performance history
    # =========================================================================

    async def record_performance(self, name: str, record: ToolPerformanceRecord) -> PerformanceMetrics | None:
        """
        Append an execution record and recompute the tool's metrics.

        Returns the new metrics, or None for an unknown tool (the record
        is still retained so it applies if the tool registers later).
        """
        history = self._history.setdefault(name, [])
        history.append(record)
        if len(history) > self.history_limit:
            del history[: len(history) - self.history_limit]

        await self._write(HISTORY_PREFIX + name, [r.model_dump(mode="json") for r in history])

        tool = self._tools.get(name)
        if tool is None:
            logger.debug("Performance recorded for unregistered tool %s", name)
            return None

        tool.performance_metrics = compute_metrics(history)
        await self._write(TOOL_PREFIX + name, tool.model_dump(mode="json"))
        return tool.performance_metrics

    def get_performance_history(self, name: str) -> list[ToolPerformanceRecord]:
        return list(self._history.get(name, []))

    # =========================================================================
    # De-prioritization (set by the learning loop)
    # =========================================================================

    async def flag_for_deprioritization(self, name: str, reason: str) -> bool:
        if name not in self._tools:
            return False
        self._deprioritized[name] = reason
        await self._write(DEPRIORITIZED_KEY, self._deprioritized)
        logger.info("Tool %s flagged for de-prioritization: %s", name, reason)
        return True

    async def clear_deprioritization(self, name: str) -> None:
        if self._deprioritized.pop(name, None) is not None:
            await self._write(DEPRIORITIZED_KEY, self._deprioritized)

    def is_deprioritized(self, name: str) -> bool:
        return name in self._deprioritized

    def deprioritization_reason(self, name: str) -> str | None:
        return self._deprioritized.get(name)

    # =========================================================================
    # Tool servers
    # =========================================================================

    async def register_server(
        self,
        server_name: str,
        description: str = "",
        tools: list[ExternalToolSpec] | None = None,
        resource_count: int = 0,
        status: ServerStatus = ServerStatus.CONNECTED,
    ) -> ServerIntelligence:
        """Register a tool server, inferring capabilities from its tools."""
        tools = tools or []
        capabilities: list[str] = []
        domains: list[str] = []
        keywords: list[str] = [server_name.lower()]

        for spec in tools:
            text = f"{spec.name} {spec.description}".lower()
            for cap in infer_capabilities(text, spec.input_schema, self.rules):
                if cap not in capabilities and cap != self.rules.default_capability:
                    capabilities.append(cap)
            for dom in infer_domains(text, self.rules):
                if dom not in domains and dom != self.rules.default_domain:
                    domains.append(dom)
            for word in spec.name.lower().replace("-", "_").split("_"):
                if len(word) > 2 and word not in keywords:
                    keywords.append(word)

        server = ServerIntelligence(
            server_name=server_name,
            description=description,
            capabilities=capabilities or [self.rules.default_capability],
            domains=domains or [self.rules.default_domain],
            confidence=min(1.0, 0.5 + 0.1 * len(tools)),
            tool_count=len(tools),
            resource_count=resource_count,
            keywords=keywords,
            status=status,
            last_used=self._clock(),
        )
        self._servers[server_name] = server
        await self._write(SERVER_PREFIX + server_name, server.model_dump(mode="json"))
        logger.info("Registered tool server %s with %d tools", server_name, len(tools))
        return server

    async def update_server_performance(
        self,
        server_name: str,
        success: bool,
        response_time: float,
        error_type: str | None = None,
    ) -> ServerIntelligence | None:
        server = self._servers.get(server_name)
        if server is None:
            return None

        now = self._clock()
        metrics = server.performance_metrics
        metrics.total_requests += 1
        if success:
            metrics.consecutive_failures = 0
        else:
            metrics.failed_requests += 1
            metrics.consecutive_failures += 1

        metrics.success_rate = (metrics.total_requests - metrics.failed_requests) / metrics.total_requests
        metrics.error_rate = metrics.failed_requests / metrics.total_requests
        timed_out = 1.0 if error_type == "timeout" else 0.0
        metrics.timeout_rate = (
            metrics.timeout_rate * (metrics.total_requests - 1) + timed_out
        ) / metrics.total_requests

        if success:
            metrics.avg_response_time = metrics.avg_response_time * 0.9 + response_time * 0.1
            metrics.last_success_time = now
            server.last_used = now
        else:
            metrics.last_failure_time = now

        await self._write(SERVER_PREFIX + server_name, server.model_dump(mode="json"))
        return server

    def get_server(self, server_name: str) -> ServerIntelligence | None:
        return self._servers.get(server_name)

    def all_servers(self) -> list[ServerIntelligence]:
        return list(self._servers.values())

    # =========================================================================
    # Stats
    # =========================================================================

    def get_stats(self) -> RegistryStats:
        tools = list(self._tools.values())
        most_used = sorted(tools, key=lambda t: t.performance_metrics.usage_count, reverse=True)
        return RegistryStats(
            total_tools=len(tools),
            tools_with_performance_data=sum(1 for h in self._history.values() if h),
            average_reliability=(sum(t.reliability for t in tools) / len(tools)) if tools else 0.0,
            most_used_tools=[t.name for t in most_used[:5]],
            deprioritized_tools=sorted(self._deprioritized),
        )
