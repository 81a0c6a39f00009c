# chuk_ai_tool_intelligence/memory/store.py
"""
Memory Store - typed, retention-governed knowledge base.

Handles:
- Typed memory entries with per-type caps, retention windows and priority
- Relevance-ranked retrieval with access bookkeeping
- Short-term to long-term promotion
- Conversation classification into episodic/procedural/semantic/working entries
- Per-project memory: context, learned patterns, conversation summary
- Error records

All state lives in memory; every mutation is written through to the
key-value store. Storage failures are logged and treated as absence.
"""

from __future__ import annotations

import base64
import json
import logging
import math
import re
from collections import Counter
from pathlib import PurePath
from typing import Any

from pydantic import ValidationError

from chuk_ai_tool_intelligence.exceptions import MemoryImportError, StorageError
from chuk_ai_tool_intelligence.memory.eviction_policy import EvictionPolicy, ImportanceRecencyPolicy
from chuk_ai_tool_intelligence.memory.models import (
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
from chuk_ai_tool_intelligence.models.context import ProjectContext
from chuk_ai_tool_intelligence.storage.base import KeyValueStore
from chuk_ai_tool_intelligence.storage.providers.memory import InMemoryKeyValueStore
from chuk_ai_tool_intelligence.utils import Clock, contains_any, days_since, utc_now

logger = logging.getLogger(__name__)

ENTRIES_KEY = "memory/entries"
TYPE_CONFIGS_KEY = "memory/type_configs"
ERRORS_KEY = "memory/errors"
PROJECT_PREFIX = "memory/projects/"

MIN_RELEVANCE = 0.1
MIN_CONTEXT_RELEVANCE = 2.0
PROMOTION_ACCESS_COUNT = 3
PROMOTION_AGE_HOURS = 24.0

# (type, keywords or None for always, title prefix, context, confidence, importance, tags)
CLASSIFICATION_RULES: list[tuple[MemoryType, tuple[str, ...] | None, str, str, float, int, list[str]]] = [
    (
        MemoryType.EPISODIC,
        ("completed", "finished", "started", "created", "deleted", "modified", "error", "success", "failed"),
        "Task Event",
        "conversation",
        0.7,
        6,
        ["conversation", "event"],
    ),
    (
        MemoryType.PROCEDURAL,
        ("step", "process", "command", "execute", "run", "build", "install", "configure"),
        "Procedure",
        "conversation",
        0.8,
        8,
        ["procedure", "how-to"],
    ),
    (
        MemoryType.SEMANTIC,
        ("definition", "concept", "means", "refers to", "is defined as", "explains"),
        "Concept",
        "conversation",
        0.6,
        5,
        ["concept", "knowledge"],
    ),
    (MemoryType.WORKING, None, "Working Context", "current_task", 0.9, 4, ["working", "current"]),
]

PREFERENCE_KEYWORDS = ("prefer", "like", "use", "avoid", "always", "never")
ERROR_SOLUTION_KEYWORDS = ("error", "issue", "problem", "bug", "fix", "solution")
TECHNOLOGY_KEYWORDS = ("react", "vue", "angular", "node", "python", "java", "typescript", "javascript")

_CODE_BLOCK_RE = re.compile(r"```(\w+)?\n([\s\S]*?)```")
_SENTENCE_RE = re.compile(r"[.!?]+")


def project_id_for(project_path: str) -> str:
    """Stable id derived from the workspace path."""
    encoded = base64.b64encode(project_path.encode("utf-8")).decode("ascii")
    return re.sub(r"[+/=]", "", encoded)[:16]


class MemoryStore:
    """
    Owns typed memory entries, project memories and error records.

    Usage::

        memory = MemoryStore(store=FileKeyValueStore(path))
        await memory.initialize()

        await memory.add_memory_entry(MemoryEntry(type=MemoryType.PROCEDURAL, title="Run tests"))
        hits = await memory.get_relevant_memories("tests", limit=5)
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        type_configs: dict[MemoryType, MemoryTypeConfig] | None = None,
        eviction_policy: EvictionPolicy | None = None,
        clock: Clock | None = None,
        max_patterns: int = 100,
        max_errors: int = 500,
    ) -> None:
        self._store = store or InMemoryKeyValueStore()
        self._type_configs = default_type_configs()
        if type_configs:
            self._type_configs.update(type_configs)
        self.eviction_policy = eviction_policy or ImportanceRecencyPolicy()
        self._clock = clock or utc_now
        self.max_patterns = max_patterns
        self.max_errors = max_errors

        self._entries: list[MemoryEntry] = []
        self._projects: dict[str, ProjectMemory] = {}
        self._errors: list[ErrorRecord] = []

    # =========================================================================
    # Lifecycle and storage helpers
    # =========================================================================

    async def initialize(self) -> None:
        data = await self._read(ENTRIES_KEY)
        if isinstance(data, list):
            try:
                self._entries = [MemoryEntry.model_validate(e) for e in data]
            except ValidationError:
                logger.warning("Discarding invalid memory entries", exc_info=True)

        data = await self._read(TYPE_CONFIGS_KEY)
        if isinstance(data, dict):
            for name, cfg in data.items():
                try:
                    self._type_configs[MemoryType(name)] = MemoryTypeConfig.model_validate(cfg)
                except (ValueError, ValidationError):
                    logger.warning("Ignoring invalid memory type config %s", name, exc_info=True)

        data = await self._read(ERRORS_KEY)
        if isinstance(data, list):
            try:
                self._errors = [ErrorRecord.model_validate(e) for e in data]
            except ValidationError:
                logger.warning("Discarding invalid error records", exc_info=True)

        for key in await self._list(PROJECT_PREFIX):
            project = await self._read_project(key)
            if project is not None:
                self._projects[project.project_id] = project

        logger.info(
            "Memory store ready: %d entries, %d projects, %d errors",
            len(self._entries),
            len(self._projects),
            len(self._errors),
        )

    async def _read(self, key: str) -> Any | None:
        try:
            return await self._store.read(key)
        except StorageError:
            logger.warning("Memory read failed for %s", key, exc_info=True)
            return None

    async def _list(self, prefix: str) -> list[str]:
        try:
            return await self._store.list(prefix)
        except StorageError:
            logger.warning("Memory list failed for %s", prefix, exc_info=True)
            return []

    async def _write(self, key: str, value: Any) -> None:
        try:
            await self._store.write(key, value)
        except StorageError:
            logger.warning("Memory write failed for %s", key, exc_info=True)

    async def _read_project(self, key: str) -> ProjectMemory | None:
        data = await self._read(key)
        if data is None:
            return None
        try:
            return ProjectMemory.model_validate(data)
        except ValidationError:
            logger.warning("Discarding invalid project memory at %s", key, exc_info=True)
            return None

    async def _save_entries(self) -> None:
        await self._write(ENTRIES_KEY, [e.model_dump(mode="json") for e in self._entries])

    async def _save_errors(self) -> None:
        await self._write(ERRORS_KEY, [e.model_dump(mode="json") for e in self._errors])

    # =========================================================================
    # Typed entries
    # =========================================================================

    async def add_memory_entry(self, entry: MemoryEntry) -> str | None:
        """
        Store an entry; returns its id, or None when the type is disabled.

        The entry's bookkeeping fields are reset: created now, accessed now,
        access count 1. Retention and cap for its type are enforced after.
        """
        config = self._type_configs.get(entry.type)
        if config is None or not config.enabled:
            logger.debug("Memory type %s is disabled, skipping %s", entry.type.value, entry.title)
            return None

        now = self._clock()
        entry.created_at = now
        entry.last_accessed = now
        entry.access_count = 1
        self._entries.append(entry)

        self._enforce_limits(entry.type)
        await self._save_entries()
        logger.debug("Added %s memory entry: %s", entry.type.value, entry.title)

        if entry.type == MemoryType.SHORT_TERM:
            await self.process_short_term_memories()
        return entry.id

    def relevance_score(self, entry: MemoryEntry, query: str) -> float:
        q = query.lower()
        if not q:
            return 0.0

        score = 0.0
        if q in entry.title.lower():
            score += 10
        if q in entry.content.lower():
            score += 7
        if q in entry.context.lower():
            score += 5
        score += 3 * sum(1 for tag in entry.tags if q in tag.lower())

        score *= 1 + entry.importance * 0.1
        score *= 1 + entry.confidence * 0.2

        recency = max(0.0, 1 - days_since(entry.last_accessed, self._clock()) / 30)
        frequency = math.log10(entry.access_count + 1) / math.log10(100)
        score *= 1 + recency * 0.3 + frequency * 0.2

        config = self._type_configs.get(entry.type)
        if config is not None:
            score *= 1 + config.priority * 0.1
        return score

    async def get_relevant_memories(
        self,
        query: str,
        types: list[MemoryType] | None = None,
        limit: int = 10,
    ) -> list[MemoryEntry]:
        """Best matches for `query`; each hit has its access stats bumped."""
        candidates = [e for e in self._entries if not types or e.type in types]
        scored = [(self.relevance_score(e, query), e) for e in candidates]
        scored = [(s, e) for s, e in scored if s > MIN_RELEVANCE]
        scored.sort(key=lambda pair: pair[0], reverse=True)

        now = self._clock()
        hits = [e for _, e in scored[:limit]]
        for entry in hits:
            entry.last_accessed = now
            entry.access_count += 1

        if hits:
            await self._save_entries()
            if any(e.type == MemoryType.SHORT_TERM for e in hits):
                await self.process_short_term_memories()
        return hits

    def _enforce_limits(self, memory_type: MemoryType) -> None:
        config = self._type_configs.get(memory_type)
        if config is None:
            return
        now = self._clock()

        expired = {
            e.id
            for e in self._entries
            if e.type == memory_type and days_since(e.created_at, now) > config.retention_days
        }
        if expired:
            self._entries = [e for e in self._entries if e.id not in expired]
            logger.debug("Removed %d expired %s entries", len(expired), memory_type.value)

        typed = [e for e in self._entries if e.type == memory_type]
        excess = len(typed) - config.max_entries
        if excess > 0:
            ranked = self.eviction_policy.score_candidates(typed, now)
            evicted = {c.entry_id for c in ranked[:excess]}
            self._entries = [e for e in self._entries if e.id not in evicted]
            logger.debug("Evicted %d excess %s entries", len(evicted), memory_type.value)

    async def process_short_term_memories(self) -> list[MemoryEntry]:
        """Promote frequently used, aged short_term entries to long_term."""
        now = self._clock()
        promoted: list[MemoryEntry] = []
        for entry in [e for e in self._entries if e.type == MemoryType.SHORT_TERM]:
            age_hours = (now - entry.created_at).total_seconds() / 3600.0
            if entry.access_count < PROMOTION_ACCESS_COUNT or age_hours <= PROMOTION_AGE_HOURS:
                continue

            copy = MemoryEntry(
                type=MemoryType.LONG_TERM,
                title=f"Long-term: {entry.title}",
                content=entry.content,
                context=entry.context,
                confidence=entry.confidence,
                importance=min(10, entry.importance + 2),
                tags=[*entry.tags, "promoted"],
                metadata={**entry.metadata, "promotedFrom": MemoryType.SHORT_TERM.value},
                related_memories=list(entry.related_memories),
            )
            if await self.add_memory_entry(copy) is None:
                continue
            self._entries = [e for e in self._entries if e.id != entry.id]
            promoted.append(copy)
            logger.info("Promoted short-term memory %s to long-term", entry.id)

        if promoted:
            await self._save_entries()
        return promoted

    def entries(self, memory_type: MemoryType | None = None) -> list[MemoryEntry]:
        return [e for e in self._entries if memory_type is None or e.type == memory_type]

    def get_entry(self, entry_id: str) -> MemoryEntry | None:
        return next((e for e in self._entries if e.id == entry_id), None)

    async def delete_entry(self, entry_id: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        if len(self._entries) == before:
            return False
        await self._save_entries()
        return True

    # --- Type configuration ---

    def get_type_config(self, memory_type: MemoryType) -> MemoryTypeConfig:
        return self._type_configs[memory_type]

    async def update_memory_type_config(self, memory_type: MemoryType, **changes: Any) -> MemoryTypeConfig:
        """Merge `changes` into a type's config, persist, and re-apply its limits."""
        current = self._type_configs[memory_type]
        updated = MemoryTypeConfig.model_validate({**current.model_dump(), **changes})
        self._type_configs[memory_type] = updated

        await self._write(
            TYPE_CONFIGS_KEY,
            {t.value: c.model_dump(mode="json") for t, c in self._type_configs.items()},
        )
        self._enforce_limits(memory_type)
        await self._save_entries()
        logger.info("Updated %s memory config: %s", memory_type.value, changes)
        return updated

    def get_memory_type_stats(self) -> dict[MemoryType, MemoryTypeStats]:
        stats = {}
        for memory_type in MemoryType:
            typed = self.entries(memory_type)
            config = self._type_configs.get(memory_type)
            stats[memory_type] = MemoryTypeStats(
                count=len(typed),
                enabled=bool(config and config.enabled),
                total_access=sum(e.access_count for e in typed),
            )
        return stats

    # --- Conversation classification ---

    async def classify_conversation(self, messages: list[str]) -> list[MemoryEntry]:
        """Turn conversation messages into typed entries by keyword rules."""
        added: list[MemoryEntry] = []
        for text in messages:
            if not text:
                continue
            for memory_type, keywords, prefix, context, confidence, importance, tags in CLASSIFICATION_RULES:
                if keywords is not None and not contains_any(text, keywords):
                    continue
                entry = MemoryEntry(
                    type=memory_type,
                    title=f"{prefix}: {text[:50]}...",
                    content=text,
                    context=context,
                    confidence=confidence,
                    importance=importance,
                    tags=list(tags),
                )
                if await self.add_memory_entry(entry) is not None:
                    added.append(entry)

        await self.process_short_term_memories()
        return added

    # =========================================================================
    # Project memory
    # =========================================================================

    async def load_project_memory(
        self,
        project_path: str,
        context: ProjectContext | None = None,
    ) -> ProjectMemory:
        """Return the project's memory, creating and persisting it on first use."""
        project_id = project_id_for(project_path)
        memory = self._projects.get(project_id)
        if memory is None:
            memory = await self._read_project(PROJECT_PREFIX + project_id)
        if memory is None:
            memory = ProjectMemory(
                project_id=project_id,
                project_name=PurePath(project_path).name or project_path,
                project_path=project_path,
                last_updated=self._clock(),
                context=context or ProjectContext(project_path=project_path),
            )
            await self.save_project_memory(memory)
            logger.info("Created project memory for %s", project_path)
        self._projects[project_id] = memory
        return memory

    def get_project_memory(self, project_id: str) -> ProjectMemory | None:
        return self._projects.get(project_id)

    async def save_project_memory(self, memory: ProjectMemory) -> None:
        memory.last_updated = self._clock()
        self._projects[memory.project_id] = memory
        await self._write(PROJECT_PREFIX + memory.project_id, memory.model_dump(mode="json"))

    async def export_project_memory(self, project_id: str) -> str | None:
        memory = self._projects.get(project_id) or await self._read_project(PROJECT_PREFIX + project_id)
        if memory is None:
            return None
        return memory.model_dump_json(indent=2)

    async def import_project_memory(self, project_id: str, document: str) -> ProjectMemory:
        """Replace a project's memory from an exported JSON document."""
        try:
            data = json.loads(document)
            if not isinstance(data, dict) or not data.get("project_id") or not data.get("project_name"):
                raise MemoryImportError("Invalid memory document: project_id and project_name are required")
            data["project_id"] = project_id
            memory = ProjectMemory.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise MemoryImportError(f"Invalid memory document: {e}") from e

        await self.save_project_memory(memory)
        logger.info("Imported memory for project %s", project_id)
        return memory

    async def clear_project_memory(self, project_id: str) -> bool:
        existed = self._projects.pop(project_id, None) is not None
        try:
            existed = await self._store.delete(PROJECT_PREFIX + project_id) or existed
        except StorageError:
            logger.warning("Failed to delete project memory %s", project_id, exc_info=True)
        return existed

    async def analyze_conversation(self, project_id: str, messages: list[str]) -> list[LearnedPattern]:
        """Learn patterns, technologies and topics from a conversation."""
        memory = self._projects.get(project_id)
        if memory is None:
            return []

        patterns = [p for text in messages if text for p in self.extract_patterns(text)]
        for pattern in patterns:
            await self.add_learned_pattern(project_id, pattern, save=False)

        for text in messages:
            lowered = (text or "").lower()
            for tech in TECHNOLOGY_KEYWORDS:
                if tech in lowered and tech not in memory.context.technologies:
                    memory.context.technologies.append(tech)

        self._update_conversation_summary(memory, messages)
        await self.classify_conversation(messages)
        await self.save_project_memory(memory)
        logger.info("Learned %d patterns from conversation for %s", len(patterns), project_id)
        return patterns

    @staticmethod
    def _update_conversation_summary(memory: ProjectMemory, messages: list[str]) -> None:
        summary = memory.conversation_summary
        summary.total_conversations += 1

        topics = []
        for text in messages:
            if text and len(text) > 50:
                first = _SENTENCE_RE.split(text)[0].strip()
                if 10 < len(first) < 100:
                    topics.append(first)

        summary.last_conversation_topics = topics[:5]
        for topic in topics:
            if topic in summary.topics:
                summary.topics.remove(topic)
            summary.topics.insert(0, topic)
        summary.topics = summary.topics[:20]

    # --- Learned patterns ---

    async def add_learned_pattern(self, project_id: str, pattern: LearnedPattern, save: bool = True) -> LearnedPattern | None:
        """
        Add or reinforce a pattern.

        A pattern with the same (description, type) is reinforced instead:
        usage +1 and confidence +0.1 (capped at 1.0). Only the top patterns
        by confidence x usage are retained.
        """
        memory = self._projects.get(project_id)
        if memory is None:
            return None

        existing = next((p for p in memory.learned_patterns if p.dedup_key == pattern.dedup_key), None)
        if existing is not None:
            existing.usage_count += 1
            existing.last_used = self._clock()
            existing.confidence = min(1.0, existing.confidence + 0.1)
            result = existing
        else:
            memory.learned_patterns.append(pattern)
            result = pattern

        memory.learned_patterns.sort(key=lambda p: p.retention_score, reverse=True)
        del memory.learned_patterns[self.max_patterns :]

        if save:
            await self.save_project_memory(memory)
        return result

    def get_learned_patterns(self, project_key: str) -> list[LearnedPattern]:
        """Patterns for a project id, or for every project of that project type."""
        memory = self._projects.get(project_key)
        if memory is not None:
            return list(memory.learned_patterns)
        return [
            p
            for m in self._projects.values()
            if m.context.project_type == project_key
            for p in m.learned_patterns
        ]

    def extract_patterns(self, text: str) -> list[LearnedPattern]:
        """Candidate patterns from one message: code blocks, preferences, error fixes."""
        now = self._clock()
        context = text[:100]
        patterns: list[LearnedPattern] = []

        for match in _CODE_BLOCK_RE.finditer(text):
            language = match.group(1) or "unknown"
            code = match.group(2)
            if len(code) <= 20:
                continue
            patterns.append(
                LearnedPattern(
                    type=PatternType.CODE_PATTERN,
                    description=f"{language} code pattern",
                    pattern=code[:200] + ("..." if len(code) > 200 else ""),
                    context=context,
                    confidence=0.5,
                    created_at=now,
                    last_used=now,
                    tags=[language, "code"],
                )
            )

        for sentence in _SENTENCE_RE.split(text):
            if not sentence.strip():
                continue
            if contains_any(sentence, PREFERENCE_KEYWORDS):
                patterns.append(
                    LearnedPattern(
                        type=PatternType.USER_PREFERENCE,
                        description="User coding preference",
                        pattern=sentence.strip(),
                        context=context,
                        confidence=0.6,
                        created_at=now,
                        last_used=now,
                        tags=["preference", "user"],
                    )
                )
            if contains_any(sentence, ERROR_SOLUTION_KEYWORDS):
                patterns.append(
                    LearnedPattern(
                        type=PatternType.ERROR_SOLUTION,
                        description="Error solution pattern",
                        pattern=sentence.strip(),
                        context=context,
                        confidence=0.7,
                        created_at=now,
                        last_used=now,
                        tags=["error", "solution"],
                    )
                )
        return patterns

    @staticmethod
    def pattern_relevance(pattern: LearnedPattern, query: str) -> float:
        words = [w for w in query.lower().split() if len(w) > 3]
        if not words:
            return 0.0

        description = pattern.description.lower()
        content = pattern.pattern.lower()
        tags = [t.lower() for t in pattern.tags]

        score = 0.0
        for word in words:
            if word in description:
                score += 5
            if any(word in t for t in tags):
                score += 3
            if word in content:
                score += 1

        score *= 1 + pattern.confidence
        score *= 1 + math.log10(pattern.usage_count + 1)
        return score

    def get_relevant_context(self, project_id: str, query: str) -> str:
        """Plain-text project summary plus the top five matching patterns."""
        memory = self._projects.get(project_id)
        if memory is None:
            return ""

        scored = [(self.pattern_relevance(p, query), p) for p in memory.learned_patterns]
        relevant = sorted(
            [(s, p) for s, p in scored if s > MIN_CONTEXT_RELEVANCE],
            key=lambda pair: pair[0],
            reverse=True,
        )[:5]

        lines = [
            f"Project: {memory.project_name}",
            f"Technologies: {', '.join(memory.context.technologies)}",
            f"Frameworks: {', '.join(memory.context.frameworks)}",
            "",
            "Relevant Patterns:",
            *[f"- {p.description}: {p.pattern}" for _, p in relevant],
        ]
        return "\n".join(lines)

    # =========================================================================
    # Error records
    # =========================================================================

    async def record_error(
        self,
        error_type: ErrorType,
        message: str,
        file_path: str | None = None,
        line_number: int | None = None,
        tool_used: str | None = None,
        tags: list[str] | None = None,
    ) -> str:
        now = self._clock()
        existing = next(
            (e for e in self._errors if e.error_message == message and e.file_path == file_path),
            None,
        )
        if existing is not None:
            existing.occurrence_count += 1
            existing.last_occurrence = now
            await self._save_errors()
            return existing.id

        record = ErrorRecord(
            error_type=error_type,
            error_message=message,
            file_path=file_path,
            line_number=line_number,
            tool_used=tool_used,
            created_at=now,
            last_occurrence=now,
            tags=tags or [],
        )
        self._errors.append(record)
        del self._errors[: max(0, len(self._errors) - self.max_errors)]
        await self._save_errors()
        logger.debug("Recorded error %s: %s", record.id, message)
        return record.id

    async def resolve_error(self, error_id: str, resolution: str) -> bool:
        record = next((e for e in self._errors if e.id == error_id), None)
        if record is None:
            return False
        record.success = True
        record.resolution = resolution
        record.resolved_at = self._clock()
        await self._save_errors()
        return True

    def get_error_history(
        self,
        error_type: ErrorType | None = None,
        resolved: bool | None = None,
        limit: int | None = None,
    ) -> list[ErrorRecord]:
        records = [
            e
            for e in self._errors
            if (error_type is None or e.error_type == error_type) and (resolved is None or e.success == resolved)
        ]
        records.sort(key=lambda e: e.last_occurrence, reverse=True)
        return records[:limit] if limit else records

    # =========================================================================
    # Stats
    # =========================================================================

    def get_memory_stats(self) -> MemoryStats:
        patterns = Counter(p.type.value for m in self._projects.values() for p in m.learned_patterns)
        return MemoryStats(
            total_memories=sum(len(m.learned_patterns) for m in self._projects.values()) + len(self._entries),
            patterns_by_type=dict(patterns),
            conversation_count=sum(m.conversation_summary.total_conversations for m in self._projects.values()),
            project_count=len(self._projects),
            error_count=len(self._errors),
            resolved_error_count=sum(1 for e in self._errors if e.success),
            errors_by_type=dict(Counter(e.error_type.value for e in self._errors)),
        )
