# chuk_ai_tool_intelligence/memory/eviction_policy.py
"""
Eviction policy protocol and implementations for the memory store.

When a memory type exceeds its configured cap, the store asks the policy
to rank that type's entries; the lowest-scored entries are evicted until
the cap holds again.

Usage::

    from chuk_ai_tool_intelligence.memory.eviction_policy import (
        ImportanceRecencyPolicy,
        OldestFirstPolicy,
    )

    # Default: least important, least recent first
    store = MemoryStore(eviction_policy=ImportanceRecencyPolicy())

    # Plain FIFO
    store = MemoryStore(eviction_policy=OldestFirstPolicy())
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from chuk_ai_tool_intelligence.memory.models import MemoryEntry

# =============================================================================
# Models
# =============================================================================


class EvictionCandidate(BaseModel):
    """A scored eviction candidate. Lower score = evict first."""

    entry_id: str
    score: float


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class EvictionPolicy(Protocol):
    """
    Protocol for swappable eviction strategies.

    Implementations receive the entries of a single memory type (in
    insertion order) and return scored candidates, lowest first. Ties
    must keep insertion order so the oldest entry goes first.
    """

    def score_candidates(self, entries: list[MemoryEntry], now: datetime) -> list[EvictionCandidate]: ...


# =============================================================================
# Implementations
# =============================================================================


class ImportanceRecencyPolicy:
    """
    Default policy: importance x recency.

    recency = 1 / (1 + age_hours), age measured from creation.
    """

    def score_candidates(self, entries: list[MemoryEntry], now: datetime) -> list[EvictionCandidate]:
        candidates = []
        for entry in entries:
            age_hours = max(0.0, (now - entry.created_at).total_seconds() / 3600.0)
            recency = 1.0 / (1.0 + age_hours)
            candidates.append(EvictionCandidate(entry_id=entry.id, score=entry.importance * recency))
        # sort is stable: equal scores keep insertion (oldest-first) order
        candidates.sort(key=lambda c: c.score)
        return candidates


class OldestFirstPolicy:
    """Evict strictly by creation time."""

    def score_candidates(self, entries: list[MemoryEntry], now: datetime) -> list[EvictionCandidate]:  # noqa: ARG002
        ordered = sorted(entries, key=lambda e: e.created_at)
        return [EvictionCandidate(entry_id=e.id, score=float(i)) for i, e in enumerate(ordered)]
