# chuk_ai_tool_intelligence/preloading/cache.py
"""
Preload Cache - time-boxed record of tools prepared ahead of need.

Entries carry a fixed TTL. An entry past its expiry is logically absent:
lookups treat it as a miss and drop it on the spot; `evict_expired()`
is the proactive sweep.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from chuk_ai_tool_intelligence.preloading.models import PreloadCacheEntry, PreloadCacheStats

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_SIZE = 64 * 1024


class PreloadCache:
    """
    Map of tool name -> PreloadCacheEntry with TTL semantics.

    The cache does not enforce its own capacity; admission is gated by
    the pre-loader's SystemLoad budget before `put()` is called.
    """

    def __init__(self, ttl: timedelta = timedelta(minutes=30), max_entries: int = 10):
        self.ttl = ttl
        self.max_entries = max_entries
        self._entries: dict[str, PreloadCacheEntry] = {}
        self._stats = {
            "hits": 0,
            "misses": 0,
            "expirations": 0,
        }

    def get(self, tool_name: str, now: datetime) -> PreloadCacheEntry | None:
        """Lookup with access bookkeeping; expired entries count as misses."""
        entry = self._entries.get(tool_name)
        if entry is None:
            self._stats["misses"] += 1
            return None

        if entry.is_expired(now):
            del self._entries[tool_name]
            self._stats["expirations"] += 1
            self._stats["misses"] += 1
            return None

        entry.access_count += 1
        entry.last_accessed = now
        self._stats["hits"] += 1
        return entry

    def peek(self, tool_name: str, now: datetime) -> PreloadCacheEntry | None:
        """Lookup without touching access statistics."""
        entry = self._entries.get(tool_name)
        if entry is None or entry.is_expired(now):
            return None
        return entry

    def put(self, tool_name: str, now: datetime, size: int = DEFAULT_ENTRY_SIZE) -> PreloadCacheEntry:
        """Insert a fresh entry (an existing live entry is kept as-is)."""
        existing = self.peek(tool_name, now)
        if existing is not None:
            return existing

        entry = PreloadCacheEntry(
            tool_name=tool_name,
            preloaded_at=now,
            expires_at=now + self.ttl,
            size=size,
            last_accessed=now,
        )
        self._entries[tool_name] = entry
        return entry

    def evict_expired(self, now: datetime) -> int:
        expired = [name for name, entry in self._entries.items() if entry.is_expired(now)]
        for name in expired:
            del self._entries[name]
        self._stats["expirations"] += len(expired)
        if expired:
            logger.debug("Evicted %d expired preloads", len(expired))
        return len(expired)

    def live_entries(self, now: datetime) -> list[PreloadCacheEntry]:
        return [e for e in self._entries.values() if not e.is_expired(now)]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._entries

    def get_stats(self) -> PreloadCacheStats:
        return PreloadCacheStats(
            size=len(self._entries),
            max_size=self.max_entries,
            hits=self._stats["hits"],
            misses=self._stats["misses"],
            expirations=self._stats["expirations"],
        )
