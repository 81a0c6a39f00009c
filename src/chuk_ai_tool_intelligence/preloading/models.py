# chuk_ai_tool_intelligence/preloading/models.py
"""Pre-loader data models: predictions, load snapshots, cache entries and reports."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from chuk_ai_tool_intelligence.models.enums import PreloadPriority
from chuk_ai_tool_intelligence.utils import UtcDatetime, utc_now


class PreloadPrediction(BaseModel):
    """A forecast that a tool will be needed soon."""

    tool_name: str
    probability: float = Field(ge=0, le=1)
    confidence: float = Field(ge=0, le=1)
    reasoning: list[str] = Field(default_factory=list)
    estimated_time_to_use: float = Field(default=0.0, ge=0)  # ms from now
    priority: PreloadPriority = PreloadPriority.LOW

    # Names of the strategies that produced (or were merged into) this prediction
    strategies: list[str] = Field(default_factory=list)

    @property
    def rank_score(self) -> float:
        return self.priority.rank * self.probability


class SystemLoad(BaseModel):
    """Snapshot of simulated resource pressure."""

    cpu_usage: float = Field(default=0.0, ge=0, le=1)
    memory_usage: float = Field(default=0.0, ge=0, le=1)
    network_latency: float = Field(default=0.0, ge=0)  # ms
    active_preloads: int = Field(default=0, ge=0)
    max_preloads: int = Field(default=10, ge=0)

    @property
    def at_capacity(self) -> bool:
        return self.active_preloads >= self.max_preloads


class PreloadCacheEntry(BaseModel):
    tool_name: str
    preloaded_at: UtcDatetime = Field(default_factory=utc_now)
    expires_at: UtcDatetime
    size: int = 0  # bytes, estimated
    access_count: int = 0
    last_accessed: UtcDatetime = Field(default_factory=utc_now)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class PreloadResult(BaseModel):
    predictions: list[PreloadPrediction] = Field(default_factory=list)
    preloaded: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    system_load: SystemLoad = Field(default_factory=SystemLoad)


class PreloadCacheStats(BaseModel):
    size: int = 0
    max_size: int = 0
    hits: int = 0
    misses: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class PreloadEffectiveness(BaseModel):
    """Measured quality of preloading plus tuning advice (advice only, never applied)."""

    hit_rate: float = 0.0
    average_cache_age_seconds: float = 0.0
    prediction_accuracy: float = 0.0
    recommendations: list[str] = Field(default_factory=list)
