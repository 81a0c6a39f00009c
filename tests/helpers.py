# tests/helpers.py
"""Test doubles and builders shared across the suite."""

from datetime import UTC, datetime, timedelta

from chuk_ai_tool_intelligence.exceptions import StorageError
from chuk_ai_tool_intelligence.models.context import ActivityRecord
from chuk_ai_tool_intelligence.models.enums import ActivityType, Complexity
from chuk_ai_tool_intelligence.models.tool import PerformanceMetrics, ToolMetadata
from chuk_ai_tool_intelligence.preloading.models import SystemLoad

# A Monday, 10:00 UTC
START = datetime(2026, 3, 2, 10, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FixedLoadProbe:
    """Load probe that always reports the same snapshot."""

    def __init__(self, load: SystemLoad):
        self.load = load

    def sample(self, active_preloads: int, max_preloads: int) -> SystemLoad:
        return self.load


class ExplodingStore:
    """Key-value store whose every operation fails."""

    async def write(self, key, value):
        raise StorageError("disk on fire", key=key)

    async def read(self, key):
        raise StorageError("disk on fire", key=key)

    async def list(self, prefix=""):
        raise StorageError("disk on fire", key=prefix)

    async def delete(self, key):
        raise StorageError("disk on fire", key=key)


def make_tool(
    name: str,
    capabilities: list[str],
    avg_time: float = 1000.0,
    reliability: float = 0.9,
    success_rate: float = 0.9,
    domains: list[str] | None = None,
    prerequisites: list[str] | None = None,
    complexity: Complexity = Complexity.LOW,
) -> ToolMetadata:
    return ToolMetadata(
        name=name,
        description=f"{name} tool",
        capabilities=capabilities,
        domains=domains or ["general"],
        complexity=complexity,
        reliability=reliability,
        prerequisites=prerequisites or [],
        performance_metrics=PerformanceMetrics(avg_execution_time=avg_time, success_rate=success_rate),
    )


def tool_use(tool_name: str, at: datetime, success: bool = True) -> ActivityRecord:
    return ActivityRecord(type=ActivityType.TOOL_USE, timestamp=at, tool_name=tool_name, success=success)
