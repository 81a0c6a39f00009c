# tests/conftest.py
"""
Shared pytest fixtures for chuk_ai_tool_intelligence tests.

Time-dependent components all take an injectable clock; tests drive a
FakeClock instead of sleeping.
"""

import logging

import pytest

from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.preloading.models import SystemLoad
from chuk_ai_tool_intelligence.registry.registry import ToolRegistry
from chuk_ai_tool_intelligence.storage.providers.memory import InMemoryKeyValueStore
from tests.helpers import ExplodingStore, FakeClock, FixedLoadProbe

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logging.getLogger("chuk_ai_tool_intelligence").setLevel(logging.DEBUG)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
async def registry(store, clock):
    """Registry with the built-in tools."""
    registry = ToolRegistry(store=store, clock=clock)
    await registry.initialize()
    return registry


@pytest.fixture
def context():
    return TaskContext(user_request="read config.json and summarize it")


@pytest.fixture
def exploding_store():
    return ExplodingStore()


@pytest.fixture
def fixed_probe():
    """Factory for probes reporting a fixed load."""

    def _make(**load) -> FixedLoadProbe:
        return FixedLoadProbe(SystemLoad(**load))

    return _make
