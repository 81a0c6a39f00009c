# chuk_ai_tool_intelligence/storage/__init__.py
"""Durable key-value storage used by the registry, memory store and learning loop."""

from chuk_ai_tool_intelligence.storage.base import KeyValueStore
from chuk_ai_tool_intelligence.storage.providers.file import FileKeyValueStore
from chuk_ai_tool_intelligence.storage.providers.memory import InMemoryKeyValueStore

__all__ = [
    "KeyValueStore",
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
]
