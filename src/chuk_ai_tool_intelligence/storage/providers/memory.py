# chuk_ai_tool_intelligence/storage/providers/memory.py
"""In-memory key-value store for tests and ephemeral engines."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any

from chuk_ai_tool_intelligence.exceptions import StorageError

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """
    Dict-backed store.

    Values are round-tripped through JSON on write so that the same
    serialization errors surface here as with the file store.
    """

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    async def write(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key} is not JSON-serializable: {e}", key=key) from e

    async def read(self, key: str) -> Any | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def list(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data
