# chuk_ai_tool_intelligence/storage/base.py
"""
Durable key-value storage protocol.

One JSON document per logical key ("tools/read_file", "memory/entries").
Providers raise StorageError on I/O or parse failure; callers catch it at the
point of use and treat the key as absent.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for JSON document stores."""

    async def write(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under `key`."""
        ...

    async def read(self, key: str) -> Any | None:
        """Return the stored value, or None if the key is missing."""
        ...

    async def list(self, prefix: str = "") -> list[str]:
        """List keys starting with `prefix`."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        ...
