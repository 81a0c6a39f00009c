# chuk_ai_tool_intelligence/storage/providers/file.py
"""
File-backed key-value store.

Each key maps to one JSON file under the base directory. Key segments
(separated by "/") become sub-directories and are percent-encoded so that
arbitrary tool names round-trip through `list()`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

import aiofiles
import aiofiles.os

from chuk_ai_tool_intelligence.exceptions import StorageError

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class FileKeyValueStore:
    """
    JSON-file store with an in-process read cache.

    With `auto_save=False` writes stay in the cache until `flush()`.
    """

    def __init__(self, base_dir: str | Path, auto_save: bool = True) -> None:
        self.base_dir = Path(base_dir)
        self.auto_save = auto_save
        self._cache: dict[str, Any] = {}
        self._dirty: set[str] = set()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        segments = [quote(seg, safe="-_.") for seg in key.split("/") if seg]
        if not segments:
            raise StorageError("Empty storage key", key=key)
        *dirs, leaf = segments
        return self.base_dir.joinpath(*dirs, leaf + _SUFFIX)

    def _key_for(self, path: Path) -> str:
        rel = path.relative_to(self.base_dir)
        parts = list(rel.parts)
        parts[-1] = parts[-1][: -len(_SUFFIX)]
        return "/".join(unquote(p) for p in parts)

    async def write(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value, indent=2)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key} is not JSON-serializable: {e}", key=key) from e

        self._cache[key] = json.loads(payload)
        if not self.auto_save:
            self._dirty.add(key)
            return
        await self._write_file(key, payload)

    async def _write_file(self, key: str, payload: str) -> None:
        path = self._path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}", key=key) from e

    async def read(self, key: str) -> Any | None:
        if key in self._cache:
            return json.loads(json.dumps(self._cache[key]))

        path = self._path_for(key)
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                content = await f.read()
            value = json.loads(content)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}", key=key) from e
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt JSON in {key}: {e}", key=key) from e

        self._cache[key] = value
        return json.loads(json.dumps(value))

    async def list(self, prefix: str = "") -> list[str]:
        keys = set(k for k in self._cache if k.startswith(prefix))
        paths = await asyncio.to_thread(lambda: list(self.base_dir.rglob("*" + _SUFFIX)))
        for path in paths:
            key = self._key_for(path)
            if key.startswith(prefix):
                keys.add(key)
        return sorted(keys)

    async def delete(self, key: str) -> bool:
        existed = self._cache.pop(key, None) is not None
        self._dirty.discard(key)
        try:
            await aiofiles.os.remove(self._path_for(key))
        except FileNotFoundError:
            return existed
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}", key=key) from e
        return True

    async def flush(self) -> int:
        """Write pending cache-only values to disk. Returns the number written."""
        written = 0
        for key in sorted(self._dirty):
            await self._write_file(key, json.dumps(self._cache[key], indent=2))
            written += 1
        self._dirty.clear()
        return written

    async def clear_cache(self) -> None:
        """Drop the read cache (pending unsaved writes are flushed first)."""
        if self._dirty:
            await self.flush()
        self._cache.clear()
