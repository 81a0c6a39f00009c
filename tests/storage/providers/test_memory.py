# tests/storage/providers/test_memory.py
"""
Tests for the in-memory key-value store.
"""

import pytest

from chuk_ai_tool_intelligence.exceptions import StorageError
from chuk_ai_tool_intelligence.storage.base import KeyValueStore
from chuk_ai_tool_intelligence.storage.providers.memory import InMemoryKeyValueStore


class TestInMemoryKeyValueStore:
    """Tests for the InMemoryKeyValueStore class."""

    @pytest.fixture
    def kv(self):
        return InMemoryKeyValueStore()

    def test_satisfies_protocol(self, kv):
        assert isinstance(kv, KeyValueStore)

    @pytest.mark.asyncio
    async def test_write_and_read(self, kv):
        await kv.write("tools/read_file", {"name": "read_file", "reliability": 0.95})

        assert await kv.read("tools/read_file") == {"name": "read_file", "reliability": 0.95}
        assert "tools/read_file" in kv
        assert len(kv) == 1

    @pytest.mark.asyncio
    async def test_read_missing(self, kv):
        assert await kv.read("does-not-exist") is None

    @pytest.mark.asyncio
    async def test_read_returns_copy(self, kv):
        """Mutating a read value must not change what is stored."""
        await kv.write("memory/entries", [{"id": "a"}])

        value = await kv.read("memory/entries")
        value.append({"id": "b"})

        assert await kv.read("memory/entries") == [{"id": "a"}]

    @pytest.mark.asyncio
    async def test_list_by_prefix(self, kv):
        await kv.write("tools/b", 1)
        await kv.write("tools/a", 2)
        await kv.write("servers/x", 3)

        assert await kv.list("tools/") == ["tools/a", "tools/b"]
        assert len(await kv.list()) == 3

    @pytest.mark.asyncio
    async def test_delete(self, kv):
        await kv.write("k", "v")

        assert await kv.delete("k") is True
        assert await kv.delete("k") is False
        assert await kv.read("k") is None

    @pytest.mark.asyncio
    async def test_unserializable_value_raises_storage_error(self, kv):
        with pytest.raises(StorageError) as exc_info:
            await kv.write("bad", {"value": object()})

        assert exc_info.value.key == "bad"
