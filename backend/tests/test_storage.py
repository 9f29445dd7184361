"""
Unit tests for the storage backend.
"""

import os

import pytest

from contextdesk.core.errors import StorageError
from contextdesk.storage import LocalStorage


class TestLocalStorage:
    """Tests for LocalStorage."""

    @pytest.mark.asyncio
    async def test_save_and_load_roundtrip(self, storage):
        assert await storage.save("a/b.txt", "hello") is True
        assert await storage.load("a/b.txt") == b"hello"

    @pytest.mark.asyncio
    async def test_load_missing_returns_none(self, storage):
        assert await storage.load("missing.json") is None

    @pytest.mark.asyncio
    async def test_save_leaves_no_temp_file(self, storage):
        await storage.save("docs/one.json", "{}")
        assert os.listdir(storage.base_dir / "docs") == ["one.json"]

    @pytest.mark.asyncio
    async def test_unreadable_path_raises(self, storage):
        await storage.save("sessions/s1/messages.json", "[]")
        with pytest.raises(StorageError):
            await storage.load("sessions/s1")

    @pytest.mark.asyncio
    async def test_unreadable_json_is_not_treated_as_missing(self, storage):
        await storage.save("categories/categories.json/nested.json", "{}")
        with pytest.raises(StorageError):
            await storage.load_json("categories/categories.json", default=[])

    def test_path_traversal_rejected(self, storage):
        with pytest.raises(ValueError, match="traversal"):
            storage._get_full_path("../outside.txt")

    @pytest.mark.asyncio
    async def test_json_helpers(self, storage):
        await storage.save_json("data.json", {"a": [1, 2]})
        assert await storage.load_json("data.json") == {"a": [1, 2]}
        assert await storage.load_json("nope.json", default=[]) == []

    @pytest.mark.asyncio
    async def test_corrupt_json_raises(self, storage):
        await storage.save("bad.json", "{not json")
        with pytest.raises(StorageError):
            await storage.load_json("bad.json")

    @pytest.mark.asyncio
    async def test_creates_base_dir(self, tmp_path):
        base = tmp_path / "nested" / "root"
        LocalStorage(str(base))
        assert base.is_dir()
