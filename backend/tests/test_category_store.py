"""
Tests for the category store and display ordering.
"""

import pytest
from datetime import datetime, timedelta, timezone

from contextdesk.core.errors import CategoryNotFoundError, StorageError
from contextdesk.models import Category, CategoryItem, Message
from contextdesk.storage import CategoryStore


def _message(msg_id: str, tags, minutes_ago: int) -> Message:
    return Message(
        id=msg_id,
        session_id="s",
        role="user",
        content="x",
        tags=tags,
        timestamp=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    )


class TestCategoryCrud:

    @pytest.mark.asyncio
    async def test_defaults(self, category_store):
        await category_store.upsert(Category(id="ops", title="Operations"))
        category = await category_store.get_category("ops")
        assert category.icon == "Sparkles"
        assert category.accent == "from-grokPurple to-grokBlue"
        assert category.sort_order == 0
        assert category.pinned is False

    @pytest.mark.asyncio
    async def test_unreadable_catalog_is_not_overwritten(self, storage, category_store):
        await storage.save("categories/categories.json/stray.json", "{}")
        with pytest.raises(StorageError):
            await category_store.upsert(Category(id="ops", title="Operations"))
        assert await storage.load("categories/categories.json/stray.json") == b"{}"

    @pytest.mark.asyncio
    async def test_store_order_is_sort_order_then_id(self, category_store):
        await category_store.upsert(Category(id="b", title="B", sort_order=1))
        await category_store.upsert(Category(id="z", title="Z", sort_order=0))
        await category_store.upsert(Category(id="a", title="A", sort_order=1))
        assert [c.id for c in await category_store.list_categories()] == ["z", "a", "b"]

    @pytest.mark.asyncio
    async def test_upsert_replaces_every_field(self, category_store):
        await category_store.upsert(Category(id="ops", title="Ops", description="old", pinned=True))
        await category_store.upsert(Category(id="ops", title="Operations"))
        category = await category_store.get_category("ops")
        assert category.title == "Operations"
        assert category.description is None
        assert category.pinned is False
        assert len(await category_store.list_categories()) == 1

    @pytest.mark.asyncio
    async def test_update_fields(self, category_store):
        await category_store.upsert(Category(id="ops", title="Ops"))
        await category_store.update_fields("ops", icon="Briefcase")
        assert (await category_store.get_category("ops")).icon == "Briefcase"

    @pytest.mark.asyncio
    async def test_update_fields_unknown_raises(self, category_store):
        with pytest.raises(CategoryNotFoundError):
            await category_store.update_fields("missing", icon="Briefcase")

    @pytest.mark.asyncio
    async def test_toggle_pinned_twice_restores(self, category_store, ops_category):
        await category_store.upsert(ops_category)
        assert await category_store.toggle_pinned("ops") is True
        assert await category_store.toggle_pinned("ops") is False
        assert (await category_store.get_category("ops")).pinned is False

    @pytest.mark.asyncio
    async def test_toggle_pinned_unknown_raises(self, category_store):
        with pytest.raises(CategoryNotFoundError):
            await category_store.toggle_pinned("missing")

    @pytest.mark.asyncio
    async def test_delete_cascades_items(self, category_store, ops_category):
        await category_store.upsert(ops_category)
        await category_store.upsert(Category(id="other", title="Other"))
        await category_store.upsert_item(CategoryItem(id="i1", category_id="ops", title="Signal"))
        await category_store.upsert_item(CategoryItem(id="i2", category_id="other", title="Keep"))

        assert await category_store.delete_category("ops") is True

        assert await category_store.get_category("ops") is None
        assert await category_store.list_items("ops") == []
        assert [i.id for i in await category_store.list_items("other")] == ["i2"]

    @pytest.mark.asyncio
    async def test_item_upsert_can_move_category(self, category_store):
        await category_store.upsert_item(CategoryItem(id="i1", category_id="a", title="Signal"))
        await category_store.upsert_item(CategoryItem(id="i1", category_id="b", title="Signal"))
        assert await category_store.list_items("a") == []
        assert [i.id for i in await category_store.list_items("b")] == ["i1"]

    @pytest.mark.asyncio
    async def test_list_with_items(self, category_store, ops_category):
        await category_store.upsert(ops_category)
        await category_store.upsert_item(CategoryItem(id="i2", category_id="ops", title="B", sort_order=1))
        await category_store.upsert_item(CategoryItem(id="i1", category_id="ops", title="A", sort_order=0))
        [with_items] = await category_store.list_with_items()
        assert [i.id for i in with_items.items] == ["i1", "i2"]


class TestOrdering:

    def test_pinned_first_then_recent_then_title(self):
        categories = [
            Category(id="c-zeta", title="zeta"),
            Category(id="c-alpha", title="Alpha"),
            Category(id="c-used", title="Used"),
            Category(id="c-pinned", title="Pinned", pinned=True),
            Category(id="c-latest", title="Latest"),
        ]
        messages = [
            _message("m2", ["c-latest"], minutes_ago=1),
            _message("m1", ["c-used"], minutes_ago=5),
        ]
        ordered = CategoryStore.order_for_display(categories, messages)
        assert [c.id for c in ordered] == ["c-pinned", "c-latest", "c-used", "c-alpha", "c-zeta"]

    def test_unknown_tags_ignored(self):
        categories = [Category(id="b", title="B"), Category(id="a", title="A")]
        ordered = CategoryStore.order_for_display(categories, [_message("m", ["deleted"], 1)])
        assert [c.id for c in ordered] == ["a", "b"]

    def test_recent_categories_padded_from_store_order(self):
        categories = [
            Category(id="a", title="A"),
            Category(id="b", title="B"),
            Category(id="c", title="C"),
            Category(id="d", title="D"),
        ]
        messages = [_message("m", ["c"], 1)]
        recent = CategoryStore.recent_categories(categories, messages)
        assert [c.id for c in recent] == ["c", "a", "b"]
