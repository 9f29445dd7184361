"""
Category Store - Topic categories and their signal items.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from .interface import StorageInterface
from ..core.errors import CategoryNotFoundError
from ..models import Category, CategoryItem, CategoryWithItems, Message

logger = logging.getLogger(__name__)


def _store_key(record) -> tuple:
    return (record.sort_order, record.id)


class CategoryStore:
    """
    Persists categories and items as two JSON documents.

    Deleting a category cascades to its items but never touches message tags,
    so messages may keep referencing ids that no longer exist.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.categories_dir = "categories"
        self._categories_path = f"{self.categories_dir}/categories.json"
        self._items_path = f"{self.categories_dir}/items.json"
        self._lock = asyncio.Lock()

    async def _load_categories(self) -> List[Category]:
        raw = await self.storage.load_json(self._categories_path, default=[])
        return [Category.model_validate(item) for item in raw]

    async def _save_categories(self, categories: List[Category]) -> None:
        await self.storage.save_json(
            self._categories_path, [c.to_json_dict() for c in categories]
        )

    async def _load_items(self) -> List[CategoryItem]:
        raw = await self.storage.load_json(self._items_path, default=[])
        return [CategoryItem.model_validate(item) for item in raw]

    async def _save_items(self, items: List[CategoryItem]) -> None:
        await self.storage.save_json(self._items_path, [i.to_json_dict() for i in items])

    # Categories

    async def list_categories(self) -> List[Category]:
        """All categories in store order: sort_order, then id."""
        return sorted(await self._load_categories(), key=_store_key)

    async def get_category(self, category_id: str) -> Optional[Category]:
        for category in await self._load_categories():
            if category.id == category_id:
                return category
        return None

    async def first_category(self) -> Optional[Category]:
        categories = await self.list_categories()
        return categories[0] if categories else None

    async def upsert(self, category: Category) -> Category:
        """Insert, or replace every field of an existing category with the same id."""
        async with self._lock:
            categories = [c for c in await self._load_categories() if c.id != category.id]
            categories.append(category)
            await self._save_categories(categories)

        logger.info(
            f"Upserted category {category.id}",
            extra={"extra_fields": {"category_id": category.id, "title": category.title}}
        )
        return category

    async def update_fields(self, category_id: str, **fields: Any) -> Category:
        """
        Partial update of an existing category.

        Raises:
            CategoryNotFoundError: If the category does not exist
        """
        async with self._lock:
            categories = await self._load_categories()
            for index, category in enumerate(categories):
                if category.id == category_id:
                    updated = category.model_copy(update=fields)
                    categories[index] = updated
                    await self._save_categories(categories)
                    return updated
        raise CategoryNotFoundError(category_id)

    async def delete_category(self, category_id: str) -> bool:
        """Delete a category and its items. Returns False if it did not exist."""
        async with self._lock:
            categories = await self._load_categories()
            kept = [c for c in categories if c.id != category_id]
            if len(kept) == len(categories):
                return False
            await self._save_categories(kept)

            items = await self._load_items()
            await self._save_items([i for i in items if i.category_id != category_id])

        logger.info(
            f"Deleted category {category_id}",
            extra={"extra_fields": {"category_id": category_id}}
        )
        return True

    async def toggle_pinned(self, category_id: str) -> bool:
        """
        Flip the pinned flag.

        Returns:
            bool: The new pinned value

        Raises:
            CategoryNotFoundError: If the category does not exist
        """
        async with self._lock:
            categories = await self._load_categories()
            for category in categories:
                if category.id == category_id:
                    category.pinned = not category.pinned
                    await self._save_categories(categories)
                    return category.pinned
        raise CategoryNotFoundError(category_id)

    # Items

    async def list_items(self, category_id: str) -> List[CategoryItem]:
        items = [i for i in await self._load_items() if i.category_id == category_id]
        return sorted(items, key=_store_key)

    async def upsert_item(self, item: CategoryItem) -> CategoryItem:
        """Full replacement by id; an upsert may move the item to another category."""
        async with self._lock:
            items = [i for i in await self._load_items() if i.id != item.id]
            items.append(item)
            await self._save_items(items)
        return item

    async def delete_item(self, item_id: str) -> bool:
        async with self._lock:
            items = await self._load_items()
            kept = [i for i in items if i.id != item_id]
            if len(kept) == len(items):
                return False
            await self._save_items(kept)
            return True

    async def list_with_items(
        self, categories: Optional[Sequence[Category]] = None
    ) -> List[CategoryWithItems]:
        if categories is None:
            categories = await self.list_categories()

        grouped: Dict[str, List[CategoryItem]] = {}
        for item in sorted(await self._load_items(), key=_store_key):
            grouped.setdefault(item.category_id, []).append(item)

        return [
            CategoryWithItems(**category.model_dump(), items=grouped.get(category.id, []))
            for category in categories
        ]

    # Ordering

    @staticmethod
    def _last_used(messages: Sequence[Message]) -> Dict[str, int]:
        """Category id -> recency rank (0 = most recent). Messages are newest first."""
        ranks: Dict[str, int] = {}
        for message in messages:
            for tag in message.tags:
                if tag not in ranks:
                    ranks[tag] = len(ranks)
        return ranks

    @classmethod
    def order_for_display(
        cls, categories: Sequence[Category], messages: Sequence[Message]
    ) -> List[Category]:
        """
        Sidebar order: pinned first, then most recently used, then
        case-insensitive title for categories never used.

        Args:
            categories: Categories to order
            messages: Recent messages, newest first
        """
        ranks = cls._last_used(messages)
        unused = len(ranks)

        def key(category: Category):
            rank = ranks.get(category.id, unused)
            return (
                not category.pinned,
                rank,
                category.title.casefold() if rank == unused else "",
            )

        return sorted(categories, key=key)

    @classmethod
    def recent_categories(
        cls, categories: Sequence[Category], messages: Sequence[Message], n: int = 3
    ) -> List[Category]:
        """The n most recently used categories, padded from store order."""
        ranks = cls._last_used(messages)
        used = sorted(
            (c for c in categories if c.id in ranks), key=lambda c: ranks[c.id]
        )[:n]
        chosen = {c.id for c in used}
        for category in sorted(categories, key=_store_key):
            if len(used) >= n:
                break
            if category.id not in chosen:
                used.append(category)
                chosen.add(category.id)
        return used
