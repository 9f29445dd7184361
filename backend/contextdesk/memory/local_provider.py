"""
Local memory provider - keeps memories as JSON documents on the storage backend.
"""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List

from .base import MemoryProvider
from ..storage import StorageInterface

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[a-z0-9']+")
_SAFE_USER = re.compile(r"[^A-Za-z0-9_.-]")


def _words(text: str) -> set:
    return set(_WORD.findall(text.lower()))


class LocalMemoryProvider(MemoryProvider):
    """
    Stores memories in memories/<user>.json.

    There is no relevance scoring: search returns the newest records that share
    at least one word with the query, or the newest overall when none do.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self._lock = asyncio.Lock()

    def _path(self, user_id: str) -> str:
        return f"memories/{_SAFE_USER.sub('_', user_id)}.json"

    async def add(self, user_id: str, text: str, metadata: Dict[str, Any]) -> None:
        async with self._lock:
            path = self._path(user_id)
            records = await self.storage.load_json(path, default=[])
            records.append({
                "text": text,
                "metadata": dict(metadata or {}),
                "created_at": datetime.now(timezone.utc).isoformat(),
            })
            await self.storage.save_json(path, records)

        logger.debug(
            "Stored memory",
            extra={"extra_fields": {"user_id": user_id, "type": (metadata or {}).get("type")}}
        )

    async def search(self, query: str, user_id: str, limit: int) -> List[Dict[str, Any]]:
        if limit <= 0:
            return []

        records = await self.storage.load_json(self._path(user_id), default=[])
        newest_first = list(reversed(records))

        query_words = _words(query)
        matching = [r for r in newest_first if query_words & _words(r.get("text", ""))]
        return (matching or newest_first)[:limit]
