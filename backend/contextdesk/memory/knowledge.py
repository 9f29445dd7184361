"""
Local knowledge store - namespaced document lists kept on the storage backend.
"""

import asyncio
import logging
import re
import uuid
from typing import Any, Dict, List

from .base import KnowledgeStore
from ..core.errors import ValidationError
from ..storage import StorageInterface

logger = logging.getLogger(__name__)

_NAMESPACE = re.compile(r"^[A-Za-z0-9_-]+$")


class LocalKnowledgeStore(KnowledgeStore):
    """
    Stores each namespace in knowledge/kb_<namespace>.json.
    Search returns the first k documents; there is no vector index.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self._lock = asyncio.Lock()

    @staticmethod
    def validate_namespace(namespace: str) -> str:
        if not namespace or not _NAMESPACE.match(namespace):
            raise ValidationError(
                f"Invalid namespace {namespace!r}: use letters, digits, '_' or '-'"
            )
        return namespace

    def _path(self, namespace: str) -> str:
        return f"knowledge/kb_{self.validate_namespace(namespace)}.json"

    async def upsert(self, namespace: str, docs: List[Dict[str, Any]]) -> int:
        path = self._path(namespace)
        async with self._lock:
            existing = await self.storage.load_json(path, default=[])
            by_id = {doc["id"]: i for i, doc in enumerate(existing) if doc.get("id")}

            for doc in docs:
                record = {
                    "id": doc.get("id") or f"doc-{uuid.uuid4().hex[:16]}",
                    "text": doc["text"],
                    "metadata": dict(doc.get("metadata") or {}),
                }
                if record["id"] in by_id:
                    existing[by_id[record["id"]]] = record
                else:
                    by_id[record["id"]] = len(existing)
                    existing.append(record)

            await self.storage.save_json(path, existing)

        logger.info(
            f"Ingested {len(docs)} document(s) into namespace {namespace}",
            extra={"extra_fields": {"namespace": namespace, "count": len(docs)}}
        )
        return len(docs)

    async def search(self, namespace: str, query: str, k: int) -> List[Dict[str, Any]]:
        if k <= 0:
            return []
        docs = await self.storage.load_json(self._path(namespace), default=[])
        return docs[:k]
