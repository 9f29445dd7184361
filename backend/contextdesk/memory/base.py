"""
Base interfaces for the long-term memory and knowledge collaborators.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class MemoryProvider(ABC):
    """
    Long-term per-user memory.

    Search results are raw dicts shaped like
    {"text" or "memory": str, "metadata": {"type": str, "tags": [str]}}.
    """

    @abstractmethod
    async def add(self, user_id: str, text: str, metadata: Dict[str, Any]) -> None:
        """Store one memory record for a user."""
        pass

    @abstractmethod
    async def search(self, query: str, user_id: str, limit: int) -> List[Dict[str, Any]]:
        """Return at most `limit` records relevant to the query."""
        pass


class KnowledgeStore(ABC):
    """Namespaced store of retrievable knowledge snippets."""

    @abstractmethod
    async def upsert(self, namespace: str, docs: List[Dict[str, Any]]) -> int:
        """
        Add documents to a namespace.

        Returns:
            int: Number of documents written
        """
        pass

    @abstractmethod
    async def search(self, namespace: str, query: str, k: int) -> List[Dict[str, Any]]:
        """Return at most k documents; a missing namespace yields []."""
        pass
