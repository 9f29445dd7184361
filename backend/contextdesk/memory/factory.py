"""
Collaborator Factory - Creates the configured memory provider and knowledge store.
"""

from typing import Optional

from .base import KnowledgeStore, MemoryProvider
from .knowledge import LocalKnowledgeStore
from .local_provider import LocalMemoryProvider
from .mem0_provider import Mem0MemoryProvider
from ..storage import StorageInterface


def create_memory_provider(
    provider: str = "local",
    storage: Optional[StorageInterface] = None,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Optional[MemoryProvider]:
    """
    Create a memory provider instance based on configuration.

    Args:
        provider: Provider name ("local", "mem0" or "none")
        storage: Storage backend for the local provider
        api_key: mem0 API key
        base_url: Custom mem0 base URL

    Returns:
        MemoryProvider instance, or None if memory is disabled or unconfigured
    """
    if provider == "none":
        return None

    if provider == "local":
        if storage is None:
            return None
        return LocalMemoryProvider(storage)

    elif provider == "mem0":
        if not api_key:
            return None
        params = {"api_key": api_key}
        if base_url:
            params["base_url"] = base_url
        return Mem0MemoryProvider(**params)

    else:
        raise ValueError(f"Unsupported memory provider: {provider}")


def create_knowledge_store(storage: Optional[StorageInterface]) -> Optional[KnowledgeStore]:
    if storage is None:
        return None
    return LocalKnowledgeStore(storage)
