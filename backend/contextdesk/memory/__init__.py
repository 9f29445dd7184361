"""Memory module - long-term memory and knowledge collaborators."""

from .base import MemoryProvider, KnowledgeStore
from .local_provider import LocalMemoryProvider
from .mem0_provider import Mem0MemoryProvider
from .knowledge import LocalKnowledgeStore
from .factory import create_memory_provider, create_knowledge_store

__all__ = [
    'MemoryProvider',
    'KnowledgeStore',
    'LocalMemoryProvider',
    'Mem0MemoryProvider',
    'LocalKnowledgeStore',
    'create_memory_provider',
    'create_knowledge_store',
]
