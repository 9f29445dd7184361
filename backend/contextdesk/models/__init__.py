"""Models module."""

from .base import CamelModel
from .session import Session, Message, AttachmentMeta, MessageRole, normalize_tags
from .category import Category, CategoryItem, CategoryWithItems, DEFAULT_ICON, DEFAULT_ACCENT
from .memory import MemoryAtom, MemoryType, MEMORY_TYPES, KnowledgeDoc

__all__ = [
    'CamelModel',
    'Session', 'Message', 'AttachmentMeta', 'MessageRole', 'normalize_tags',
    'Category', 'CategoryItem', 'CategoryWithItems', 'DEFAULT_ICON', 'DEFAULT_ACCENT',
    'MemoryAtom', 'MemoryType', 'MEMORY_TYPES', 'KnowledgeDoc',
]
