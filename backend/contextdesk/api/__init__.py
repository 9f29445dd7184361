"""API module."""

from .chat import router as chat_router
from .messages import router as messages_router
from .categories import router as categories_router
from .knowledge import router as knowledge_router
from .conversation import router as conversation_router
from .health import router as health_router

__all__ = [
    'chat_router',
    'messages_router',
    'categories_router',
    'knowledge_router',
    'conversation_router',
    'health_router',
]
