"""Storage module - provides interface, implementations and the durable stores built on them."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .message_store import MessageStore
from .category_store import CategoryStore

__all__ = ['StorageInterface', 'LocalStorage', 'MessageStore', 'CategoryStore']
