"""
Storage Interface - Abstract base class for all storage implementations.
This interface enables switching between Local, S3, OSS, etc. without
touching the message, category, memory or knowledge stores built on it.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional, Any

from ..core.errors import StorageError


class StorageInterface(ABC):
    """
    Abstract storage interface that defines the contract for all storage implementations.
    Paths are relative, slash-separated keys (e.g. "sessions/index.json").
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Save content to the specified path, replacing any existing content.

        Args:
            path: Relative path where content should be saved
            content: Content to save (bytes for binary files, str for text)

        Returns:
            bool: True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the specified path.

        Returns:
            Optional[bytes]: File content as bytes, or None if file doesn't exist

        Raises:
            StorageError: The file exists but could not be read
        """
        pass

    async def load_json(self, path: str, default: Any = None) -> Any:
        """
        Load and decode a JSON document.

        Returns ``default`` when the file is missing. A file that exists but
        cannot be read or decoded raises StorageError rather than silently
        resetting the document on the next write.
        """
        content = await self.load(path)
        if content is None:
            return default
        try:
            return json.loads(content.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Corrupt JSON document at {path}: {e}") from e

    async def save_json(self, path: str, data: Any) -> None:
        """Encode and save a JSON document, raising StorageError on failure."""
        content = json.dumps(data, indent=2, ensure_ascii=False)
        if not await self.save(path, content):
            raise StorageError(f"Failed to write {path}")
