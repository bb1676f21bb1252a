"""
Storage Interface - Abstract base class for all storage implementations.
The transcript store only talks to this interface, so the backing medium
can change without touching the session engine.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageInterface(ABC):
    """
    Abstract storage interface that defines the contract for all storage implementations.
    All methods raise PersistenceError on I/O failure.
    """

    @abstractmethod
    async def save(self, path: str, content: str) -> None:
        """
        Replace the content at the specified path.

        Readers never observe a partially written file: the new content
        becomes visible all at once.

        Args:
            path: Relative path (e.g., "10.0.0.7/summary.txt")
            content: Text content to save
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[str]:
        """
        Load text content from the specified path.

        Args:
            path: Relative path to load from

        Returns:
            Optional[str]: File content, or None if the file doesn't exist
        """
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """
        Check if a file exists at the specified path.

        Args:
            path: Relative path to check

        Returns:
            bool: True if file exists, False otherwise
        """
        pass

    @abstractmethod
    async def append(self, path: str, content: str) -> None:
        """
        Append content to a file, creating it and its parents if needed.

        The content is written in a single call so concurrent appenders
        serialized by the caller never tear each other's lines.

        Args:
            path: File path
            content: Content to append
        """
        pass
