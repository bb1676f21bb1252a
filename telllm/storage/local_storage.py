"""
Local Filesystem Storage Implementation.
Stores transcripts under a base directory on the server's local filesystem.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from ..errors import PersistenceError
from .interface import StorageInterface

logger = logging.getLogger(__name__)


class LocalStorage(StorageInterface):
    """
    Local filesystem storage implementation.
    Directories are created lazily on first write.
    """

    def __init__(self, base_dir: str = "./logs"):
        """
        Initialize local storage with a base directory.

        Args:
            base_dir: Base directory for all stored files
        """
        self.base_dir = Path(base_dir).resolve()

    def _get_full_path(self, path: str) -> Path:
        """Convert relative path to full absolute path within base directory."""
        full_path = (self.base_dir / path).resolve()

        # Security check: ensure path is within base_dir
        if full_path != self.base_dir and self.base_dir not in full_path.parents:
            raise PersistenceError(f"Invalid path: {path} - path traversal detected", path)

        return full_path

    async def save(self, path: str, content: str) -> None:
        """Write to a sibling temp file, then rename it over the target."""
        full_path = self._get_full_path(path)
        tmp_path = full_path.with_name(f".{full_path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await aiofiles.os.makedirs(full_path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, full_path)
        except OSError as e:
            logger.error(f"Error saving file {path}: {e}")
            try:
                await aiofiles.os.remove(tmp_path)
            except OSError:
                pass
            raise PersistenceError(f"Failed to save {path}: {e}", path) from e

    async def load(self, path: str) -> Optional[str]:
        """Load content from local filesystem."""
        full_path = self._get_full_path(path)
        try:
            async with aiofiles.open(full_path, 'r', encoding='utf-8', errors='replace') as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Error loading file {path}: {e}")
            raise PersistenceError(f"Failed to load {path}: {e}", path) from e

    async def exists(self, path: str) -> bool:
        """Check if file exists."""
        try:
            full_path = self._get_full_path(path)
        except PersistenceError:
            return False
        return await aiofiles.os.path.isfile(full_path)

    async def append(self, path: str, content: str) -> None:
        """Append content to a file in a single write."""
        full_path = self._get_full_path(path)
        try:
            await aiofiles.os.makedirs(full_path.parent, exist_ok=True)
            async with aiofiles.open(full_path, 'a', encoding='utf-8', newline='\n') as f:
                await f.write(content)
                await f.flush()
        except OSError as e:
            logger.error(f"Error appending to file {path}: {e}")
            raise PersistenceError(f"Failed to append to {path}: {e}", path) from e
