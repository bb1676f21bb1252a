"""Storage module - provides interface and implementations for transcript persistence."""

from .interface import StorageInterface
from .local_storage import LocalStorage

__all__ = ['StorageInterface', 'LocalStorage']
