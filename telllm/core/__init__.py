"""Core module - transcript persistence, leases and logging setup."""

from .leases import LeaseRegistry
from .transcript_store import TranscriptStore

__all__ = ['LeaseRegistry', 'TranscriptStore']
