"""Models module."""

from .session import Role, Message, SummaryRecord, Session
from .transcript import EntryKind, ChatLogEntry

__all__ = [
    'Role', 'Message', 'SummaryRecord', 'Session',
    'EntryKind', 'ChatLogEntry',
]
