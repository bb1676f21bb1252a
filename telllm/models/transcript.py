"""
Transcript Models - Entries appended to the daily chat log.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .session import Message, Role


class EntryKind(str, Enum):
    SESSION_START = "session_start"
    MESSAGE = "message"
    SESSION_END = "session_end"


class ChatLogEntry(BaseModel):
    """A single line (or marker) in a client's daily log."""
    kind: EntryKind
    timestamp: datetime
    role: Optional[Role] = None
    text: str = ""

    @staticmethod
    def session_start(at: datetime) -> "ChatLogEntry":
        return ChatLogEntry(kind=EntryKind.SESSION_START, timestamp=at)

    @staticmethod
    def session_end(at: datetime) -> "ChatLogEntry":
        return ChatLogEntry(kind=EntryKind.SESSION_END, timestamp=at)

    @staticmethod
    def from_message(message: Message) -> "ChatLogEntry":
        return ChatLogEntry(
            kind=EntryKind.MESSAGE,
            timestamp=message.timestamp,
            role=message.role,
            text=message.text,
        )

    def render(self) -> str:
        """Render the entry as it appears in the log file, without trailing newline."""
        if self.kind == EntryKind.SESSION_START:
            return f"--- Session started at {self.timestamp.strftime('%d-%m-%Y %H:%M:%S')} ---"
        if self.kind == EntryKind.SESSION_END:
            return f"--- Session ended at {self.timestamp.strftime('%d-%m-%Y %H:%M:%S')} ---"
        label = "USER" if self.role == Role.USER else "AI"
        return f"[{self.timestamp.strftime('%H:%M:%S')}] {label}: {self.text}"
