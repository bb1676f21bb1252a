"""
Session Models - In-memory conversation state and the durable per-client summary.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Author of a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One turn of the conversation."""
    role: Role
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)


class SummaryRecord(BaseModel):
    """Durable per-client record: chosen name and last time we saw them."""
    name: Optional[str] = None
    last_seen: Optional[datetime] = None
    # Keys we don't interpret are carried through rewrites untouched
    extra: Dict[str, str] = Field(default_factory=dict)


class Session(BaseModel):
    """
    Conversation state for one live connection.

    History always starts empty, even when the client has reconnected and
    persisted logs exist for it.
    """
    client_key: str
    display_name: Optional[str] = None
    history: List[Message] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None

    def add_message(self, role: Role, text: str, timestamp: Optional[datetime] = None) -> Message:
        message = Message(role=role, text=text, timestamp=timestamp or datetime.now())
        self.history.append(message)
        return message

    def clear_history(self) -> None:
        self.history.clear()

    def end(self) -> datetime:
        if self.ended_at is None:
            self.ended_at = datetime.now()
        return self.ended_at
