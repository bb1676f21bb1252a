"""Server module - listener, per-connection protocol handler and commands."""

from .commands import CommandResult, dispatch_command
from .connection import ConnectionHandler, ConnectionState, transition
from .listener import ChatServer, client_key_from_peername

__all__ = [
    'CommandResult',
    'dispatch_command',
    'ConnectionHandler',
    'ConnectionState',
    'transition',
    'ChatServer',
    'client_key_from_peername',
]
