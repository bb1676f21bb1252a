"""
Listener - accepts connections and runs one ConnectionHandler per socket.
"""

import asyncio
import ipaddress
import logging
from typing import Any, Optional

from ..config import Settings
from ..core.transcript_store import TranscriptStore
from ..errors import BootstrapError
from ..llm import LLMClient
from .connection import ConnectionHandler

logger = logging.getLogger(__name__)


def client_key_from_peername(peername: Any) -> str:
    """
    Normalize a socket peer address into a ClientKey.

    The port is dropped, IPv6 scope ids are removed and IPv4-mapped IPv6
    addresses collapse to plain IPv4, so a client keeps the same key
    whichever socket family the listener accepted it on.
    """
    if not peername:
        return "unknown"
    host = peername[0] if isinstance(peername, (tuple, list)) else str(peername)
    try:
        address = ipaddress.ip_address(str(host).split("%", 1)[0])
    except ValueError:
        return str(host)
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return str(address)


class ChatServer:
    """TCP listener for the chat gateway."""

    def __init__(self, settings: Settings, store: TranscriptStore, llm: LLMClient):
        self.settings = settings
        self.store = store
        self.llm = llm
        self._server: Optional[asyncio.AbstractServer] = None
        self.active_connections = 0

    async def start(self) -> asyncio.AbstractServer:
        """Bind and start accepting. Raises BootstrapError if binding fails."""
        try:
            self._server = await asyncio.start_server(
                self._handle_client,
                host=self.settings.host,
                port=self.settings.port,
                limit=self.settings.max_line_length,
            )
        except OSError as e:
            raise BootstrapError(
                f"Cannot listen on {self.settings.host}:{self.settings.port}: {e}"
            ) from e

        for sock in self._server.sockets:
            logger.info(f"Listening on {sock.getsockname()}")
        return self._server

    @property
    def port(self) -> int:
        """Port actually bound (useful when configured with port 0)."""
        if self._server is None or not self._server.sockets:
            raise RuntimeError("Server is not started")
        return self._server.sockets[0].getsockname()[1]

    async def serve_forever(self) -> None:
        """Accept connections until cancelled."""
        server = self._server or await self.start()
        async with server:
            try:
                await server.serve_forever()
            except OSError as e:
                raise BootstrapError(f"Accept loop failed: {e}") from e

    async def close(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peername = writer.get_extra_info("peername")
        client_key = client_key_from_peername(peername)
        peer = f"{peername[0]}:{peername[1]}" if peername else client_key

        self.active_connections += 1
        logger.info(f"New connection from {peer} ({self.active_connections} active)")
        try:
            handler = ConnectionHandler(
                reader, writer, client_key, self.store, self.llm, self.settings, peer=peer
            )
            await handler.run()
        finally:
            self.active_connections -= 1
            logger.info(f"Connection closed: {peer} ({self.active_connections} active)")
