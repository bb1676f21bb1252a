"""
Loopback client used by the connection tests.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

from telllm.server import ChatServer

BANNER_END = "chat with the AI."
TIMEOUT = 5.0


class LineClient:
    """Minimal raw-socket client speaking the gateway's line protocol."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self.buffer = ""

    @classmethod
    async def connect(cls, port: int) -> "LineClient":
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        return cls(reader, writer)

    async def send(self, line: str) -> None:
        self.writer.write((line + "\r\n").encode("utf-8"))
        await self.writer.drain()

    async def read_until(self, marker: str) -> str:
        """Return everything received up to and including ``marker``."""
        async def _read() -> str:
            while marker not in self.buffer:
                chunk = await self.reader.read(4096)
                if not chunk:
                    raise ConnectionError(f"EOF before {marker!r}; got {self.buffer!r}")
                self.buffer += chunk.decode("utf-8")
            head, _, tail = self.buffer.partition(marker)
            self.buffer = tail
            return head + marker

        return await asyncio.wait_for(_read(), timeout=TIMEOUT)

    async def read_to_eof(self) -> str:
        try:
            data = await asyncio.wait_for(self.reader.read(), timeout=TIMEOUT)
        except ConnectionResetError:
            # Server closed with our unread input still queued
            data = b""
        rest = self.buffer + data.decode("utf-8")
        self.buffer = ""
        return rest

    async def greeting(self) -> str:
        """Read the banner plus anything sent with it (e.g. a welcome-back line)."""
        text = await self.read_until(BANNER_END)
        try:
            while True:
                chunk = await asyncio.wait_for(self.reader.read(4096), timeout=0.2)
                if not chunk:
                    break
                self.buffer += chunk.decode("utf-8")
        except asyncio.TimeoutError:
            pass
        text += self.buffer
        self.buffer = ""
        return text

    async def close(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass


@asynccontextmanager
async def running_server(settings, store, llm) -> AsyncIterator[ChatServer]:
    server = ChatServer(settings, store, llm)
    await server.start()
    try:
        yield server
    finally:
        await server.close()


def mock_http_client(response=None, post_side_effect=None):
    """Patch target for httpx.AsyncClient used as an async context manager."""
    mock_instance = AsyncMock()
    if post_side_effect is not None:
        mock_instance.post.side_effect = post_side_effect
    else:
        mock_instance.post.return_value = response
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    return mock_instance


def ok_response(body):
    mock_response = MagicMock()
    mock_response.json.return_value = body
    mock_response.raise_for_status = MagicMock()
    return mock_response

