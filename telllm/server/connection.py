"""
Connection Handler - drives the text protocol for one accepted socket.

The protocol is a small state machine:

    GREETING --greeted--> AWAITING
    AWAITING --empty line / command / chat--> AWAITING
    AWAITING --/quit, EOF, socket error, idle timeout--> CLOSING
    CLOSING  --cleanup done--> CLOSED

Chat lines make two independent side effects: the LLM round trip and the
transcript append. A failed or slow transcript write never suppresses the
reply, and an LLM failure never reaches the transcript.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Optional

from ..config import Settings
from ..core.logging_config import LoggerAdapter, truncate_large_data
from ..core.transcript_store import TranscriptStore
from ..errors import ClientIOError, LLMError, LLMUnavailableError, PersistenceError
from ..llm import LLMClient
from ..models import ChatLogEntry, Role, Session
from .commands import dispatch_command, is_command
from .formatting import to_wire, welcome_banner, wrap_text

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    GREETING = "greeting"
    AWAITING = "awaiting"
    CLOSING = "closing"
    CLOSED = "closed"


class Event(Enum):
    GREETED = "greeted"
    EMPTY_LINE = "empty_line"
    COMMAND = "command"
    CHAT = "chat"
    QUIT = "quit"
    DISCONNECTED = "disconnected"
    CLEANED_UP = "cleaned_up"


_TRANSITIONS = {
    (ConnectionState.GREETING, Event.GREETED): ConnectionState.AWAITING,
    (ConnectionState.AWAITING, Event.EMPTY_LINE): ConnectionState.AWAITING,
    (ConnectionState.AWAITING, Event.COMMAND): ConnectionState.AWAITING,
    (ConnectionState.AWAITING, Event.CHAT): ConnectionState.AWAITING,
    (ConnectionState.AWAITING, Event.QUIT): ConnectionState.CLOSING,
    (ConnectionState.CLOSING, Event.CLEANED_UP): ConnectionState.CLOSED,
}


def transition(state: ConnectionState, event: Event) -> ConnectionState:
    """
    Next state for ``event`` in ``state``.

    A disconnect moves any live state to CLOSING; CLOSED absorbs everything.
    """
    if state is ConnectionState.CLOSED:
        return state
    if event is Event.DISCONNECTED:
        return ConnectionState.CLOSING if state is not ConnectionState.CLOSING else state
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise ValueError(f"Invalid event {event.value} in state {state.value}") from None


def _describe_llm_error(error: LLMError) -> str:
    if isinstance(error, LLMUnavailableError):
        return "the AI backend is not reachable"
    return "the AI backend sent a reply I could not understand"


class ConnectionHandler:
    """Runs one client's session from greeting to close."""

    APOLOGY = "AI: Sorry, I encountered an error: {reason}. Please try again."

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        client_key: str,
        store: TranscriptStore,
        llm: LLMClient,
        settings: Settings,
        peer: str = "",
    ):
        self.reader = reader
        self.writer = writer
        self.store = store
        self.llm = llm
        self.settings = settings
        self.session = Session(client_key=client_key)
        self.state = ConnectionState.GREETING
        self._reading: Optional[asyncio.Task] = None
        self.log = LoggerAdapter(logger, {"client": client_key, "peer": peer or client_key})

    @property
    def client_key(self) -> str:
        return self.session.client_key

    async def run(self) -> None:
        """Drive the state machine until the connection is closed."""
        self.log.info("Connection opened")
        try:
            while self.state is ConnectionState.GREETING or self.state is ConnectionState.AWAITING:
                if self.state is ConnectionState.GREETING:
                    event = await self._greet()
                else:
                    event = await self._await_line()
                self.state = transition(self.state, event)
        except ClientIOError as e:
            self.log.info(f"Client I/O ended the session: {e}")
            self.state = transition(self.state, Event.DISCONNECTED)
        except asyncio.CancelledError:
            self.log.info("Connection task cancelled")
            self.state = transition(self.state, Event.DISCONNECTED)
            await self._close()
            raise
        except Exception:
            self.log.exception("Unexpected error in connection handler")
            self.state = transition(self.state, Event.DISCONNECTED)
        await self._close()

    # -- states -----------------------------------------------------------

    async def _greet(self) -> Event:
        try:
            summary = await self.store.load_summary(self.client_key)
            self.session.display_name = summary.name
        except PersistenceError as e:
            self.log.warning(f"Could not load summary: {e}")

        await self._persist(
            "session start",
            self.store.append_exchange(
                self.client_key,
                self.session.started_at.date(),
                [ChatLogEntry.session_start(self.session.started_at)],
            ),
        )
        await self._persist("last_seen", self.store.touch_last_seen(self.client_key))

        greeting = welcome_banner()
        if self.session.display_name:
            greeting += f"\n\nWelcome back, {self.session.display_name}!"
        await self._send_lines(greeting)
        await self._prompt()
        return Event.GREETED

    async def _await_line(self) -> Event:
        line = await self._read_line()
        if line is None:
            self.log.info("Client closed the connection")
            return Event.DISCONNECTED
        if not line:
            await self._prompt()
            return Event.EMPTY_LINE
        if is_command(line):
            return await self._handle_command(line)
        return await self._handle_chat(line)

    async def _handle_command(self, line: str) -> Event:
        result = dispatch_command(line, self.session)
        if result.persist_name is not None:
            self.log.info(f"Name set to: {result.persist_name}")
            await self._persist("name", self.store.set_name(self.client_key, result.persist_name))
        elif result.command == "/clear":
            self.log.info("Conversation cleared")

        await self._send_lines(result.response)
        if result.close:
            return Event.QUIT
        await self._prompt()
        return Event.COMMAND

    async def _handle_chat(self, line: str) -> Event:
        user_message = self.session.add_message(Role.USER, line)
        self.log.debug(f"User: {truncate_large_data(line)}")

        if self.settings.thinking_indicator:
            await self._send_raw("AI: (thinking...)\r")

        try:
            reply = await self._complete_while_connected()
        except LLMError as e:
            # The failed turn leaves no trace in history or the transcript
            self._drop_turn(user_message)
            self.log.warning(f"LLM error: {e}")
            await self._send_lines(self.APOLOGY.format(reason=_describe_llm_error(e)))
            await self._prompt()
            return Event.CHAT
        if reply is None:
            self._drop_turn(user_message)
            self.log.info("Client left while waiting for the LLM; reply discarded")
            return Event.DISCONNECTED

        assistant_message = self.session.add_message(Role.ASSISTANT, reply)
        await self._persist(
            "exchange",
            self.store.append_exchange(
                self.client_key,
                user_message.timestamp.date(),
                [ChatLogEntry.from_message(user_message), ChatLogEntry.from_message(assistant_message)],
            ),
        )
        await self._send_lines("\n".join(wrap_text(reply, self.settings.wrap_width, prefix="AI: ")))
        await self._prompt()
        return Event.CHAT

    async def _complete_while_connected(self) -> Optional[str]:
        """
        Ask the LLM for the next reply while watching the socket.

        Returns None, with the LLM call cancelled, when the client closes the
        connection or the socket fails first. A line the client sends in the
        meantime is kept for the next read.
        """
        completion = asyncio.ensure_future(
            self.llm.complete(self.settings.system_prompt, self.session.history)
        )
        reading = self._next_line()
        try:
            await asyncio.wait({completion, reading}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            completion.cancel()
            raise
        if reading.done() and (reading.exception() is not None or reading.result() is None):
            if reading.exception() is not None:
                self.log.info(f"Client I/O ended the session: {reading.exception()}")
            if completion.done():
                completion.exception()
            else:
                completion.cancel()
            return None
        return await completion

    def _drop_turn(self, user_message) -> None:
        if self.session.history and self.session.history[-1] is user_message:
            self.session.history.pop()

    async def _close(self) -> None:
        if self.state is ConnectionState.CLOSED:
            return
        if self._reading is not None and not self._reading.done():
            self._reading.cancel()
        ended_at = self.session.end()
        await self._persist(
            "session end",
            self.store.append_exchange(
                self.client_key, ended_at.date(), [ChatLogEntry.session_end(ended_at)]
            ),
        )
        await self._persist("last_seen", self.store.touch_last_seen(self.client_key))

        try:
            self.writer.close()
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass
        self.state = transition(self.state, Event.CLEANED_UP)
        self.log.info("Connection closed")

    # -- persistence ------------------------------------------------------

    async def _persist(self, what: str, write: Awaitable) -> bool:
        """
        Wait for a transcript write, but no longer than persistence_timeout.

        A write that outlives the deadline keeps running (and keeps its lease)
        in the background; only this connection stops waiting for it.
        """
        task = asyncio.ensure_future(write)
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self.settings.persistence_timeout)
            return True
        except asyncio.TimeoutError:
            self.log.warning(f"Timed out persisting {what}; continuing without it")
            task.add_done_callback(self._report_late_failure)
        except PersistenceError as e:
            self.log.error(f"Failed to persist {what}: {e}")
        return False

    def _report_late_failure(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.log.error(f"Background transcript write failed: {error}")

    # -- socket I/O -------------------------------------------------------

    def _next_line(self) -> asyncio.Task:
        """The pending socket read, started if none is in flight."""
        if self._reading is None:
            self._reading = asyncio.ensure_future(self._readline())
        return self._reading

    async def _read_line(self) -> Optional[str]:
        """Read one line; None on EOF."""
        reading = self._next_line()
        try:
            if self.settings.idle_timeout:
                line = await asyncio.wait_for(asyncio.shield(reading), timeout=self.settings.idle_timeout)
            else:
                line = await reading
        except asyncio.TimeoutError:
            raise ClientIOError("idle timeout") from None
        self._reading = None
        return line

    async def _readline(self) -> Optional[str]:
        try:
            raw = await self.reader.readline()
        except (asyncio.LimitOverrunError, ValueError) as e:
            raise ClientIOError(f"line too long: {e}") from e
        except (ConnectionError, OSError) as e:
            raise ClientIOError(f"read failed: {e}") from e
        if not raw:
            return None
        return raw.decode("utf-8", errors="replace").strip()

    async def _send_lines(self, text: str) -> None:
        await self._send_raw(text.rstrip("\r\n") + "\n")

    async def _prompt(self) -> None:
        if self.settings.input_prompt:
            await self._send_raw(self.settings.input_prompt)

    async def _send_raw(self, text: str) -> None:
        try:
            self.writer.write(to_wire(text))
            await self.writer.drain()
        except (ConnectionError, OSError) as e:
            raise ClientIOError(f"write failed: {e}") from e
