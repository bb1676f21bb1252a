"""
Error hierarchy for the telllm server.

Only BootstrapError is fatal to the process. Everything else is contained
within a single connection or a single exchange.
"""


class TelllmError(Exception):
    """Base class for all telllm errors."""


class BootstrapError(TelllmError):
    """The listener could not bind or accept connections."""


class ClientIOError(TelllmError):
    """Reading from or writing to a client socket failed."""


class PersistenceError(TelllmError):
    """A chat log or summary write (or read) failed."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class LLMError(TelllmError):
    """The LLM backend did not produce a usable answer."""


class LLMUnavailableError(LLMError):
    """Connectivity, timeout or HTTP status failure talking to the backend."""


class LLMProtocolError(LLMError):
    """The backend answered, but not with a chat completion we understand."""
