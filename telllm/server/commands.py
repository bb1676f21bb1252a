"""
In-band command dispatch.

dispatch_command() applies the command to the in-memory session and tells
the caller what else has to happen (persist a name, close the connection).
It performs no I/O and never raises for unknown commands.
"""

from dataclasses import dataclass
from typing import Optional

from ..models import Session
from .formatting import help_text

QUIT_COMMANDS = {"/quit", "/exit", "/q"}
HELP_COMMANDS = {"/help", "/?"}


@dataclass
class CommandResult:
    """Outcome of one command line."""
    response: str
    command: str = ""
    close: bool = False
    persist_name: Optional[str] = None


def is_command(line: str) -> bool:
    return line.startswith("/")


def dispatch_command(line: str, session: Session) -> CommandResult:
    """
    Run one ``/command`` line against ``session``.

    Args:
        line: Stripped input line, starting with '/'
        session: Session to mutate (display name, history)

    Returns:
        CommandResult describing the reply and follow-up actions
    """
    command, _, argument = line.partition(" ")
    argument = argument.strip()

    if command in QUIT_COMMANDS:
        return CommandResult("Goodbye!", command="/quit", close=True)

    if command == "/name":
        if not argument:
            current = session.display_name or "not set"
            return CommandResult(f"Your name: {current}\nUsage: /name <your name>", command="/name")
        session.display_name = argument
        return CommandResult(f"Name set to: {argument}", command="/name", persist_name=argument)

    if command == "/clear":
        session.clear_history()
        return CommandResult("Conversation cleared.", command="/clear")

    if command in HELP_COMMANDS:
        return CommandResult(help_text(), command="/help")

    return CommandResult(f"Unknown command: {command}. Try /help.")
