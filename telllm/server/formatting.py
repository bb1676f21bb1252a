"""
Outbound text: banner, help, line wrapping and telnet line endings.
"""

import textwrap
from typing import List

LINE_ENDING = "\r\n"

COMMANDS = [
    ("/name <your name>", "Set your name"),
    ("/clear", "Clear conversation history"),
    ("/help", "Show this help"),
    ("/quit", "Disconnect"),
]

_TITLE = r"""
 _       _ _ _
| |_ ___| | | |_ __ ___
| __/ _ \ | | | '_ ` _ \
| ||  __/ | | | | | | | |
 \__\___|_|_|_|_| |_| |_|

   Telnet LLM Chat Server
"""


def help_text() -> str:
    width = max(len(usage) for usage, _ in COMMANDS)
    lines = ["Commands:"]
    lines.extend(f"  {usage.ljust(width)}  - {description}" for usage, description in COMMANDS)
    return "\n".join(lines)


def welcome_banner() -> str:
    return (
        f"{_TITLE}\n{help_text()}\n\n"
        "Type your message and press Enter to chat with the AI."
    )


def wrap_text(text: str, width: int, prefix: str = "") -> List[str]:
    """
    Word-wrap ``text`` to ``width`` columns, keeping its own line breaks.

    ``prefix`` is put in front of the first line; continuation lines are
    indented to line up with it. A width of 0 or less disables wrapping.
    """
    indent = " " * len(prefix)
    paragraphs = text.splitlines() or [""]
    lines: List[str] = []
    for i, paragraph in enumerate(paragraphs):
        first_indent = prefix if i == 0 else indent
        if not paragraph.strip():
            lines.append(first_indent.rstrip())
            continue
        if width <= 0:
            lines.append(first_indent + paragraph)
            continue
        lines.extend(textwrap.wrap(
            paragraph,
            width=width,
            initial_indent=first_indent,
            subsequent_indent=indent,
            break_long_words=True,
            break_on_hyphens=False,
        ))
    return lines


def to_wire(text: str) -> bytes:
    """Encode text for the socket, normalizing every line break to CRLF."""
    normalized = text.replace("\r\n", "\n").replace("\n", LINE_ENDING)
    return normalized.encode("utf-8")
