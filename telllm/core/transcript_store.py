"""
Transcript Store - Append-only daily chat logs plus a per-client summary.

Layout under the storage root:

    <client_key>/chats/<dd-mm-yy>.txt   append-only daily log
    <client_key>/summary.txt            name / last_seen record

Every write for a client key happens while holding that key's lease, so two
connections from the same address never interleave output in one file and
read-modify-write updates of the summary never lose fields.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from ..models import ChatLogEntry, SummaryRecord
from ..storage import StorageInterface
from .leases import LeaseRegistry

logger = logging.getLogger(__name__)

LAST_SEEN_FORMAT = "%d-%m-%y %H:%M:%S"
CHAT_DATE_FORMAT = "%d-%m-%y"


def client_dirname(client_key: str) -> str:
    """Directory name for a client key; ':' is not portable in file names."""
    return client_key.replace(":", "-")


def parse_summary(content: Optional[str]) -> SummaryRecord:
    """
    Parse a summary file into a SummaryRecord.

    Lines look like ``key: value``. Anything that doesn't parse is ignored,
    so a missing or damaged file yields an empty record.
    """
    record = SummaryRecord()
    if not content:
        return record

    for line in content.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip().lower()
        value = value.strip()
        if key == "name":
            record.name = value or None
        elif key == "last_seen":
            try:
                record.last_seen = datetime.strptime(value, LAST_SEEN_FORMAT)
            except ValueError:
                logger.warning(f"Ignoring unparseable last_seen value: {value!r}")
        elif key:
            record.extra[key] = value
    return record


def render_summary(record: SummaryRecord) -> str:
    lines: List[str] = []
    if record.name:
        lines.append(f"name: {record.name}")
    if record.last_seen:
        lines.append(f"last_seen: {record.last_seen.strftime(LAST_SEEN_FORMAT)}")
    for key, value in record.extra.items():
        lines.append(f"{key}: {value}")
    return "\n".join(lines) + "\n"


class TranscriptStore:
    """
    Durable per-client chat logs and summaries.

    All public methods raise PersistenceError on I/O failure; callers decide
    whether that is fatal (for the session engine it never is).
    """

    def __init__(self, storage: StorageInterface, leases: Optional[LeaseRegistry] = None):
        """
        Initialize the transcript store.

        Args:
            storage: Storage implementation to use
            leases: Lease registry shared by every connection in the process
        """
        self.storage = storage
        self.leases = leases or LeaseRegistry()

    def _chat_log_path(self, client_key: str, day: date) -> str:
        return f"{client_dirname(client_key)}/chats/{day.strftime(CHAT_DATE_FORMAT)}.txt"

    def _summary_path(self, client_key: str) -> str:
        return f"{client_dirname(client_key)}/summary.txt"

    async def append_exchange(
        self,
        client_key: str,
        day: date,
        entries: Iterable[ChatLogEntry],
    ) -> None:
        """
        Append entries to the client's log for ``day`` as one block.

        Args:
            client_key: Normalized client address
            day: Calendar date selecting the daily file
            entries: A user/assistant pair, or a bare session marker
        """
        block = "".join(entry.render() + "\n" for entry in entries)
        if not block:
            return

        path = self._chat_log_path(client_key, day)
        async with self.leases.lease(client_key):
            await self.storage.append(path, block)

    async def read_chat_log(self, client_key: str, day: date) -> Optional[str]:
        """Return the raw daily log, or None if nothing was logged that day."""
        return await self.storage.load(self._chat_log_path(client_key, day))

    async def load_summary(self, client_key: str) -> SummaryRecord:
        """Load the client's summary, or an empty record if there is none yet."""
        content = await self.storage.load(self._summary_path(client_key))
        return parse_summary(content)

    async def save_summary(self, client_key: str, record: SummaryRecord) -> None:
        """Overwrite the client's summary with ``record``."""
        async with self.leases.lease(client_key):
            await self.storage.save(self._summary_path(client_key), render_summary(record))

    async def set_name(self, client_key: str, name: str) -> SummaryRecord:
        """Record a new display name and bump last_seen."""
        return await self._update_summary(client_key, name=name)

    async def touch_last_seen(self, client_key: str) -> SummaryRecord:
        """Bump last_seen, creating the summary on first contact."""
        return await self._update_summary(client_key)

    async def _update_summary(self, client_key: str, name: Optional[str] = None) -> SummaryRecord:
        path = self._summary_path(client_key)
        async with self.leases.lease(client_key):
            record = parse_summary(await self.storage.load(path))
            if name is not None:
                record.name = name
            record.last_seen = datetime.now().replace(microsecond=0)
            await self.storage.save(path, render_summary(record))
        return record
