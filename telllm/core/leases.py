"""
Per-client write leases.

One asyncio.Lock per client key, created on first use and kept for the life
of the process. Writers for unrelated clients never contend.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class LeaseRegistry:
    """Maps client keys to the lock guarding their transcript files."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        # No await between lookup and insert, so this is race-free on one loop
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def lease(self, key: str) -> AsyncIterator[None]:
        """Hold the write lease for ``key`` for the duration of the block."""
        lock = self._lock_for(key)
        async with lock:
            yield

    def is_held(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
