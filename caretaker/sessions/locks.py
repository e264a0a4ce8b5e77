"""Per-sender serialization of message handling."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class SenderLocks:
    """One asyncio.Lock per sender, dropped once nobody holds or awaits it.

    Session and window state are read-modify-write; holding the sender's lock
    for the whole dispatch means two messages from the same phone are handled
    one after the other while different senders still run concurrently.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, sender: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(sender, asyncio.Lock())
        self._holders[sender] = self._holders.get(sender, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[sender] -= 1
            if self._holders[sender] == 0:
                del self._holders[sender]
                del self._locks[sender]

    def __len__(self) -> int:
        return len(self._locks)
