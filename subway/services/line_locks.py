"""Per-line locks serializing topology mutations within one process."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class LineLockRegistry:
    """Hands out one ``asyncio.Lock`` per line id."""

    def __init__(self) -> None:
        self._locks: Dict[int, asyncio.Lock] = {}

    def get(self, line_id: int) -> asyncio.Lock:
        lock = self._locks.get(line_id)
        if lock is None:
            lock = self._locks[line_id] = asyncio.Lock()
        return lock

    def discard(self, line_id: int) -> None:
        """Forget the lock of a deleted line unless someone holds it."""
        lock = self._locks.get(line_id)
        if lock is not None and not lock.locked():
            del self._locks[line_id]

    @asynccontextmanager
    async def hold(self, line_id: int) -> AsyncIterator[None]:
        async with self.get(line_id):
            yield

    def __len__(self) -> int:
        return len(self._locks)


line_locks = LineLockRegistry()
