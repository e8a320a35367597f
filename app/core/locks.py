import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager

from fastapi import Request


class KeyedLock:
    """One asyncio.Lock per key, created on first use and dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._holders: dict[Hashable, int] = {}

    @asynccontextmanager
    async def acquire(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


def get_tournament_locks(request: Request) -> KeyedLock:
    return request.app.state.tournament_locks
