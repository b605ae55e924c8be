"""
Per-player locks.

Read-modify-write of a player record (settling a match) must not interleave
with another update for the same username. Different usernames never
share a lock. A username's lock is dropped once nobody holds or waits on it.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache


class PlayerLockRegistry:
    """Hands out one asyncio.Lock per username while it is in use."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, username: str) -> AsyncIterator[None]:
        lock = self._locks.get(username)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[username] = lock
        self._users[username] = self._users.get(username, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[username] -= 1
            if not self._users[username]:
                del self._users[username]
                del self._locks[username]

    def __len__(self) -> int:
        return len(self._locks)


@lru_cache(maxsize=1)
def get_player_locks() -> PlayerLockRegistry:
    """Process-wide lock registry."""
    return PlayerLockRegistry()
