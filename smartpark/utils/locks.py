# smartpark/utils/locks.py
"""
Per-space write locks.
Every state transition on a space (user request or expiry sweep) runs
under the lock for that space number, so read-check-write is serialized.
A space's lock lives only while someone holds or waits on it.
"""

import asyncio
from contextlib import asynccontextmanager


class SpaceLocks:
    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}
        # Serializes whole-registry replacement against itself only
        self.registry = asyncio.Lock()

    def __len__(self):
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, number: str):
        lock = self._locks.setdefault(number, asyncio.Lock())
        self._users[number] = self._users.get(number, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[number] -= 1
            if not self._users[number]:
                del self._users[number]
                del self._locks[number]


def locks_for(db) -> SpaceLocks:
    """Locks shared by every session created from the same Database."""
    return db.info["space_locks"]
