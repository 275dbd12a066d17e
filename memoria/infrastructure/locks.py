"""Keyed Locks - serialize read-check-write sequences per entity id.

Invariants:
    - One asyncio.Lock per key while anyone holds or waits on it
    - The entry is dropped when the last holder or waiter releases, so the
      registry stays as small as the set of contended keys
    - Scope is the process: multi-process deployments also rely on the row
      lock (SELECT ... FOR UPDATE) taken inside the guarded section

Design Decisions:
    - Module-level registry: single-process uvicorn is the deployment unit
    - Reference count instead of weak references: a waiter must find the same
      lock the current holder has, even between acquire attempts
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class KeyedLocks:
    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


group_locks = KeyedLocks()
