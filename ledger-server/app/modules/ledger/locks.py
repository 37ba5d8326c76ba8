"""Per-account mutual exclusion."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class AccountLockRegistry:
    """Hands out one ``asyncio.Lock`` per account id.

    A lock lives only while some task holds or waits for it, so the registry
    does not grow with the number of accounts ever touched.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, account_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(account_id, asyncio.Lock())
        self._users[account_id] = self._users.get(account_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._users[account_id] - 1
            if remaining:
                self._users[account_id] = remaining
            else:
                del self._users[account_id]
                del self._locks[account_id]

    def is_locked(self, account_id: str) -> bool:
        lock = self._locks.get(account_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
