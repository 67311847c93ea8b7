"""
Account-level nonce coordinator.

Provides a single asyncio.Lock per sender so concurrent writes from the same
account allocate distinct nonces.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict


class NonceCoordinator:
    def __init__(self) -> None:
        # map account -> asyncio.Lock
        self._locks: Dict[str, asyncio.Lock] = {}
        # account -> next nonce we expect to use
        self._next: Dict[str, int] = {}
        # guard for creating locks
        self._guard = asyncio.Lock()

    async def get_lock(self, account: str) -> asyncio.Lock:
        """Return the shared lock for ``account`` (case-insensitive)."""
        key = account.lower()
        async with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[key] = lock
            return lock

    def reserve(self, account: str, chain_nonce: int) -> int:
        """
        Pick the nonce for the next transaction. Must be called while holding
        the account's lock. The chain's pending count wins unless we already
        handed out higher nonces the node has not seen yet.
        """
        key = account.lower()
        nonce = max(chain_nonce, self._next.get(key, 0))
        self._next[key] = nonce + 1
        return nonce

    def release(self, account: str, nonce: int) -> None:
        """Give back a reserved nonce whose transaction never reached the node."""
        key = account.lower()
        if self._next.get(key) == nonce + 1:
            self._next[key] = nonce

    async def allocate(self, account: str, fetch: Callable[[], Awaitable[int]]) -> int:
        lock = await self.get_lock(account)
        async with lock:
            return self.reserve(account, await fetch())
