"""
Keyed asyncio locks that serialise work on one tournament, account or request
"""

import asyncio
from collections import defaultdict
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Dict


class KeyedLock:
    """Registry of per-key locks; entries are dropped once nobody holds or waits on them."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._users: Dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        self._users[key] += 1
        lock = self._locks[key]
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @asynccontextmanager
    async def hold_many(self, *keys: str) -> AsyncIterator[None]:
        """Acquire several keys in sorted order so two callers never deadlock."""
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                await stack.enter_async_context(self.hold(key))
            yield

    def __len__(self) -> int:
        return len(self._locks)


def tournament_key(tournament_id) -> str:
    return f"tournament:{tournament_id}"


def account_key(account_id) -> str:
    return f"account:{account_id}"


def request_key(request_id) -> str:
    return f"request:{request_id}"


# Global lock registry shared by all services in this process
locks = KeyedLock()
