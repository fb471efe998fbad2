"""Per-file mutual exclusion for chunk appends."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Tuple

from common.logging_config import get_logger

logger = get_logger(__name__)


class UploadLockRegistry:
    """
    Hands out one asyncio.Lock per (share_id, file_id) pair.

    Entries are reference counted and dropped once no caller holds or
    waits on them, so the registry only grows with concurrent uploads.
    """

    def __init__(self):
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._waiters: Dict[Tuple[str, str], int] = {}

    @asynccontextmanager
    async def hold(self, share_id: str, file_id: str) -> AsyncIterator[None]:
        key = (share_id, file_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_held(self, share_id: str, file_id: str) -> bool:
        """True while any caller holds or waits for the pair's lock."""
        return (share_id, file_id) in self._locks

    def count(self) -> int:
        return len(self._locks)


upload_locks = UploadLockRegistry()
