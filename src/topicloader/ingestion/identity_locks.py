"""
Per-topic mutual exclusion.

Two documents of the same topic processed at the same time could interleave
their lookup and write, letting an older snapshot overwrite a newer one.
Holding the topic lock across lookup and write rules that out.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

logger = logging.getLogger(__name__)


class TopicLockRegistry:
    """Locks keyed by topic id, created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._locks: Dict[int, asyncio.Lock] = {}
        self._waiters: Dict[int, int] = {}
        self.contended = 0

    @asynccontextmanager
    async def hold(self, topic_id: int) -> AsyncIterator[None]:
        lock = self._locks.get(topic_id)
        if lock is None:
            lock = self._locks[topic_id] = asyncio.Lock()

        self._waiters[topic_id] = self._waiters.get(topic_id, 0) + 1
        if lock.locked():
            self.contended += 1
            logger.debug(f"Topic {topic_id} is already being processed, waiting")

        try:
            async with lock:
                yield
        finally:
            self._waiters[topic_id] -= 1
            if self._waiters[topic_id] == 0:
                del self._waiters[topic_id]
                del self._locks[topic_id]

    def __len__(self) -> int:
        return len(self._locks)
