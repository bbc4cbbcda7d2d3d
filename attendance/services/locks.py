import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator
from weakref import WeakValueDictionary

from attendance.core.config import settings
from attendance.core.errors import ConflictError
from attendance.core.logging import logger


class EventLockRegistry:
    """
    Per-event asyncio locks serialising attendance mutations inside one process.

    Locks are created on demand and dropped once nobody holds a reference,
    so the registry does not grow with the number of events ever touched.
    Actions on different events never wait for each other.
    """

    def __init__(self, timeout: float):
        self.timeout = timeout
        self._locks: "WeakValueDictionary[str, asyncio.Lock]" = WeakValueDictionary()

    def _lock_for(self, event_id) -> asyncio.Lock:
        key = str(event_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, event_id) -> AsyncIterator[None]:
        lock = self._lock_for(event_id)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out waiting for attendance lock of event {event_id}")
            raise ConflictError("Another attendance change for this event is in progress, retry the action")
        try:
            yield
        finally:
            lock.release()


event_locks = EventLockRegistry(timeout=settings.EVENT_LOCK_TIMEOUT_SECONDS)
