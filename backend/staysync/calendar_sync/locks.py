"""Per-property serialization of check-then-insert sequences."""

import asyncio
import uuid
import weakref


class PropertyLockRegistry:
    """Hands out one ``asyncio.Lock`` per property.

    Entries are weakly referenced: a lock lives only while some coroutine
    holds it or waits on it, so the registry never outgrows the number of
    properties with requests in flight.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, property_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(property_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[property_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
