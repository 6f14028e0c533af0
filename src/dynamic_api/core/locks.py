"""Per-key asyncio locks."""

import asyncio
from weakref import WeakValueDictionary


class KeyedLocks:
    """Hands out one asyncio.Lock per key.

    A lock stays registered only while some task holds or awaits it,
    so the registry does not grow with the number of keys ever seen.

    Usage:
        tenant_locks = KeyedLocks()
        async with tenant_locks(tenant_id):
            ...
    """

    def __init__(self) -> None:
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    def __call__(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock
