"""
Per-aggregate and per-folder locking.

Every mutating operation holds the lock of each aggregate it touches for
its whole read-validate-write sequence. Operations on a checkout folder
and its items also hold the folder lock, taken before any aggregate lock.
Locks are in-process only.
"""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import AsyncExitStack, asynccontextmanager


class KeyedLock:
    """A family of asyncio locks addressed by key."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}

    def _lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *keys: Hashable) -> AsyncIterator[None]:
        """
        Hold the locks of all keys.

        Keys are acquired in sorted order so two operations over the same
        pair of aggregates cannot deadlock. None and duplicates are ignored.

        Usage:
            async with locks.hold(source_id, target_id):
                ...
        """
        ordered = sorted({k for k in keys if k is not None})  # type: ignore[type-var]
        async with AsyncExitStack() as stack:
            for key in ordered:
                await stack.enter_async_context(self._lock_for(key))
            yield


# Global lock registries
_inventory_locks: KeyedLock | None = None
_folder_locks: KeyedLock | None = None


def get_inventory_locks() -> KeyedLock:
    """Get or create the process-wide aggregate lock registry."""
    global _inventory_locks
    if _inventory_locks is None:
        _inventory_locks = KeyedLock()
    return _inventory_locks


def get_folder_locks() -> KeyedLock:
    """Get or create the process-wide checkout folder lock registry."""
    global _folder_locks
    if _folder_locks is None:
        _folder_locks = KeyedLock()
    return _folder_locks


def reset_inventory_locks() -> None:
    """Drop both lock registries (for testing)."""
    global _inventory_locks, _folder_locks
    _inventory_locks = None
    _folder_locks = None
