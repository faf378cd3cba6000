"""Shared concurrency primitives for the analytics cache.

Provides :class:`KeyedLock`, an ``asyncio.Lock`` per string key.  The cache
coordinator uses it to guarantee that at most one recomputation runs per
feedback collection while recomputations for *different* collections
proceed in parallel.

Locks are reference counted: a key's lock exists only while at least one
coroutine holds or waits for it, so the registry does not grow with the
number of collections ever analysed.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import structlog

from feedback360.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


@dataclass
class _LockEntry:
    """A lock plus the number of coroutines currently holding or awaiting it."""

    lock: asyncio.Lock
    refs: int = 0


class KeyedLock:
    """Per-key mutual exclusion for coroutines running on one event loop.

    Usage::

        locks = KeyedLock()
        async with locks.hold("collection-42"):
            ...  # exclusive for "collection-42" only
    """

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Acquire the lock for *key* for the duration of the ``async with`` block.

        The lock is released on normal exit, on exceptions and on
        cancellation.
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = _LockEntry(lock=asyncio.Lock())
            self._entries[key] = entry
        entry.refs += 1

        try:
            async with entry.lock:
                _logger.debug("keyed_lock_acquired", key=key)
                yield
        finally:
            entry.refs -= 1
            if entry.refs == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    def locked(self, key: str) -> bool:
        """Return ``True`` if some coroutine currently holds the lock for *key*."""
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        """Number of keys with a live lock (held or awaited)."""
        return len(self._entries)
