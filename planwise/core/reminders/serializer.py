"""
Per-entity serialization of reconciliation work.

Work for one key runs one at a time in arrival order; different keys run
concurrently. asyncio.Lock wakes waiters in FIFO order, which gives the
per-key ordering. Locks are reference counted and dropped once idle.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class PerEntitySerializer:
    """Keyed mutual exclusion for coroutines on one event loop."""

    def __init__(self) -> None:
        self._locks: Dict[Hashable, _KeyLock] = {}

    async def run_exclusive(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Await fn() while holding the lock for key.

        fn is a zero-argument callable returning an awaitable, so nothing
        starts before the lock is held. Exceptions from fn propagate and
        release the key for the next waiter.
        """
        entry = self._locks.get(key)
        if entry is None:
            entry = _KeyLock()
            self._locks[key] = entry
        entry.users += 1
        try:
            async with entry.lock:
                logger.debug("Running exclusive work for %s", key)
                return await fn()
        finally:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(key) is entry:
                del self._locks[key]

    def in_flight_keys(self) -> List[Any]:
        """Keys with running or queued work."""
        return list(self._locks.keys())
