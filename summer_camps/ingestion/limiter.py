"""
Counting admission limiter for asyncio tasks.

Bounds how many coroutines may be past ``acquire()`` at once. Freed slots are
handed to waiters in arrival order, so a burst of page tasks is admitted
first-come first-served.

Prefer the scoped form so a failing task cannot leak its slot::

    async with limiter:
        await call_service(...)
"""

from __future__ import annotations

import asyncio
from collections import deque


class ConcurrencyLimiter:
    """At most ``limit`` holders at any instant; FIFO hand-off on release."""

    def __init__(self, limit: int = 10) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self._limit = limit
        self._available = limit
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def available(self) -> int:
        return self._available

    @property
    def in_flight(self) -> int:
        return self._limit - self._available

    @property
    def waiting(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    async def acquire(self) -> None:
        """Return once a slot is held, suspending while none is free."""
        if self._available > 0 and not self.waiting:
            self._available -= 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The slot was handed over just before cancellation: pass it on.
                self.release()
            else:
                self._discard(waiter)
            raise

    def release(self) -> None:
        """Give the held slot to the oldest waiter, or return it to the pool."""
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return

        if self._available >= self._limit:
            raise RuntimeError("release() called more times than acquire()")
        self._available += 1

    def _discard(self, waiter: asyncio.Future[None]) -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass

    async def __aenter__(self) -> ConcurrencyLimiter:
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return (
            f"<ConcurrencyLimiter limit={self._limit} in_flight={self.in_flight} "
            f"waiting={self.waiting}>"
        )
