from __future__ import annotations

import asyncio
import logging
from collections import deque

logger = logging.getLogger(__name__)


class WriteLock:
    """First-in-first-out asyncio mutex.

    ``acquire`` parks callers on a queue of futures and ``release`` hands the
    lock straight to the oldest waiter, so ownership never becomes free in
    between and a newly arriving task cannot jump the queue.
    """

    def __init__(self) -> None:
        self._locked = False
        self._waiters: deque[asyncio.Future[None]] = deque()

    def locked(self) -> bool:
        return self._locked

    @property
    def waiters(self) -> int:
        return sum(1 for fut in self._waiters if not fut.done())

    async def acquire(self) -> None:
        if not self._locked:
            self._locked = True
            return

        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        logger.debug("write lock busy, %d waiter(s) queued", len(self._waiters))
        try:
            await fut
        except asyncio.CancelledError:
            # Already granted: pass ownership on instead of leaking it.
            if fut.done() and not fut.cancelled():
                self.release()
            raise

    def release(self) -> None:
        if not self._locked:
            raise RuntimeError("release() called on an unlocked WriteLock")
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                fut.set_result(None)
                return
        self._locked = False

    async def __aenter__(self) -> "WriteLock":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
