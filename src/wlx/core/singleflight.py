"""At most one in-flight acquisition per key."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Collapse concurrent calls for the same key onto one task.

    Every caller that arrives while a task for its key is running awaits
    that same task and sees the same result or exception. Waiters are
    shielded, so cancelling one waiter does not cancel the shared work.
    """

    def __init__(self) -> None:
        self._tasks: dict[Hashable, asyncio.Task[T]] = {}
        self._lock = asyncio.Lock()

    def in_flight(self, key: Hashable) -> asyncio.Task[T] | None:
        task = self._tasks.get(key)
        if task is None or task.done():
            return None
        return task

    async def do(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            task = self.in_flight(key)
            if task is None:
                task = asyncio.create_task(fn())
                self._tasks[key] = task
                task.add_done_callback(lambda t, k=key: self._forget(k, t))
        return await asyncio.shield(task)

    async def wait(self, key: Hashable) -> None:
        """Wait for the current task for key, if any, ignoring its outcome."""
        task = self.in_flight(key)
        if task is not None:
            await asyncio.wait([task])

    def cancel(self, key: Hashable) -> asyncio.Task[T] | None:
        task = self.in_flight(key)
        if task is not None:
            task.cancel()
        return task

    def _forget(self, key: Hashable, task: asyncio.Task[T]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        # mark the exception retrieved
        if not task.cancelled():
            task.exception()
