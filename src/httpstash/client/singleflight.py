"""Per-key coalescing of concurrent fetches.

Without coordination, two coroutines that miss the cache for the same key
both hit the network and both write the result. :class:`SingleFlight`
lets the first caller start the fetch and every later caller for the same
key await that same task. The key is released as soon as the task
finishes, so the next miss after that starts a fresh fetch.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Hashable, TypeVar

T = TypeVar("T")


class SingleFlight:
    """Map of key to the in-progress :class:`asyncio.Task` fetching it.

    Waiters are shielded from each other: cancelling one caller does not
    cancel the shared task the others are waiting on.

    Example::

        flight = SingleFlight()
        user = await flight.do("users_1", lambda: fetch_user(1))
    """

    def __init__(self) -> None:
        self._calls: dict[Hashable, asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def in_flight(self, key: Hashable) -> bool:
        return key in self._calls

    async def do(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn()`` once per key among concurrent callers and return its result.

        Exceptions raised by the shared call propagate to every waiter.
        """
        task = self._calls.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._calls[key] = task
            task.add_done_callback(lambda t: self._release(key, t))
        return await asyncio.shield(task)

    def _release(self, key: Hashable, task: asyncio.Task[Any]) -> None:
        if self._calls.get(key) is task:
            del self._calls[key]
        # Mark the exception retrieved even if every waiter was cancelled.
        if not task.cancelled():
            task.exception()
