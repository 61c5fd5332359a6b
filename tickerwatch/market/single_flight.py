"""Collapse concurrent requests for the same key into one in-flight task."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class SingleFlight(Generic[K, T]):
    """Share one running coroutine between every caller asking for ``key``.

    The shared task is shielded: a caller being cancelled does not cancel the
    fetch for the others. Only :meth:`cancel_all` does.
    """

    def __init__(self) -> None:
        self._inflight: Dict[K, asyncio.Task[T]] = {}

    def in_flight(self, key: K) -> bool:
        task = self._inflight.get(key)
        return task is not None and not task.done()

    async def do(self, key: K, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda finished, key=key: self._forget(key, finished))
        return await asyncio.shield(task)

    def cancel_all(self) -> None:
        for task in self._inflight.values():
            task.cancel()
        self._inflight.clear()

    def _forget(self, key: K, task: asyncio.Task[T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark the exception retrieved; callers that awaited already saw it.
            task.exception()


__all__ = ["SingleFlight"]
