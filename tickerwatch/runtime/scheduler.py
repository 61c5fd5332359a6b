"""Fixed-rate polling of one view on the asyncio loop."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Protocol, Set

LOGGER = logging.getLogger(__name__)


class Refreshable(Protocol):
    name: str

    async def refresh(self) -> None: ...

    def close(self) -> None: ...


class PollingScheduler:
    """Launch ``view.refresh()`` every ``interval_sec`` seconds.

    Ticks do not wait for the previous cycle: a slow response overlaps the
    next request and whichever finishes last wins. The first tick fires
    immediately and serves as the initial load.
    """

    def __init__(
        self,
        view: Refreshable,
        interval_sec: float,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self._view = view
        self._interval = interval_sec
        self._logger = logger or LOGGER
        self._loop_task: asyncio.Task[None] | None = None
        self._cycles: Set[asyncio.Task[None]] = set()
        self.cycles_started = 0
        self.cycles_failed = 0

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def in_flight(self) -> int:
        return len(self._cycles)

    def start(self) -> None:
        if self.running:
            return
        self._loop_task = asyncio.create_task(self._run(), name=f"poll:{self._view.name}")
        self._logger.info("Polling started", extra={"view": self._view.name, "interval_sec": self._interval})

    async def stop(self) -> None:
        """Cancel the tick loop and every in-flight cycle, then close the view."""

        if self._loop_task is not None:
            self._loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None
        cycles = list(self._cycles)
        for task in cycles:
            task.cancel()
        if cycles:
            await asyncio.gather(*cycles, return_exceptions=True)
        self._cycles.clear()
        self._view.close()
        self._logger.info("Polling stopped", extra={"view": self._view.name, "cycles": self.cycles_started})

    async def __aenter__(self) -> "PollingScheduler":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            self._launch_cycle()
            next_tick += self._interval
            delay = next_tick - loop.time()
            if delay < 0:
                # Loop stalled past one or more ticks; resume from now without a burst.
                next_tick = loop.time()
                delay = 0.0
            await asyncio.sleep(delay)

    def _launch_cycle(self) -> None:
        self.cycles_started += 1
        task = asyncio.create_task(self._view.refresh())
        self._cycles.add(task)
        task.add_done_callback(self._on_cycle_done)

    def _on_cycle_done(self, task: asyncio.Task[None]) -> None:
        self._cycles.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.cycles_failed += 1
            self._logger.error(
                "Refresh cycle failed",
                exc_info=exc,
                extra={"view": self._view.name},
            )


__all__ = ["PollingScheduler", "Refreshable"]
