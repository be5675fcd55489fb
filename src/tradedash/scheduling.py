"""Recurring asyncio task with an explicit cancel handle."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class RecurringTask:
    """Launch ``callback`` every ``interval`` seconds until cancelled.

    Each run is started as its own task on a fixed cadence, so a slow run
    does not delay the next one and runs may overlap. ``cancel()`` stops
    future runs but leaves in-flight runs alone; callers that care about late
    completions must check their own state. ``close()`` additionally cancels
    in-flight runs and waits for them.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[object]],
        interval: float,
        *,
        name: str = "recurring-task",
        run_immediately: bool = True,
    ):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.callback = callback
        self.interval = interval
        self.name = name
        self.run_immediately = run_immediately
        self.runs = 0
        self._cancelled = False
        self._loop_task: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[object]] = set()

    @property
    def active(self) -> bool:
        return self._loop_task is not None and not self._cancelled

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def start(self) -> "RecurringTask":
        if self._cancelled:
            raise RuntimeError(f"{self.name} was cancelled and cannot be restarted")
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._run(), name=self.name)
        return self

    async def _run(self) -> None:
        if not self.run_immediately:
            await asyncio.sleep(self.interval)
        while not self._cancelled:
            self._launch()
            await asyncio.sleep(self.interval)

    def _launch(self) -> None:
        self.runs += 1
        task = asyncio.create_task(self.callback(), name=f"{self.name}#{self.runs}")
        self._in_flight.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[object]) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s run failed: %s", self.name, exc, exc_info=exc)

    def cancel(self) -> None:
        self._cancelled = True
        if self._loop_task is not None:
            self._loop_task.cancel()

    async def close(self) -> None:
        self.cancel()
        pending = list(self._in_flight)
        if self._loop_task is not None:
            pending.append(self._loop_task)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
