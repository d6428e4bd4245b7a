"""Fire-and-forget execution of feedback generation units."""

from __future__ import annotations

import asyncio
import functools
import logging
import time
import typing as t

logger = logging.getLogger(__name__)

Unit = t.Callable[[], t.Awaitable[None]]


class FeedbackWorker(object):
    """Runs each unit as its own task on the running event loop.

    At most `max_concurrency` units execute at once; the rest wait their turn
    without blocking whoever dispatched them. Tasks are held until they finish
    so they cannot be garbage-collected mid-flight, and their outcome is only
    ever logged.
    """

    def __init__(self, max_concurrency: int = 4) -> None:
        self.max_concurrency = max_concurrency
        self._tasks: set[asyncio.Task[None]] = set()
        self._semaphores: dict[asyncio.AbstractEventLoop, asyncio.Semaphore] = {}

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def _semaphore(self) -> asyncio.Semaphore:
        # a semaphore belongs to the loop it first waits on
        loop = asyncio.get_running_loop()
        if loop not in self._semaphores:
            self._semaphores = {lp: s for lp, s in self._semaphores.items() if not lp.is_closed()}
            self._semaphores[loop] = asyncio.Semaphore(self.max_concurrency)
        return self._semaphores[loop]

    def dispatch(self, submission_id: str, unit: Unit) -> asyncio.Task[None]:
        """Start `unit` in the background and return immediately.

        Must be called from within a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self._run(unit), name=f"feedback:{submission_id}")
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._finished, submission_id, time.monotonic()))
        logger.debug("dispatched feedback unit", extra={"submission_id": submission_id, "pending": self.pending})
        return task

    async def _run(self, unit: Unit) -> None:
        async with self._semaphore():
            await unit()

    def _finished(self, submission_id: str, started: float, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        extra = {"submission_id": submission_id, "elapsed_ms": round((time.monotonic() - started) * 1000)}
        if task.cancelled():
            logger.warning("feedback unit cancelled", extra=extra)
        elif (exc := task.exception()) is not None:
            logger.error("feedback unit raised", exc_info=exc, extra=extra)
        else:
            logger.info("feedback unit finished", extra=extra)

    async def drain(self) -> None:
        """Wait for every unit dispatched on this loop to finish."""
        loop = asyncio.get_running_loop()
        while tasks := [task for task in self._tasks if task.get_loop() is loop and not task.done()]:
            await asyncio.gather(*tasks, return_exceptions=True)
