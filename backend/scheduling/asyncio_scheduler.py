"""
Wall-clock scheduler on top of an asyncio event loop.

Drives the same traffic components against real time (e.g. when the send
primitive is a real socket). Each continuation is one asyncio task that
sleeps for its delay and then runs the callback; cancelling the handle
cancels the task.

Constraints:
- A callback exception is recorded when its task finishes and re-raised
  from shutdown(); the first one wins.
- Must be constructed inside a running event loop (the clock origin is
  the loop time at construction).
- Callbacks run on the loop thread, one at a time.
"""

from __future__ import annotations

import asyncio
from asyncio import Task
from typing import Any

from constants import US_PER_S
from scheduling.base import Callback, Scheduler, TimerHandle


class AsyncioTimer(TimerHandle):
    """Handle wrapping the task that will run one callback."""

    def __init__(self, task: Task[None]) -> None:
        self._task = task
        self._cancelled = False

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if not self._task.done():
            self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def task(self) -> Task[None]:
        return self._task


class AsyncioScheduler(Scheduler):
    """
    Scheduler contract backed by asyncio timers.

    now_us() is the loop's monotonic time relative to construction.
    """

    def __init__(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._origin_s = self._loop.time()
        self._tasks: set[Task[None]] = set()
        self._errors: list[BaseException] = []

    def now_us(self) -> int:
        return int((self._loop.time() - self._origin_s) * US_PER_S)

    def call_later(self, delay_us: int, callback: Callback, *args: Any) -> AsyncioTimer:
        if delay_us < 0:
            raise ValueError(f"delay_us must be >= 0, got {delay_us}")

        async def _timer_task() -> None:
            try:
                await asyncio.sleep(delay_us / US_PER_S)
            except asyncio.CancelledError:
                # Timer was cancelled - this is normal
                return
            callback(*args)

        task = self._loop.create_task(_timer_task())
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return AsyncioTimer(task)

    def _on_task_done(self, task: Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._errors.append(exc)

    async def sleep_until(self, when_us: int) -> None:
        """Suspend the calling coroutine until the clock reaches `when_us`."""
        remaining_us = when_us - self.now_us()
        if remaining_us > 0:
            await asyncio.sleep(remaining_us / US_PER_S)

    async def shutdown(self) -> None:
        """
        Cancel every outstanding timer task and wait for them to settle.

        Used on teardown so no timer task outlives the run.

        Raises:
            The first exception raised by a timer callback, if any.
        """
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

        if self._errors:
            error = self._errors[0]
            self._errors.clear()
            raise error

    def pending_count(self) -> int:
        return sum(1 for task in self._tasks if not task.done())
