"""
Discrete-event scheduler (simulated time).

Responsibilities:
- Own the simulated clock
- Keep pending callbacks in a heap ordered by (due time, insertion order)
- Advance time by jumping straight to the next due callback

Ordering guarantees:
- Callbacks run in non-decreasing time order
- Callbacks due at the identical instant run in the order scheduled
- Cancelled callbacks are skipped, never run
"""

from __future__ import annotations

import heapq
import itertools
from typing import Any

from scheduling.base import Callback, Scheduler, TimerHandle


class SimulatedTimer(TimerHandle):
    """Heap entry for one pending callback."""

    __slots__ = ("when_us", "_callback", "_args", "_cancelled")

    def __init__(self, when_us: int, callback: Callback, args: tuple[Any, ...]) -> None:
        self.when_us = when_us
        self._callback: Callback | None = callback
        self._args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        # Drop references so torn-down components can be collected
        self._callback = None
        self._args = ()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self) -> None:
        callback, args = self._callback, self._args
        self._callback = None
        self._args = ()
        if callback is not None:
            callback(*args)


class SimulatedScheduler(Scheduler):
    """
    Single-queue discrete-event engine.

    Usage:
        sched = SimulatedScheduler()
        sched.call_later(1_000_000, generator.start)
        sched.call_later(10_000_000, generator.stop)
        sched.run(until_us=20_000_000)
    """

    def __init__(self, *, start_us: int = 0) -> None:
        if start_us < 0:
            raise ValueError("start_us must be >= 0")
        self._now_us = start_us
        self._queue: list[tuple[int, int, SimulatedTimer]] = []
        self._seq = itertools.count()
        self._stopping = False
        self._executed = 0

    # ------------------------------------------------------------------
    # Scheduler contract
    # ------------------------------------------------------------------

    def now_us(self) -> int:
        return self._now_us

    def call_later(self, delay_us: int, callback: Callback, *args: Any) -> SimulatedTimer:
        if delay_us < 0:
            raise ValueError(f"delay_us must be >= 0, got {delay_us}")
        return self.call_at(self._now_us + delay_us, callback, *args)

    def call_at(self, when_us: int, callback: Callback, *args: Any) -> SimulatedTimer:
        """Invoke callback(*args) at absolute time `when_us`."""
        if when_us < self._now_us:
            raise ValueError(f"cannot schedule in the past ({when_us} < {self._now_us})")
        timer = SimulatedTimer(when_us, callback, args)
        heapq.heappush(self._queue, (when_us, next(self._seq), timer))
        return timer

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, *, until_us: int | None = None) -> int:
        """
        Execute callbacks in time order.

        Args:
            until_us: Run callbacks due at or before this time, then set
                the clock to it. None runs until the queue drains or
                stop() is called.

        Returns:
            Number of callbacks executed during this call.
        """
        self._stopping = False
        executed = 0

        while self._queue and not self._stopping:
            when_us, _, timer = self._queue[0]
            if until_us is not None and when_us > until_us:
                break
            heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now_us = when_us
            timer._run()  # pylint: disable=protected-access
            executed += 1

        if until_us is not None and not self._stopping and until_us > self._now_us:
            self._now_us = until_us

        self._executed += executed
        return executed

    def stop(self) -> None:
        """Make run() return after the callback currently executing."""
        self._stopping = True

    def pending_count(self) -> int:
        """Scheduled callbacks that have not run and are not cancelled."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    @property
    def executed_count(self) -> int:
        return self._executed
