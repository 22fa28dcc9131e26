"""
Per-component registry of outstanding scheduled continuations.

Responsibilities:
- Schedule continuations on behalf of one component
- Forget a continuation once it has fired
- Cancel everything still outstanding on teardown

Non-responsibilities:
- NO decisions about what to schedule next
- NO retry logic

Every Generator / Receiver / Collector owns one registry and routes ALL of
its scheduling through it, so stop() can guarantee that no continuation
(next-frame trigger, in-flight paced fragment chain, uplink tick) runs
after teardown.
"""

from __future__ import annotations

import itertools
from typing import Any

from scheduling.base import Callback, Scheduler, TimerHandle


class PendingTimers:
    """
    Outstanding-continuation tracker for a single component instance.

    Lifecycle:
    1. Component calls call_later(...) instead of scheduler.call_later(...)
    2a. Timer fires -> entry removed, callback runs
    2b. Component stops -> cancel_all() cancels every outstanding entry

    After close() the registry refuses new continuations, so a callback
    racing with teardown cannot resurrect the component.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._handles: dict[int, TimerHandle] = {}
        self._ids = itertools.count()
        self._closed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def call_later(self, delay_us: int, callback: Callback, *args: Any) -> TimerHandle | None:
        """
        Schedule callback(*args) after `delay_us` and track it.

        Returns None (schedules nothing) once the registry is closed.
        """
        if self._closed:
            return None

        timer_id = next(self._ids)

        def _fire() -> None:
            self._handles.pop(timer_id, None)
            callback(*args)

        handle = self._scheduler.call_later(delay_us, _fire)
        self._handles[timer_id] = handle
        return handle

    def cancel_all(self) -> int:
        """
        Cancel and forget every outstanding continuation.

        Returns the number of continuations cancelled.
        """
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            handle.cancel()
        return len(handles)

    def close(self) -> int:
        """Cancel everything and refuse further scheduling. Idempotent."""
        self._closed = True
        return self.cancel_all()

    def reopen(self) -> None:
        """Allow scheduling again after close() (component restart)."""
        self._closed = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._handles)

    @property
    def closed(self) -> bool:
        return self._closed
