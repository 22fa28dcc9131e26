"""
Clock / scheduler contract.

This module defines the *interface only*. Traffic components consume it;
they never assume a concrete engine.

Key invariants:
- Time is an integer count of microseconds and never decreases.
- Callbacks run one at a time (single-threaded cooperative model); a
  callback never runs concurrently with another callback.
- Callbacks due at the same instant run in the order they were scheduled.
- "Suspension" is always expressed as scheduling a continuation; no
  callback blocks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

from constants import U32_MODULUS, US_PER_MS

Callback = Callable[..., None]


class TimerHandle(ABC):
    """
    Handle to one scheduled continuation.
    """

    @abstractmethod
    def cancel(self) -> None:
        """
        Prevent the callback from running.

        Idempotent; a no-op once the callback has already run.
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        raise NotImplementedError


class Scheduler(ABC):
    """
    Monotonic clock plus delayed-callback primitive.

    Implementations:
    - SimulatedScheduler: discrete-event engine, simulated time
    - AsyncioScheduler: asyncio event loop, wall-clock time
    """

    @abstractmethod
    def now_us(self) -> int:
        """Current time in microseconds."""
        raise NotImplementedError

    @abstractmethod
    def call_later(self, delay_us: int, callback: Callback, *args: Any) -> TimerHandle:
        """
        Invoke callback(*args) `delay_us` microseconds from now.

        Raises:
            ValueError if delay_us is negative.
        """
        raise NotImplementedError

    def now_ms(self) -> int:
        """Current time in whole milliseconds (truncated)."""
        return self.now_us() // US_PER_MS

    def wire_ts_ms(self) -> int:
        """Current time as a 32-bit wire timestamp (ms, wraps at 2^32)."""
        return self.now_ms() % U32_MODULUS


def elapsed_ms(now_ms: int, send_ts_ms: int) -> int:
    """
    Milliseconds from a 32-bit wire timestamp to `now_ms`.

    Computed modulo 2^32 so a timestamp that wrapped between send and
    receive still yields the true elapsed time.
    """
    return (now_ms - send_ts_ms) % U32_MODULUS
