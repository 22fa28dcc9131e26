"""
Downlink frame generator.

Produces one logical frame every frame interval, split into
ceil(frame_size / fragment_payload) fragments, each carrying a FrameHeader.

Release disciplines:
- BURST: every fragment is emitted at once, stamped with one timestamp;
  the next frame is scheduled exactly frame_interval later (fixed cadence,
  emission assumed instantaneous).
- PACED: fragment i+1 is emitted pacing_interval after fragment i; all
  fragments carry fragment 0's timestamp. After the last fragment the
  next frame is scheduled after
      frame_interval - fragment_count * pacing_interval
  or after MIN_RESCHEDULE_DELAY_US when pacing overran the interval.
  The cadence is anchored to the completion of each frame, so drift
  accumulates under sustained overrun. This is intentional.

All continuations go through a PendingTimers registry: stop() cancels the
next-frame trigger AND any paced fragment chain in flight.
"""

from __future__ import annotations

from typing import Callable

from config import GeneratorConfig
from constants import MIN_RESCHEDULE_DELAY_US, U32_MODULUS
from observability.logger import log_component_event
from protocol.headers import FrameHeader, build_fragment
from scheduling.base import Scheduler
from scheduling.pending import PendingTimers
from traffic.enums.release_mode import ReleaseMode

SendFn = Callable[[bytes], None]


class FrameGenerator:
    """
    Periodic, frame-based downlink producer.

    Driven purely by timer callbacks; owns its frame counter and pending
    continuations exclusively.
    """

    def __init__(
        self,
        *,
        config: GeneratorConfig,
        scheduler: Scheduler,
        send: SendFn,
        name: str = "downlink",
    ) -> None:
        self._config = config
        self._scheduler = scheduler
        self._send = send
        self._name = name
        self._timers = PendingTimers(scheduler)

        self._frame_counter = 0
        self._running = False

        self.frames_generated = 0
        self.fragments_sent = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Produce the first frame now and keep the cadence going."""
        if self._running:
            return
        self._running = True
        self._timers.reopen()

        log_component_event(
            "GENERATOR_STARTED",
            ts_ms=self._scheduler.now_ms(),
            component=self._name,
            release_mode=self._config.release_mode.value,
            fragment_count=self._config.fragment_count,
            frame_interval_us=self._config.frame_interval_us,
        )
        self._produce_frame()

    def stop(self) -> None:
        """
        Stop generating and cancel every pending continuation.

        Idempotent.
        """
        if not self._running:
            return
        self._running = False
        cancelled = self._timers.close()

        log_component_event(
            "GENERATOR_STOPPED",
            ts_ms=self._scheduler.now_ms(),
            component=self._name,
            frames_generated=self.frames_generated,
            fragments_sent=self.fragments_sent,
            cancelled_continuations=cancelled,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def next_frame_id(self) -> int:
        return self._frame_counter

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    def pending_continuations(self) -> int:
        return len(self._timers)

    # ------------------------------------------------------------------
    # Frame production
    # ------------------------------------------------------------------

    def _produce_frame(self) -> None:
        if not self._running:
            return

        fragment_count = self._config.fragment_count
        frame_id = self._frame_counter
        self._frame_counter = (self._frame_counter + 1) % U32_MODULUS
        self.frames_generated += 1

        send_ts_ms = self._scheduler.wire_ts_ms()

        if self._config.release_mode is ReleaseMode.BURST:
            for index in range(fragment_count):
                self._emit(frame_id, index, fragment_count, send_ts_ms)
            self._timers.call_later(self._config.frame_interval_us, self._produce_frame)
            return

        self._emit_paced(frame_id, fragment_count, 0, send_ts_ms)

    def _emit_paced(
        self,
        frame_id: int,
        fragment_count: int,
        index: int,
        send_ts_ms: int,
    ) -> None:
        if not self._running:
            return

        self._emit(frame_id, index, fragment_count, send_ts_ms)

        if index + 1 < fragment_count:
            self._timers.call_later(
                self._config.pacing_interval_us,
                self._emit_paced,
                frame_id,
                fragment_count,
                index + 1,
                send_ts_ms,
            )
            return

        remaining_us = self.next_frame_delay_us()
        self._timers.call_later(remaining_us, self._produce_frame)

    def next_frame_delay_us(self) -> int:
        """
        Delay between a frame's last paced fragment and the next frame.
        """
        remaining_us = (
            self._config.frame_interval_us
            - self._config.fragment_count * self._config.pacing_interval_us
        )
        if remaining_us > 0:
            return remaining_us
        return MIN_RESCHEDULE_DELAY_US

    def _emit(self, frame_id: int, index: int, fragment_count: int, send_ts_ms: int) -> None:
        packet = build_fragment(
            FrameHeader(
                frame_id=frame_id,
                fragment_index=index,
                fragment_count=fragment_count,
                send_ts_ms=send_ts_ms,
            ),
            payload_bytes=self._config.fragment_payload_bytes,
        )
        self._send(packet)
        self.fragments_sent += 1
