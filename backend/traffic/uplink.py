"""
Uplink traffic: fixed-rate small packets (IMU / control) and their collector.

- UplinkGenerator emits one packet every interval, each carrying a
  ControlHeader stamped with the current clock. No fragmentation, no
  frame grouping.
- UplinkCollector measures the one-way delay of every packet it receives.
"""

from __future__ import annotations

from typing import Callable

from config import UplinkConfig
from observability.delay_stats import DelayStats
from observability.logger import log_component_event
from protocol.headers import Buffer, ControlHeader, build_control_packet, decode_control_header
from scheduling.base import Scheduler, elapsed_ms
from scheduling.pending import PendingTimers

SendFn = Callable[[bytes], None]


class UplinkGenerator:
    """Periodic uplink producer."""

    def __init__(
        self,
        *,
        config: UplinkConfig,
        scheduler: Scheduler,
        send: SendFn,
        name: str = "uplink",
    ) -> None:
        self._config = config
        self._scheduler = scheduler
        self._send = send
        self._name = name
        self._timers = PendingTimers(scheduler)
        self._running = False

        self.packets_sent = 0

    def start(self) -> None:
        """Send the first packet now, then one per interval."""
        if self._running:
            return
        self._running = True
        self._timers.reopen()
        self._send_one()

    def stop(self) -> None:
        """Cancel the pending tick. Idempotent."""
        if not self._running:
            return
        self._running = False
        cancelled = self._timers.close()
        log_component_event(
            "UPLINK_STOPPED",
            ts_ms=self._scheduler.now_ms(),
            component=self._name,
            packets_sent=self.packets_sent,
            cancelled_continuations=cancelled,
        )

    @property
    def running(self) -> bool:
        return self._running

    def pending_continuations(self) -> int:
        return len(self._timers)

    def _send_one(self) -> None:
        if not self._running:
            return
        packet = build_control_packet(
            ControlHeader(send_ts_ms=self._scheduler.wire_ts_ms()),
            payload_bytes=self._config.packet_size_bytes,
        )
        self._send(packet)
        self.packets_sent += 1
        self._timers.call_later(self._config.interval_us, self._send_one)


class UplinkCollector:
    """
    Uplink consumer: one delay sample per received packet.
    """

    def __init__(self, *, clock: Scheduler, name: str = "ul-imu") -> None:
        self._clock = clock
        self._name = name
        self._running = False
        self.delay_stats = DelayStats()

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def packets_received(self) -> int:
        return len(self.delay_stats)

    def on_packet(self, data: Buffer) -> int | None:
        """
        Record the one-way delay of one uplink packet.

        Returns the delay (ms), or None when the collector is stopped.

        Raises:
            InvalidHeaderLength if the packet is shorter than a ControlHeader.
        """
        if not self._running:
            return None
        header = decode_control_header(data)
        delay_ms = elapsed_ms(self._clock.now_ms(), header.send_ts_ms)
        self.delay_stats.add(delay_ms)
        return delay_ms
