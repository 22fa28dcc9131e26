"""
Simulated one-direction point-to-point link.

Stands in for the network collaborator during scenario runs:
- fixed one-way propagation delay
- optional serialization rate (FIFO: a packet waits for the previous one
  to finish transmitting)
- optional Bernoulli loss on datagrams (seeded, reproducible)

Two delivery flavors:
- datagram: every send() is delivered as one notification (or lost)
- stream: bytes are delivered reliably and in order, re-cut into
  fixed-size segments, so segment boundaries do not line up with the
  sender's records. Writes made at the same instant are coalesced before
  segmentation.

Non-responsibilities:
- NO retransmission, congestion control or queue limits
"""

from __future__ import annotations

import random
from typing import Any, Callable

from config import LinkConfig
from constants import US_PER_S
from scheduling.base import Scheduler
from scheduling.pending import PendingTimers

DeliverFn = Callable[[bytes], Any]


class SimulatedLink:
    """
    Link between one sender and one receiver notification callback.
    """

    def __init__(
        self,
        *,
        config: LinkConfig,
        scheduler: Scheduler,
        stream: bool = False,
        name: str = "link",
    ) -> None:
        self._config = config
        self._scheduler = scheduler
        self._stream = stream
        self._name = name
        self._rng = random.Random(config.seed)
        self._timers = PendingTimers(scheduler)
        self._deliver: DeliverFn | None = None

        self._busy_until_us = 0
        self._outbox = bytearray()
        self._flush_pending = False

        self.packets_sent = 0
        self.packets_dropped = 0
        self.deliveries = 0
        self.bytes_delivered = 0

    def connect(self, deliver: DeliverFn) -> None:
        """Attach the receive notification of the far end."""
        self._deliver = deliver

    def close(self) -> int:
        """Drop everything in flight. Returns the number of deliveries cancelled."""
        self._outbox.clear()
        self._flush_pending = False
        return self._timers.close()

    @property
    def is_stream(self) -> bool:
        return self._stream

    def in_flight(self) -> int:
        return len(self._timers)

    # ------------------------------------------------------------------
    # Send primitive
    # ------------------------------------------------------------------

    def send(self, data: bytes) -> None:
        """Accept one outbound datagram or stream write."""
        if self._timers.closed:
            return
        self.packets_sent += 1

        if self._stream:
            self._outbox.extend(data)
            if not self._flush_pending:
                self._flush_pending = True
                self._timers.call_later(0, self._flush_stream)
            return

        if self._config.loss_rate > 0.0 and self._rng.random() < self._config.loss_rate:
            self.packets_dropped += 1
            return

        self._transmit(bytes(data))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _flush_stream(self) -> None:
        self._flush_pending = False
        segment_bytes = self._config.stream_segment_bytes
        data = bytes(self._outbox)
        self._outbox.clear()
        for offset in range(0, len(data), segment_bytes):
            self._transmit(data[offset : offset + segment_bytes])

    def _serialization_us(self, size: int) -> int:
        rate_bps = self._config.rate_bps
        if rate_bps == 0:
            return 0
        # ceil(size * 8 bits / rate) in microseconds
        return -(-size * 8 * US_PER_S // rate_bps)

    def _transmit(self, data: bytes) -> None:
        now_us = self._scheduler.now_us()
        start_us = max(now_us, self._busy_until_us)
        self._busy_until_us = start_us + self._serialization_us(len(data))
        arrival_us = self._busy_until_us + self._config.delay_us
        self._timers.call_later(arrival_us - now_us, self._arrive, data)

    def _arrive(self, data: bytes) -> None:
        if self._deliver is None:
            return
        self.deliveries += 1
        self.bytes_delivered += len(data)
        self._deliver(data)
