# backend/traffic/reassembly.py
"""
Bounded reassembly buffer for stream-delivered downlink records.

A stream transport delivers bytes with no record boundaries. Records are
fixed size (FrameHeader + fixed payload), so boundaries are recovered by
counting bytes from the start of the stream.

Rules:
- Appending a segment that would exceed capacity discards the WHOLE
  buffer and the segment (data loss is accepted; not fatal)
- Only complete records are ever decoded
- Trailing partial records stay buffered for the next segment
- Deterministic, synchronous behavior
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from protocol.headers import Buffer, FrameHeader, decode_frame_header


@dataclass
class OverflowCounters:
    """
    Overflow counters for observability.
    """
    events: int = 0
    bytes_discarded: int = 0


class StreamReassemblyBuffer:
    """
    Bounded byte accumulator yielding one FrameHeader per complete record.
    """

    def __init__(self, *, capacity_bytes: int, record_bytes: int) -> None:
        if record_bytes <= 0:
            raise ValueError("record_bytes must be > 0")
        if capacity_bytes < record_bytes:
            raise ValueError("capacity_bytes must hold at least one record")

        self._capacity = capacity_bytes
        self._record_bytes = record_bytes
        self._buf = bytearray()
        self.overflows: OverflowCounters = OverflowCounters()
        self.records_parsed = 0

    # -------------------------
    # Core operations
    # -------------------------

    def append(self, data: Buffer) -> bool:
        """
        Append one inbound segment.

        Returns:
            True if appended
            False if the buffer overflowed (buffer AND segment discarded)
        """
        incoming = len(data)
        if len(self._buf) + incoming > self._capacity:
            self.overflows.events += 1
            self.overflows.bytes_discarded += len(self._buf) + incoming
            self._buf.clear()
            return False

        self._buf.extend(data)
        return True

    def drain_records(self) -> Iterator[FrameHeader]:
        """
        Yield the header of every complete buffered record, front first.

        Each record is consumed once its header has been handed out; the
        consumed bytes are removed from the front of the buffer when
        iteration ends (or is abandoned).
        """
        consumed = 0
        try:
            while len(self._buf) - consumed >= self._record_bytes:
                header = decode_frame_header(self._buf, consumed)
                consumed += self._record_bytes
                self.records_parsed += 1
                yield header
        finally:
            del self._buf[:consumed]

    def clear(self) -> None:
        """
        Drop all buffered bytes without counting an overflow.

        Used on receiver teardown.
        """
        self._buf.clear()

    # -------------------------
    # Introspection helpers
    # -------------------------

    def __len__(self) -> int:
        return len(self._buf)

    def is_empty(self) -> bool:
        return not self._buf

    @property
    def capacity_bytes(self) -> int:
        return self._capacity

    @property
    def record_bytes(self) -> int:
        return self._record_bytes

    def snapshot(self) -> dict[str, int]:
        """
        Lightweight snapshot for logging / metrics.
        """
        return {
            "buffered_bytes": len(self._buf),
            "capacity_bytes": self._capacity,
            "record_bytes": self._record_bytes,
            "records_parsed": self.records_parsed,
            "overflow_events": self.overflows.events,
            "overflow_bytes_discarded": self.overflows.bytes_discarded,
        }
