"""
Frame reassembly receiver.

Responsibilities:
- Accept downlink fragments from ONE ingestion path:
    MESSAGE: one fragment per notification
    STREAM:  arbitrary byte segments, records recovered by a bounded
             StreamReassemblyBuffer
- Track per-frame completion in FrameState records (one shared handler
  for both paths)
- Classify each completed frame as on-time (delay <= deadline) or late
- Count frames that never completed as incomplete at end of run

Invariants:
- A frame is counted once, on its first fragment (any index)
- A frame is classified once, when arrived_count first reaches
  fragment_count; duplicates and stragglers only bump arrived_count
- FrameState records are never removed before end-of-run accounting
- After stop(), notifications are ignored
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from config import ReceiverConfig
from observability.delay_stats import DelayStats
from observability.logger import log_component_event
from protocol.headers import Buffer, FrameHeader, decode_frame_header
from scheduling.base import Scheduler, elapsed_ms
from traffic.enums.ingest_mode import IngestMode
from traffic.reassembly import StreamReassemblyBuffer


class FrameOutcome(str, Enum):
    """
    Timeliness classification of a frame.
    """
    ON_TIME = "on_time"
    LATE = "late"
    INCOMPLETE = "incomplete"


@dataclass
class FrameState:
    """
    Receiver-private completion state of one frame.

    fragment_count / send_ts_ms are copied from the first fragment seen.
    """
    fragment_count: int = 0
    arrived_count: int = 0
    send_ts_ms: int = 0
    counted: bool = False
    completed: bool = False
    outcome: FrameOutcome | None = None


class FrameReceiver:
    """
    Downlink consumer driven by inbound-data notifications.

    Usage (datagram transport):
        receiver = FrameReceiver(config=ReceiverConfig(deadline_ms=50), clock=sched)
        receiver.start()
        link.connect(receiver.on_message)
        ...
        receiver.stop()
        receiver.on_time_frames, receiver.delay_stats.p99()
    """

    def __init__(
        self,
        *,
        config: ReceiverConfig,
        clock: Scheduler,
        name: str = "vr-recv",
    ) -> None:
        self._config = config
        self._clock = clock
        self._name = name

        self._frames: dict[int, FrameState] = {}
        self._stream: StreamReassemblyBuffer | None = None
        if config.ingest_mode is IngestMode.STREAM:
            self._stream = StreamReassemblyBuffer(
                capacity_bytes=config.stream_buffer_capacity_bytes,
                record_bytes=config.stream_record_bytes,
            )

        self._running = False
        self._finalized = False

        self.delay_stats = DelayStats()
        self.total_frames = 0
        self.on_time_frames = 0
        self.late_frames = 0
        self.incomplete_frames = 0
        self.fragments_received = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin accepting notifications."""
        if self._finalized:
            raise RuntimeError(f"{self._name}: cannot restart a stopped receiver")
        self._running = True

    def stop(self) -> None:
        """
        Stop accepting notifications and run end-of-run accounting.

        Every frame that was counted but never completed is counted as
        incomplete exactly once. Idempotent.
        """
        self._running = False
        if self._finalized:
            return
        self._finalized = True

        for state in self._frames.values():
            if state.counted and not state.completed:
                self.incomplete_frames += 1

        if self._stream is not None:
            self._stream.clear()

        log_component_event(
            "RECEIVER_STOPPED",
            ts_ms=self._clock.now_ms(),
            component=self._name,
            total=self.total_frames,
            on_time=self.on_time_frames,
            late=self.late_frames,
            incomplete=self.incomplete_frames,
        )

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Ingestion paths
    # ------------------------------------------------------------------

    def on_message(self, data: Buffer) -> FrameOutcome | None:
        """
        MESSAGE path: one notification carries exactly one fragment.

        Returns the frame's outcome if this fragment completed it.

        Raises:
            ValueError if the receiver is configured for STREAM ingest.
            InvalidHeaderLength if the datagram is shorter than a header.
        """
        self._require_mode(IngestMode.MESSAGE)
        if not self._running:
            return None
        return self._process_fragment(decode_frame_header(data), self._clock.now_ms())

    def on_stream_data(self, data: Buffer) -> int:
        """
        STREAM path: append a segment and process every complete record.

        Returns the number of records processed from the buffer. On
        overflow the buffer is reset, the segment is dropped and 0 is
        returned.

        Raises:
            ValueError if the receiver is configured for MESSAGE ingest.
        """
        self._require_mode(IngestMode.STREAM)
        if not self._running:
            return 0

        assert self._stream is not None
        buffered = len(self._stream)
        if not self._stream.append(data):
            log_component_event(
                "STREAM_BUFFER_OVERFLOW",
                ts_ms=self._clock.now_ms(),
                component=self._name,
                buffered_bytes=buffered,
                incoming_bytes=len(data),
                capacity_bytes=self._stream.capacity_bytes,
            )
            return 0

        now_ms = self._clock.now_ms()
        processed = 0
        for header in self._stream.drain_records():
            self._process_fragment(header, now_ms)
            processed += 1
        return processed

    def _require_mode(self, mode: IngestMode) -> None:
        if self._config.ingest_mode is not mode:
            raise ValueError(
                f"{self._name}: configured for {self._config.ingest_mode.value} "
                f"ingest, got {mode.value} data"
            )

    # ------------------------------------------------------------------
    # Shared per-fragment handler
    # ------------------------------------------------------------------

    def _process_fragment(self, header: FrameHeader, now_ms: int) -> FrameOutcome | None:
        self.fragments_received += 1

        state = self._frames.get(header.frame_id)
        if state is None:
            state = FrameState()
            self._frames[header.frame_id] = state

        if not state.counted:
            state.counted = True
            state.fragment_count = header.fragment_count
            state.send_ts_ms = header.send_ts_ms
            self.total_frames += 1

        state.arrived_count += 1

        if state.completed or state.arrived_count != state.fragment_count:
            return None

        delay_ms = elapsed_ms(now_ms, state.send_ts_ms)
        self.delay_stats.add(delay_ms)
        state.completed = True

        if delay_ms <= self._config.deadline_ms:
            self.on_time_frames += 1
            state.outcome = FrameOutcome.ON_TIME
        else:
            self.late_frames += 1
            state.outcome = FrameOutcome.LATE
        return state.outcome

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def on_time_ratio(self) -> float:
        """on_time / total, 0.0 when no frame was seen."""
        if self.total_frames == 0:
            return 0.0
        return self.on_time_frames / self.total_frames

    def frame_state(self, frame_id: int) -> FrameState | None:
        return self._frames.get(frame_id)

    def frame_outcome(self, frame_id: int) -> FrameOutcome | None:
        """
        Classification of a frame so far.

        None for unseen frames and for frames still in progress before
        stop(); INCOMPLETE for unfinished frames after stop().
        """
        state = self._frames.get(frame_id)
        if state is None:
            return None
        if not state.completed:
            return FrameOutcome.INCOMPLETE if self._finalized else None
        return state.outcome

    @property
    def stream_buffer(self) -> StreamReassemblyBuffer | None:
        return self._stream

    def snapshot(self) -> dict[str, Any]:
        """
        Lightweight snapshot for logging / reports.
        """
        snap: dict[str, Any] = {
            "total": self.total_frames,
            "on_time": self.on_time_frames,
            "late": self.late_frames,
            "incomplete": self.incomplete_frames,
            "ratio": self.on_time_ratio,
            "fragments_received": self.fragments_received,
            "delay": self.delay_stats.snapshot(),
        }
        if self._stream is not None:
            snap["stream"] = self._stream.snapshot()
        return snap
