"""
CONSTANTS
---------
Single source of truth for all behavioral invariants of the traffic model.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.

Time units:
- Scheduler / clock values are integer microseconds (suffix _US).
- Wire timestamps and deadlines are integer milliseconds (suffix _MS).
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Time base
# =============================================================================

US_PER_MS: Final[int] = 1_000
US_PER_S: Final[int] = 1_000_000

# =============================================================================
# Wire formats (network byte order)
# =============================================================================
# FrameHeader: frame_id u32 | fragment_index u16 | fragment_count u16 | send_ts_ms u32
FRAME_HEADER_BYTES: Final[int] = 12

# ControlHeader: send_ts_ms u32
CONTROL_HEADER_BYTES: Final[int] = 4

U16_MAX: Final[int] = 2**16 - 1
U32_MAX: Final[int] = 2**32 - 1
U32_MODULUS: Final[int] = 2**32

# =============================================================================
# Downlink (frame-based, large packets)
# =============================================================================

DEFAULT_FRAME_SIZE_BYTES: Final[int] = 90_000
DEFAULT_FRAGMENT_PAYLOAD_BYTES: Final[int] = 1_200
DEFAULT_FRAME_INTERVAL_US: Final[int] = 33 * US_PER_MS  # ~30 FPS

# Paced ("QUIC-lite") release: one fragment every 200us
DEFAULT_PACING_INTERVAL_US: Final[int] = 200

# Next-frame delay when pacing a frame overran the frame interval
MIN_RESCHEDULE_DELAY_US: Final[int] = 1

# =============================================================================
# Receiver
# =============================================================================

DEFAULT_DEADLINE_MS: Final[int] = 50

# Stream ingestion: header + fixed payload per record
DEFAULT_STREAM_RECORD_BYTES: Final[int] = (
    FRAME_HEADER_BYTES + DEFAULT_FRAGMENT_PAYLOAD_BYTES
)
DEFAULT_STREAM_BUFFER_CAPACITY_BYTES: Final[int] = 200_000

# =============================================================================
# Uplink (high-frequency, small packets)
# =============================================================================

DEFAULT_UPLINK_INTERVAL_US: Final[int] = 10 * US_PER_MS  # 100 Hz
DEFAULT_UPLINK_PACKET_BYTES: Final[int] = 100

# =============================================================================
# Statistics
# =============================================================================

P99_QUANTILE: Final[float] = 0.99

# =============================================================================
# Scenario timeline
# =============================================================================
# Receivers listen from t=0, generators run [start, stop), simulation ends at end.

DEFAULT_APP_START_US: Final[int] = 1 * US_PER_S
DEFAULT_APP_STOP_US: Final[int] = 10 * US_PER_S
DEFAULT_SIM_END_US: Final[int] = 20 * US_PER_S

DEFAULT_LINK_DELAY_US: Final[int] = 10 * US_PER_MS
DEFAULT_LINK_RATE_BPS: Final[int] = 100_000_000
DEFAULT_STREAM_SEGMENT_BYTES: Final[int] = 1_448
