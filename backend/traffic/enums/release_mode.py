"""
Downlink release discipline enumeration.

Rules:
- This enum names the discipline only.
- Emission and scheduling behavior lives in traffic.downlink.
"""

from __future__ import annotations

from enum import Enum


class ReleaseMode(str, Enum):
    """
    How a frame's fragments are released onto the wire.

    BURST:
        All fragments of a frame are emitted at once; the next frame is
        scheduled a fixed frame interval later.

    PACED:
        Fragments are spaced a fixed pacing interval apart ("QUIC-lite");
        the next frame is scheduled relative to the last fragment.
    """

    BURST = "burst"
    PACED = "paced"
