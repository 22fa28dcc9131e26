"""
Transport profile enumeration.

A profile fixes the downlink release discipline and the receiver
ingestion path together:

    udp  -> BURST release, MESSAGE ingest
    quic -> PACED release, MESSAGE ingest  ("QUIC-lite" pacing over datagrams)
    tcp  -> BURST release, STREAM ingest
"""

from __future__ import annotations

from enum import Enum

from traffic.enums.ingest_mode import IngestMode
from traffic.enums.release_mode import ReleaseMode


class Transport(str, Enum):
    """Named transport profile of a scenario."""

    UDP = "udp"
    QUIC = "quic"
    TCP = "tcp"

    @property
    def release_mode(self) -> ReleaseMode:
        if self is Transport.QUIC:
            return ReleaseMode.PACED
        return ReleaseMode.BURST

    @property
    def ingest_mode(self) -> IngestMode:
        if self is Transport.TCP:
            return IngestMode.STREAM
        return IngestMode.MESSAGE
