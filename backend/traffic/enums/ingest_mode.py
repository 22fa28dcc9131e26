"""
Receiver ingestion path enumeration.
"""

from __future__ import annotations

from enum import Enum


class IngestMode(str, Enum):
    """
    How inbound downlink data is delivered to the receiver.

    MESSAGE:
        Each notification carries exactly one fragment (datagram transport).

    STREAM:
        Notifications carry arbitrary byte segments with no record
        boundaries (stream transport); records are recovered from a
        bounded reassembly buffer.
    """

    MESSAGE = "message"
    STREAM = "stream"
