# backend/protocol/headers.py
"""
Binary header codec for AR/VR traffic.

Wire formats (network byte order / big-endian):

- Downlink fragment (FrameHeader, 12 bytes):
    4 bytes  frame_id        (u32)
    2 bytes  fragment_index  (u16, 0-based)
    2 bytes  fragment_count  (u16)
    4 bytes  send_ts_ms      (u32)
  followed by the fragment payload.

- Uplink packet (ControlHeader, 4 bytes):
    4 bytes  send_ts_ms      (u32)
  followed by a zero-filled payload of the configured packet size.

Decoding works on a standalone datagram or at any offset into a larger
buffer (stream reassembly decodes in place).

Usage example:

    packet = build_fragment(
        FrameHeader(frame_id=7, fragment_index=0, fragment_count=75, send_ts_ms=now_ms),
        payload_bytes=1200,
    )

    header = decode_frame_header(packet)
    header = decode_frame_header(stream_buf, offset=record_start)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Union

from constants import (
    CONTROL_HEADER_BYTES,
    FRAME_HEADER_BYTES,
    U16_MAX,
    U32_MAX,
)

Buffer = Union[bytes, bytearray, memoryview]

_FRAME_HEADER = struct.Struct("!IHHI")
_CONTROL_HEADER = struct.Struct("!I")


# -------------------------
# Exceptions
# -------------------------

class HeaderProtocolError(Exception):
    """Base class for header codec errors."""


class InvalidHeaderLength(HeaderProtocolError):
    """
    Raised when fewer bytes than the header size are available to decode.

    Indicates a truncated datagram or a read past the end of a stream
    buffer. The bytes are unsafe to interpret and must be dropped.
    """


class InvalidFieldValue(HeaderProtocolError):
    """
    Raised when a header field does not fit its unsigned wire width.
    """


# -------------------------
# Header records
# -------------------------

@dataclass(frozen=True)
class FrameHeader:
    """
    Header attached to every downlink fragment.

    frame_id:
        Identifies the logical frame. All fragments of one frame share it.

    fragment_index:
        0-based position of this fragment within the frame.

    fragment_count:
        Total fragments in the frame. Identical across the frame.

    send_ts_ms:
        Generator-side send time of the frame (fragment 0), identical
        across the frame.
    """
    frame_id: int
    fragment_index: int
    fragment_count: int
    send_ts_ms: int


@dataclass(frozen=True)
class ControlHeader:
    """Header carried by every uplink packet."""
    send_ts_ms: int


# -------------------------
# Low-level helpers
# -------------------------

def _check_range(name: str, value: int, maximum: int) -> None:
    if value < 0 or value > maximum:
        raise InvalidFieldValue(f"{name}={value} outside [0, {maximum}]")


def _require(buf: Buffer, offset: int, size: int, what: str) -> None:
    if offset < 0:
        raise InvalidHeaderLength(f"{what}: negative offset {offset}")
    available = len(buf) - offset
    if available < size:
        raise InvalidHeaderLength(
            f"{what} needs {size} bytes at offset {offset}, have {max(available, 0)}"
        )


# -------------------------
# FrameHeader
# -------------------------

def encode_frame_header(header: FrameHeader) -> bytes:
    """
    Encode a FrameHeader into its 12-byte wire form.
    """
    _check_range("frame_id", header.frame_id, U32_MAX)
    _check_range("fragment_index", header.fragment_index, U16_MAX)
    _check_range("fragment_count", header.fragment_count, U16_MAX)
    _check_range("send_ts_ms", header.send_ts_ms, U32_MAX)

    return _FRAME_HEADER.pack(
        header.frame_id,
        header.fragment_index,
        header.fragment_count,
        header.send_ts_ms,
    )


def decode_frame_header(buf: Buffer, offset: int = 0) -> FrameHeader:
    """
    Decode a FrameHeader starting at `offset`.

    Total for any buffer holding at least FRAME_HEADER_BYTES from `offset`;
    trailing bytes (payload, further records) are ignored.
    """
    _require(buf, offset, FRAME_HEADER_BYTES, "FrameHeader")
    frame_id, fragment_index, fragment_count, send_ts_ms = _FRAME_HEADER.unpack_from(
        buf, offset
    )
    return FrameHeader(
        frame_id=frame_id,
        fragment_index=fragment_index,
        fragment_count=fragment_count,
        send_ts_ms=send_ts_ms,
    )


# -------------------------
# ControlHeader
# -------------------------

def encode_control_header(header: ControlHeader) -> bytes:
    """Encode a ControlHeader into its 4-byte wire form."""
    _check_range("send_ts_ms", header.send_ts_ms, U32_MAX)
    return _CONTROL_HEADER.pack(header.send_ts_ms)


def decode_control_header(buf: Buffer, offset: int = 0) -> ControlHeader:
    """Decode a ControlHeader starting at `offset`."""
    _require(buf, offset, CONTROL_HEADER_BYTES, "ControlHeader")
    (send_ts_ms,) = _CONTROL_HEADER.unpack_from(buf, offset)
    return ControlHeader(send_ts_ms=send_ts_ms)


# -------------------------
# Packet builders
# -------------------------

def build_fragment(header: FrameHeader, *, payload_bytes: int) -> bytes:
    """
    Build one downlink fragment: header followed by a zero-filled payload.
    """
    if payload_bytes < 0:
        raise ValueError("payload_bytes must be >= 0")
    return encode_frame_header(header) + bytes(payload_bytes)


def build_control_packet(header: ControlHeader, *, payload_bytes: int) -> bytes:
    """
    Build one uplink packet: header followed by a zero-filled payload.
    """
    if payload_bytes < 0:
        raise ValueError("payload_bytes must be >= 0")
    return encode_control_header(header) + bytes(payload_bytes)
