# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from constants import CONTROL_HEADER_BYTES, FRAME_HEADER_BYTES, U16_MAX, U32_MAX
from protocol.headers import (
    ControlHeader,
    FrameHeader,
    InvalidFieldValue,
    InvalidHeaderLength,
    build_control_packet,
    build_fragment,
    decode_control_header,
    decode_frame_header,
    encode_control_header,
    encode_frame_header,
)


# ---------------------------------------------------------------------
# FrameHeader
# ---------------------------------------------------------------------

def test_frame_header_is_twelve_bytes_big_endian():
    raw = encode_frame_header(
        FrameHeader(frame_id=1, fragment_index=2, fragment_count=3, send_ts_ms=4)
    )

    assert len(raw) == FRAME_HEADER_BYTES
    assert raw == bytes.fromhex("00000001" "0002" "0003" "00000004")


def test_frame_header_survives_full_field_ranges():
    header = FrameHeader(
        frame_id=U32_MAX,
        fragment_index=U16_MAX,
        fragment_count=U16_MAX,
        send_ts_ms=U32_MAX,
    )

    assert decode_frame_header(encode_frame_header(header)) == header


def test_decode_ignores_trailing_payload():
    header = FrameHeader(frame_id=9, fragment_index=0, fragment_count=75, send_ts_ms=1234)
    packet = build_fragment(header, payload_bytes=1200)

    assert len(packet) == FRAME_HEADER_BYTES + 1200
    assert decode_frame_header(packet) == header


def test_decode_at_offset_into_larger_buffer():
    first = FrameHeader(frame_id=1, fragment_index=0, fragment_count=2, send_ts_ms=10)
    second = FrameHeader(frame_id=1, fragment_index=1, fragment_count=2, send_ts_ms=10)
    buf = bytearray(build_fragment(first, payload_bytes=8) + build_fragment(second, payload_bytes=8))

    assert decode_frame_header(buf, FRAME_HEADER_BYTES + 8) == second
    assert decode_frame_header(memoryview(buf), 0) == first


def test_decode_rejects_short_buffer():
    with pytest.raises(InvalidHeaderLength):
        decode_frame_header(b"\x00" * (FRAME_HEADER_BYTES - 1))


def test_decode_rejects_offset_past_end():
    raw = encode_frame_header(
        FrameHeader(frame_id=1, fragment_index=0, fragment_count=1, send_ts_ms=0)
    )

    with pytest.raises(InvalidHeaderLength):
        decode_frame_header(raw, offset=1)


@pytest.mark.parametrize(
    "fields",
    [
        {"frame_id": U32_MAX + 1},
        {"fragment_index": U16_MAX + 1},
        {"fragment_count": -1},
        {"send_ts_ms": U32_MAX + 1},
    ],
)
def test_encode_rejects_out_of_range_fields(fields):
    values = {"frame_id": 0, "fragment_index": 0, "fragment_count": 1, "send_ts_ms": 0}
    values.update(fields)

    with pytest.raises(InvalidFieldValue):
        encode_frame_header(FrameHeader(**values))


# ---------------------------------------------------------------------
# ControlHeader
# ---------------------------------------------------------------------

def test_control_packet_is_header_plus_payload():
    packet = build_control_packet(ControlHeader(send_ts_ms=U32_MAX), payload_bytes=100)

    assert len(packet) == CONTROL_HEADER_BYTES + 100
    assert encode_control_header(ControlHeader(send_ts_ms=U32_MAX)) == b"\xff\xff\xff\xff"
    assert decode_control_header(packet) == ControlHeader(send_ts_ms=U32_MAX)


def test_control_header_rejects_short_buffer():
    with pytest.raises(InvalidHeaderLength):
        decode_control_header(b"\x00\x00\x00")


def test_builders_reject_negative_payload():
    with pytest.raises(ValueError):
        build_control_packet(ControlHeader(send_ts_ms=0), payload_bytes=-1)
