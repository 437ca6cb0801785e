"""Tests for wire format constants, encoders and frame validation."""

import pytest

from ulanding_mcp.protocol.framing import (
    LEGACY_HEADER,
    STANDARD_HEADER,
    Frame,
    ProtocolVersion,
    build_legacy_frame,
    build_standard_frame,
    checksum,
    parse_frame,
)


def test_version_properties():
    """Each version knows its header, frame length and unit scale."""
    assert ProtocolVersion.LEGACY.header == 0x48
    assert ProtocolVersion.LEGACY.frame_length == 3
    assert ProtocolVersion.LEGACY.cm_per_unit == 2.5
    assert ProtocolVersion.STANDARD.header == 0xFE
    assert ProtocolVersion.STANDARD.frame_length == 6
    assert ProtocolVersion.STANDARD.cm_per_unit == 1.0
    assert ProtocolVersion.UNKNOWN.header is None
    assert ProtocolVersion.UNKNOWN.frame_length == 0


def test_checksum_wraps_at_256():
    """Checksum is the low byte of the sum."""
    assert checksum(bytes([0x01, 0x64, 0x00, 0x00])) == 0x65
    assert checksum(bytes([0xFF, 0xFF, 0x02, 0x00])) == 0x00


def test_build_standard_frame_layout():
    """A 100 cm reading from firmware 1 is FE 01 64 00 00 65."""
    frame = build_standard_frame(100, firmware_version=1)
    assert frame == bytes([0xFE, 0x01, 0x64, 0x00, 0x00, 0x65])


def test_build_standard_frame_little_endian_value():
    frame = build_standard_frame(0x1234, firmware_version=2, d2=0x33)
    assert frame[0] == STANDARD_HEADER
    assert frame[2] == 0x34  # d0, low byte
    assert frame[3] == 0x12  # d1, high byte
    assert frame[4] == 0x33
    assert frame[5] == (0x02 + 0x34 + 0x12 + 0x33) & 0xFF


def test_build_legacy_frame_sets_high_bits():
    """Legacy data bytes carry the high bit, as the beta firmware sends them."""
    frame = build_legacy_frame(650)
    assert frame == bytes([LEGACY_HEADER, 0x8A, 0x85])


def test_build_frame_bounds():
    with pytest.raises(ValueError):
        build_standard_frame(0x10000)
    with pytest.raises(ValueError):
        build_standard_frame(100, firmware_version=0x80)
    with pytest.raises(ValueError):
        build_legacy_frame(0x4000)
    with pytest.raises(ValueError):
        build_legacy_frame(-1)


def test_parse_standard_frame():
    frame = parse_frame(build_standard_frame(4321), ProtocolVersion.STANDARD)
    assert frame is not None
    assert frame.raw_value == 4321


def test_parse_standard_ignores_d2():
    """Only d0 and d1 carry distance; d2 is covered by the checksum only."""
    frame = parse_frame(
        build_standard_frame(300, d2=0x7F), ProtocolVersion.STANDARD
    )
    assert frame is not None
    assert frame.raw_value == 300


def test_parse_standard_bad_checksum():
    """Frames with a corrupt checksum should return None."""
    data = bytearray(build_standard_frame(100))
    data[5] ^= 0x01
    assert parse_frame(bytes(data), ProtocolVersion.STANDARD) is None


def test_parse_standard_corrupt_data_byte():
    data = bytearray(build_standard_frame(100))
    data[2] ^= 0x10
    assert parse_frame(bytes(data), ProtocolVersion.STANDARD) is None


def test_parse_legacy_frame_masks_high_bits():
    """Legacy value is (d1 & 0x7F) * 128 + (d0 & 0x7F)."""
    plain = parse_frame(bytes([0x48, 0x0A, 0x05]), ProtocolVersion.LEGACY)
    flagged = parse_frame(bytes([0x48, 0x8A, 0x85]), ProtocolVersion.LEGACY)
    assert plain.raw_value == 650
    assert flagged.raw_value == 650


def test_parse_legacy_accepts_any_complete_frame():
    """The legacy format has no checksum; every complete frame is accepted."""
    frame = parse_frame(bytes([0x48, 0xFF, 0xFF]), ProtocolVersion.LEGACY)
    assert frame is not None
    assert frame.raw_value == 0x3FFF


def test_parse_rejects_wrong_length_or_header():
    assert parse_frame(bytes([0xFE, 0x01, 0x64]), ProtocolVersion.STANDARD) is None
    assert parse_frame(bytes([0x47, 0x0A, 0x05]), ProtocolVersion.LEGACY) is None
    assert parse_frame(build_standard_frame(100), ProtocolVersion.UNKNOWN) is None


def test_encode_decode_recovers_value():
    """Encoding then decoding a standard frame yields d1 * 256 + d0.

    Large version and d2 bytes push the checksum sum past 0xFF.
    """
    values = list(range(0, 0x10000, 997)) + [255, 256, 0xFFFF]
    for value in values:
        for firmware_version in (0, 1, 0x47, 0x7F):
            for d2 in (0, 0x80, 0xFF):
                data = build_standard_frame(value, firmware_version, d2)
                assert data[5] == (firmware_version + data[2] + data[3] + d2) % 256
                frame = parse_frame(data, ProtocolVersion.STANDARD)
                assert frame is not None, (value, firmware_version, d2)
                assert frame.raw_value == value


def test_frame_repr():
    f = Frame(version=ProtocolVersion.LEGACY, data=bytes([0x48, 0x0A, 0x05]))
    r = repr(f)
    assert "legacy" in r
    assert "650" in r
