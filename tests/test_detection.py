"""Tests for wire format detection and the protocol session."""

import pytest

from ulanding_mcp.protocol.detection import VersionDetector
from ulanding_mcp.protocol.framing import (
    ProtocolVersion,
    build_legacy_frame,
    build_standard_frame,
)
from ulanding_mcp.protocol.session import ProtocolSession
from ulanding_mcp.transport.byte_source import MemoryByteSource


def _detect(data: bytes) -> tuple[bool, VersionDetector, MemoryByteSource]:
    detector = VersionDetector(ProtocolSession())
    source = MemoryByteSource(data)
    return detector.detect(source), detector, source


def test_detect_standard():
    """FE followed by a plain version byte is the standard format."""
    ok, detector, source = _detect(bytes([0xFE, 0x01, 0x64, 0x00, 0x00, 0x65]))
    assert ok
    assert detector.session.version is ProtocolVersion.STANDARD
    assert detector.session.firmware_version == 1
    assert detector.session.header == 0xFE
    assert source.available() == 0


def test_detect_legacy():
    """A 0x48 recurring 3 bytes later is the legacy format."""
    ok, detector, _ = _detect(bytes([0x48, 0x0A, 0x05, 0x48]))
    assert ok
    assert detector.session.version is ProtocolVersion.LEGACY
    assert detector.session.firmware_version is None
    assert detector.session.header == 0x48


def test_detect_empty():
    ok, detector, _ = _detect(b"")
    assert not ok
    assert detector.session.version is ProtocolVersion.UNKNOWN


def test_detect_legacy_needs_fourth_byte():
    ok, detector, _ = _detect(bytes([0x48, 0x0A, 0x05]))
    assert not ok
    assert detector.session.version is ProtocolVersion.UNKNOWN


def test_detect_standard_needs_version_byte():
    ok, _, _ = _detect(bytes([0x12, 0xFE]))
    assert not ok


def test_legacy_failure_resumes_one_byte_later():
    """A failed candidate resumes at the next byte, not past the window.

    Candidate at 0 fails (byte 3 is 0x02); the header at 1 recurs at 4.
    Skipping the whole 4-byte window would leave only the header at 4,
    which cannot be confirmed yet.
    """
    ok, detector, _ = _detect(bytes([0x48, 0x48, 0x01, 0x02, 0x48]))
    assert ok
    assert detector.session.version is ProtocolVersion.LEGACY
    assert detector.take_pending() == bytes([0x48, 0x01, 0x02, 0x48])


def test_failed_fourth_byte_can_be_a_header():
    """The byte that broke a legacy candidate may start a standard frame."""
    data = bytes([0x48, 0x01, 0x02]) + build_standard_frame(100, firmware_version=5)
    ok, detector, _ = _detect(data)
    assert ok
    assert detector.session.version is ProtocolVersion.STANDARD
    assert detector.session.firmware_version == 5


def test_standard_candidate_rejected_by_high_bit():
    """FE followed by a high-bit byte is legacy data, not a version byte."""
    ok, detector, _ = _detect(bytes([0xFE, 0x85, 0x81]))
    assert not ok
    assert detector.session.version is ProtocolVersion.UNKNOWN


def test_standard_candidate_rejected_by_legacy_header():
    """FE followed by 0x48 falls back to scanning, which finds legacy."""
    ok, detector, _ = _detect(bytes([0xFE, 0x48, 0x81, 0x82, 0x48]))
    assert ok
    assert detector.session.version is ProtocolVersion.LEGACY


def test_legacy_stream_with_fe_data_byte():
    """A legacy data byte of 0xFE must not be mistaken for a standard header."""
    data = bytes([0x11]) + bytes([0xFE, 0x85]) + build_legacy_frame(0x7E) * 3
    ok, detector, _ = _detect(data)
    assert ok
    assert detector.session.version is ProtocolVersion.LEGACY


def test_detection_is_sticky():
    """Once resolved, detect() returns True without reading anything."""
    detector = VersionDetector(ProtocolSession())
    source = MemoryByteSource(bytes([0x48, 0x0A, 0x05, 0x48]))
    assert detector.detect(source)

    source.feed(build_standard_frame(100) * 2)
    assert detector.detect(source)
    assert detector.session.version is ProtocolVersion.LEGACY
    assert source.available() == 12


def test_scan_state_not_kept_between_calls():
    """A candidate split across polls is lost; the next poll rescans."""
    detector = VersionDetector(ProtocolSession())
    source = MemoryByteSource(bytes([0x48, 0x0A]))
    assert not detector.detect(source)

    source.feed(bytes([0x05, 0x48]))
    assert not detector.detect(source)
    assert detector.session.version is ProtocolVersion.UNKNOWN

    source.feed(build_legacy_frame(10) * 2)
    assert detector.detect(source)


def test_take_pending_once():
    ok, detector, _ = _detect(bytes([0x00, 0x00]) + build_standard_frame(100))
    assert ok
    assert detector.take_pending() == build_standard_frame(100)
    assert detector.take_pending() == b""


def test_session_resolves_once():
    session = ProtocolSession()
    session.resolve(ProtocolVersion.STANDARD, firmware_version=3)
    with pytest.raises(RuntimeError):
        session.resolve(ProtocolVersion.LEGACY)
    assert session.version is ProtocolVersion.STANDARD


def test_session_cannot_resolve_to_unknown():
    with pytest.raises(RuntimeError):
        ProtocolSession().resolve(ProtocolVersion.UNKNOWN)


def test_session_to_dict():
    session = ProtocolSession()
    assert session.to_dict()["protocol"] == "unknown"
    session.resolve(ProtocolVersion.STANDARD, firmware_version=1)
    d = session.to_dict()
    assert d["protocol"] == "standard"
    assert d["firmware_version"] == 1
    assert d["header"] == "0xFE"
    assert d["frame_length"] == 6
