"""Wire formats spoken by the uLanding radar altimeter.

Two mutually incompatible formats exist; neither is announced out-of-band.

Legacy (beta V0 firmware)::

    +--------+--------+--------+
    | Header |   d0   |   d1   |
    |  0x48  | 7 bits | 7 bits |
    +--------+--------+--------+

- value = (d1 & 0x7F) * 128 + (d0 & 0x7F), in 2.5 cm units
- no checksum

Standard::

    +--------+---------+--------+--------+--------+----------+
    | Header | Version |   d0   |   d1   |   d2   | Checksum |
    |  0xFE  | 1 byte  |  low   |  high  | unused |  1 byte  |
    +--------+---------+--------+--------+--------+----------+

- value = d1 * 256 + d0, in centimeters
- checksum = (version + d0 + d1 + d2) & 0xFF
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

LEGACY_HEADER = 0x48
STANDARD_HEADER = 0xFE
LEGACY_FRAME_LENGTH = 3
STANDARD_FRAME_LENGTH = 6
LEGACY_CM_PER_UNIT = 2.5
LEGACY_MAX_VALUE = 0x3FFF  # two 7-bit digits
STANDARD_MAX_VALUE = 0xFFFF


class ProtocolVersion(Enum):
    """Wire format in use on the link."""

    UNKNOWN = "unknown"
    LEGACY = "legacy"
    STANDARD = "standard"

    @property
    def header(self) -> int | None:
        return _HEADERS.get(self)

    @property
    def frame_length(self) -> int:
        return _FRAME_LENGTHS.get(self, 0)

    @property
    def cm_per_unit(self) -> float:
        """Scale from protocol-native units to centimeters."""
        if self is ProtocolVersion.LEGACY:
            return LEGACY_CM_PER_UNIT
        return 1.0


_HEADERS = {
    ProtocolVersion.LEGACY: LEGACY_HEADER,
    ProtocolVersion.STANDARD: STANDARD_HEADER,
}

_FRAME_LENGTHS = {
    ProtocolVersion.LEGACY: LEGACY_FRAME_LENGTH,
    ProtocolVersion.STANDARD: STANDARD_FRAME_LENGTH,
}


@dataclass
class Frame:
    """A complete, validated frame."""

    version: ProtocolVersion
    data: bytes

    @property
    def raw_value(self) -> int:
        """Distance in protocol-native units."""
        if self.version is ProtocolVersion.LEGACY:
            return (self.data[2] & 0x7F) * 128 + (self.data[1] & 0x7F)
        return self.data[3] * 256 + self.data[2]

    def __repr__(self) -> str:
        return (
            f"Frame(version={self.version.value}, "
            f"data={self.data.hex(' ')}, raw_value={self.raw_value})"
        )


def checksum(body: bytes) -> int:
    """8-bit additive checksum over the bytes between header and checksum."""
    return sum(body) & 0xFF


def build_legacy_frame(value: int) -> bytes:
    """Build a 3-byte legacy frame carrying ``value`` (2.5 cm units).

    The data bytes carry the high bit set, as the beta firmware emits them.
    """
    if not 0 <= value <= LEGACY_MAX_VALUE:
        raise ValueError(f"Legacy value must be 0-{LEGACY_MAX_VALUE}, got {value}")
    d0 = 0x80 | (value & 0x7F)
    d1 = 0x80 | ((value >> 7) & 0x7F)
    return bytes([LEGACY_HEADER, d0, d1])


def build_standard_frame(
    value: int, firmware_version: int = 1, d2: int = 0
) -> bytes:
    """Build a 6-byte standard frame carrying ``value`` (centimeters).

    Args:
        value: Distance in centimeters, 0-65535.
        firmware_version: Version byte; must not have its high bit set.
        d2: Reserved data byte.
    """
    if not 0 <= value <= STANDARD_MAX_VALUE:
        raise ValueError(
            f"Standard value must be 0-{STANDARD_MAX_VALUE}, got {value}"
        )
    if not 0 <= firmware_version <= 0x7F:
        raise ValueError(
            f"Firmware version must be 0-127, got {firmware_version}"
        )
    if not 0 <= d2 <= 0xFF:
        raise ValueError(f"d2 must be 0-255, got {d2}")
    body = bytes([firmware_version, value & 0xFF, (value >> 8) & 0xFF, d2])
    return bytes([STANDARD_HEADER]) + body + bytes([checksum(body)])


def parse_frame(data: bytes, version: ProtocolVersion) -> Frame | None:
    """Validate a complete frame buffer.

    Args:
        data: Exactly ``version.frame_length`` bytes, header first.
        version: The resolved protocol version.

    Returns:
        A ``Frame``, or ``None`` if the buffer is malformed or the
        checksum fails. Legacy frames carry no checksum and are always
        accepted once complete.
    """
    if version is ProtocolVersion.UNKNOWN:
        return None
    if len(data) != version.frame_length or data[0] != version.header:
        return None

    if version is ProtocolVersion.STANDARD:
        if checksum(data[1:5]) != data[5]:
            return None

    return Frame(version=version, data=bytes(data))
