"""Wire format detection.

The sensor does not say which format it speaks, so the first bytes seen on
the link decide it:

- A legacy stream repeats its ``0x48`` header every 3 bytes. A candidate
  is confirmed when the byte 3 positions later is also ``0x48``.
- A standard frame starts with ``0xFE`` followed by a firmware version
  byte. Legacy data bytes always carry the high bit and the legacy header
  is ``0x48``, so a ``0xFE`` followed by either of those is a legacy data
  byte that happens to look like a standard header.

The decision is made once and never revisited.
"""

from __future__ import annotations

import logging

from ..transport.byte_source import ByteSource, drain
from .framing import (
    LEGACY_FRAME_LENGTH,
    LEGACY_HEADER,
    STANDARD_HEADER,
    ProtocolVersion,
)
from .session import ProtocolSession

logger = logging.getLogger(__name__)


class VersionDetector:
    """Decides the session's wire format from observed bytes.

    ``detect()`` is called once per poll until it returns ``True``. Scan
    state is not kept between calls: an undecided call simply means
    "retry next poll".
    """

    def __init__(self, session: ProtocolSession) -> None:
        self._session = session
        self._pending = b""

    @property
    def session(self) -> ProtocolSession:
        return self._session

    def detect(self, source: ByteSource) -> bool:
        """Scan the currently available bytes for a version signature.

        Returns:
            ``True`` once the version is known (immediately, without
            reading, on every call after the first success).
        """
        if self._session.resolved:
            return True

        window = drain(source)
        index = 0
        while index < len(window):
            byte = window[index]

            if byte == LEGACY_HEADER:
                recurrence = index + LEGACY_FRAME_LENGTH
                if recurrence >= len(window):
                    break
                if window[recurrence] == LEGACY_HEADER:
                    self._pending = window[index:]
                    self._session.resolve(ProtocolVersion.LEGACY)
                    return True
                logger.debug(
                    "Legacy candidate at offset %d abandoned (byte 4 = 0x%02X)",
                    index,
                    window[recurrence],
                )

            elif byte == STANDARD_HEADER:
                if index + 1 >= len(window):
                    break
                version_byte = window[index + 1]
                if not (version_byte & 0x80 or version_byte == LEGACY_HEADER):
                    self._pending = window[index:]
                    self._session.resolve(
                        ProtocolVersion.STANDARD, firmware_version=version_byte
                    )
                    return True
                logger.debug(
                    "Standard candidate at offset %d abandoned (next byte 0x%02X)",
                    index,
                    version_byte,
                )

            index += 1

        if window:
            logger.debug("Version undecided after %d bytes", len(window))
        return False

    def take_pending(self) -> bytes:
        """Hand over the bytes read past the winning header.

        These belong to the stream the decoder would otherwise have seen,
        starting with the header that confirmed the version. Returns them
        once; later calls return ``b""``.
        """
        pending, self._pending = self._pending, b""
        return pending
