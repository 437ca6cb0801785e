"""Per-session protocol state shared by the detector and the decoder."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .framing import ProtocolVersion

logger = logging.getLogger(__name__)


@dataclass
class ProtocolSession:
    """The wire format chosen for one decoder instance.

    Starts as ``UNKNOWN`` and is resolved exactly once; it never reverts.
    """

    version: ProtocolVersion = ProtocolVersion.UNKNOWN
    firmware_version: int | None = None

    @property
    def resolved(self) -> bool:
        return self.version is not ProtocolVersion.UNKNOWN

    @property
    def header(self) -> int | None:
        return self.version.header

    @property
    def frame_length(self) -> int:
        return self.version.frame_length

    def resolve(
        self, version: ProtocolVersion, firmware_version: int | None = None
    ) -> None:
        """Fix the session's wire format.

        Raises:
            RuntimeError: If the session is already resolved, or if
                ``version`` is ``UNKNOWN``.
        """
        if version is ProtocolVersion.UNKNOWN:
            raise RuntimeError("Cannot resolve a session to UNKNOWN")
        if self.resolved:
            raise RuntimeError(
                f"Protocol already resolved as {self.version.value}, "
                f"refusing {version.value}"
            )
        self.version = version
        self.firmware_version = firmware_version
        logger.info(
            "Detected uLanding %s protocol (firmware version %s)",
            version.value,
            firmware_version if firmware_version is not None else "n/a",
        )

    def to_dict(self) -> dict:
        return {
            "protocol": self.version.value,
            "firmware_version": self.firmware_version,
            "header": f"0x{self.header:02X}" if self.header is not None else None,
            "frame_length": self.frame_length,
        }
