"""Frame resynchronization and assembly.

The decoder is a small state machine threaded through one poll::

    SEEKING --header--> ACCUMULATING --frame_length bytes--> SEEKING
                             |
                             +--header--> ACCUMULATING (buffer restarted)

A header byte always restarts the buffer, even mid-frame. Nothing survives
the end of a poll: an unfinished frame is discarded and the next poll
resynchronizes from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ..transport.byte_source import ByteSource
from .framing import parse_frame
from .session import ProtocolSession

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    """Valid samples collected during one poll."""

    count: int = 0
    total: int = 0

    def add(self, raw_value: int) -> None:
        self.count += 1
        self.total += raw_value

    @property
    def mean(self) -> float | None:
        if self.count == 0:
            return None
        return self.total / self.count


class Phase(Enum):
    SEEKING = "seeking"
    ACCUMULATING = "accumulating"


class FrameDecoder:
    """Turns the bytes available in one poll into raw samples."""

    def __init__(self, session: ProtocolSession) -> None:
        self._session = session
        self._phase = Phase.SEEKING
        self._buffer = bytearray()

    @property
    def phase(self) -> Phase:
        return self._phase

    def reset(self) -> None:
        self._phase = Phase.SEEKING
        self._buffer.clear()

    def decode(self, source: ByteSource | None, pending: bytes = b"") -> PollResult:
        """Consume ``pending`` and then every byte currently available.

        Args:
            source: The byte source, drained up to what it reports available.
            pending: Bytes already read from the link this poll (for
                example by the version detector), processed first.

        Returns:
            The samples accepted this poll.
        """
        result = PollResult()
        if not self._session.resolved:
            return result

        self.reset()
        for byte in pending:
            self._feed(byte, result)
        if source is not None:
            for _ in range(source.available()):
                self._feed(source.read_next(), result)

        if self._phase is Phase.ACCUMULATING:
            logger.debug(
                "Discarding %d byte(s) of unfinished frame", len(self._buffer)
            )
        self.reset()
        return result

    def _feed(self, byte: int, result: PollResult) -> None:
        if byte == self._session.header:
            self._buffer.clear()
            self._phase = Phase.ACCUMULATING

        if self._phase is not Phase.ACCUMULATING:
            return

        self._buffer.append(byte)
        if len(self._buffer) < self._session.frame_length:
            return

        frame = parse_frame(bytes(self._buffer), self._session.version)
        if frame is None:
            logger.debug("Dropped frame with bad checksum: %s", self._buffer.hex(" "))
        else:
            result.add(frame.raw_value)
        self.reset()
