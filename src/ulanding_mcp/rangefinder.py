"""uLanding rangefinder: detection, decoding, aggregation and staleness.

Each call to :meth:`ULandingRangefinder.poll` processes only the bytes that
are buffered at that moment and returns promptly. An external scheduler is
expected to call it periodically (typically at 10-50 Hz).
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from .models.reading import STALE_TIMEOUT_MS, Aggregator, StalenessMonitor
from .models.state import RangeState, RangeStatus, StatusSink
from .protocol.decoder import FrameDecoder
from .protocol.detection import VersionDetector
from .protocol.framing import ProtocolVersion
from .protocol.session import ProtocolSession
from .transport.byte_source import ByteSource

logger = logging.getLogger(__name__)


def monotonic_ms() -> int:
    """Milliseconds from a monotonic clock."""
    return time.monotonic_ns() // 1_000_000


class ULandingRangefinder:
    """Distance readings from a uLanding radar on a byte source.

    Args:
        source: Non-blocking byte source, or ``None`` if no transport is
            configured (every poll then reports ``NOT_CONNECTED``).
        sink: Receives readings and status changes. Defaults to a fresh
            :class:`RangeState`.
        clock: Returns the current time in milliseconds.
        stale_timeout_ms: Time without a reading before ``NO_DATA``.
    """

    def __init__(
        self,
        source: ByteSource | None,
        sink: StatusSink | None = None,
        clock: Callable[[], int] = monotonic_ms,
        stale_timeout_ms: int = STALE_TIMEOUT_MS,
    ) -> None:
        self._source = source
        self._sink = sink if sink is not None else RangeState()
        self._clock = clock
        self._session = ProtocolSession()
        self._detector = VersionDetector(self._session)
        self._decoder = FrameDecoder(self._session)
        self._staleness = StalenessMonitor(clock(), stale_timeout_ms)
        self.reading_count = 0

    @property
    def sink(self) -> StatusSink:
        return self._sink

    @property
    def session(self) -> ProtocolSession:
        return self._session

    @property
    def version(self) -> ProtocolVersion:
        return self._session.version

    @property
    def firmware_version(self) -> int | None:
        return self._session.firmware_version

    @property
    def last_reading_ms(self) -> int:
        return self._staleness.last_reading_ms

    def try_get_reading(self) -> tuple[bool, int]:
        """Decode everything currently buffered into one distance.

        Returns:
            ``(True, distance_cm)`` if at least one valid frame arrived this
            poll, else ``(False, 0)``. A transport failure mid-poll also
            yields ``(False, 0)``; the bytes read so far are discarded.
        """
        if self._source is None:
            return False, 0

        try:
            if not self._detector.detect(self._source):
                return False, 0
            result = self._decoder.decode(
                self._source, self._detector.take_pending()
            )
        except ConnectionError as e:
            logger.warning("Byte source failed during poll: %s", e)
            self._decoder.reset()
            return False, 0

        distance_cm = Aggregator(self._session.version).reduce(result)
        if distance_cm is None:
            return False, 0

        logger.debug(
            "%d frame(s) this poll, distance %d cm", result.count, distance_cm
        )
        return True, distance_cm

    def poll(self) -> None:
        """Run one polling cycle and publish the outcome to the sink."""
        if self._source is None:
            self._sink.set_status(RangeStatus.NOT_CONNECTED)
            return

        ok, distance_cm = self.try_get_reading()
        now_ms = self._clock()
        if ok:
            self._staleness.mark(now_ms)
            self.reading_count += 1
            self._sink.update_status(distance_cm, now_ms)
        elif self._staleness.is_stale(now_ms):
            self._sink.set_status(RangeStatus.NO_DATA)
