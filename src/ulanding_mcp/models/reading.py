"""Per-poll reduction and reading staleness."""

from __future__ import annotations

from ..protocol.decoder import PollResult
from ..protocol.framing import ProtocolVersion

STALE_TIMEOUT_MS = 200


class Aggregator:
    """Reduces a poll's samples to a single distance in centimeters."""

    def __init__(self, version: ProtocolVersion) -> None:
        self._version = version

    def reduce(self, result: PollResult) -> int | None:
        return reduce(result, self._version)


def reduce(result: PollResult, version: ProtocolVersion) -> int | None:
    """Mean of the poll's raw values, scaled to centimeters.

    The mean is truncated to whole units before scaling and the scaled
    value is truncated again, so a legacy raw value of 3 reads 7 cm.

    Returns ``None`` when the poll produced no valid frame.
    """
    mean = result.mean
    if mean is None:
        return None
    return int(int(mean) * version.cm_per_unit)


class StalenessMonitor:
    """Tracks the time of the last successful reading.

    ``last_reading_ms`` starts at the session start so that a freshly
    created decoder is not reported stale before the timeout has elapsed.
    """

    def __init__(self, start_ms: int, timeout_ms: int = STALE_TIMEOUT_MS) -> None:
        if timeout_ms < 0:
            raise ValueError(f"Timeout must be non-negative, got {timeout_ms}")
        self.last_reading_ms = start_ms
        self.timeout_ms = timeout_ms

    def mark(self, now_ms: int) -> None:
        self.last_reading_ms = now_ms

    def elapsed_ms(self, now_ms: int) -> int:
        return now_ms - self.last_reading_ms

    def is_stale(self, now_ms: int) -> bool:
        return self.elapsed_ms(now_ms) > self.timeout_ms
