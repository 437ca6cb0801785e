"""Externally visible rangefinder state and the status sink interface."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class RangeStatus(Enum):
    """Qualitative state of the rangefinder, as seen by consumers."""

    NOT_CONNECTED = "not_connected"
    NO_DATA = "no_data"
    OUT_OF_RANGE_LOW = "out_of_range_low"
    OUT_OF_RANGE_HIGH = "out_of_range_high"
    GOOD = "good"


@runtime_checkable
class StatusSink(Protocol):
    """Receives readings and status changes from the rangefinder."""

    def update_status(self, distance_cm: int, timestamp_ms: int) -> None:
        """Record a fresh reading and classify it."""
        ...

    def set_status(self, status: RangeStatus) -> None:
        """Force a status without a new reading."""
        ...


@dataclass
class RangeState:
    """Default status sink: last distance, status and reading time."""

    min_distance_cm: int = 50
    max_distance_cm: int = 5000
    distance_cm: int = 0
    status: RangeStatus = RangeStatus.NO_DATA
    last_reading_ms: int | None = None

    def update_status(self, distance_cm: int, timestamp_ms: int) -> None:
        self.distance_cm = distance_cm
        self.last_reading_ms = timestamp_ms
        if distance_cm < self.min_distance_cm:
            self.status = RangeStatus.OUT_OF_RANGE_LOW
        elif distance_cm > self.max_distance_cm:
            self.status = RangeStatus.OUT_OF_RANGE_HIGH
        else:
            self.status = RangeStatus.GOOD

    def set_status(self, status: RangeStatus) -> None:
        self.status = status

    def to_dict(self) -> dict:
        return {
            "distance_cm": self.distance_cm,
            "status": self.status.value,
            "last_reading_ms": self.last_reading_ms,
            "min_distance_cm": self.min_distance_cm,
            "max_distance_cm": self.max_distance_cm,
        }
