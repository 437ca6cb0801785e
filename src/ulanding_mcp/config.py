"""Rangefinder configuration.

Defaults suit a uLanding on a flight controller UART; each field can be
overridden from the environment when the MCP server starts.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping

from .models.reading import STALE_TIMEOUT_MS
from .transport.serial_connection import DEFAULT_BAUDRATE, DEFAULT_PORT

ENV_PREFIX = "ULANDING_"

# Environment variable suffix -> config field
_ENV_FIELDS = {
    "PORT": "port",
    "BAUDRATE": "baudrate",
    "STALE_TIMEOUT_MS": "stale_timeout_ms",
    "MIN_CM": "min_distance_cm",
    "MAX_CM": "max_distance_cm",
}


@dataclass
class RangefinderConfig:
    """Settings for one rangefinder session."""

    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUDRATE
    stale_timeout_ms: int = STALE_TIMEOUT_MS
    min_distance_cm: int = 50
    max_distance_cm: int = 5000

    def __post_init__(self) -> None:
        if self.baudrate <= 0:
            raise ValueError(f"Baudrate must be positive, got {self.baudrate}")
        if self.stale_timeout_ms < 0:
            raise ValueError(
                f"Stale timeout must be non-negative, got {self.stale_timeout_ms}"
            )
        if self.min_distance_cm > self.max_distance_cm:
            raise ValueError(
                f"min_distance_cm ({self.min_distance_cm}) exceeds "
                f"max_distance_cm ({self.max_distance_cm})"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RangefinderConfig:
        """Build a config from ``ULANDING_*`` environment variables.

        Raises:
            ValueError: If a numeric variable is not an integer.
        """
        environ = os.environ if environ is None else environ
        types = {f.name: f.type for f in fields(cls)}
        values: dict[str, object] = {}
        for suffix, name in _ENV_FIELDS.items():
            raw = environ.get(ENV_PREFIX + suffix)
            if raw is None:
                continue
            if types[name] == "int":
                try:
                    values[name] = int(raw)
                except ValueError:
                    raise ValueError(
                        f"{ENV_PREFIX + suffix} must be an integer, got {raw!r}"
                    ) from None
            else:
                values[name] = raw
        return cls(**values)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}
