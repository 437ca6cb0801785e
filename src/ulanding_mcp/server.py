"""MCP server entry point for the uLanding radar rangefinder.

Exposes the rangefinder as tools and resources via the Model Context
Protocol using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import RangefinderConfig
from .models.state import RangeState
from .protocol.framing import (
    LEGACY_CM_PER_UNIT,
    LEGACY_FRAME_LENGTH,
    LEGACY_HEADER,
    STANDARD_FRAME_LENGTH,
    STANDARD_HEADER,
)
from .rangefinder import ULandingRangefinder
from .transport.byte_source import MemoryByteSource, load_capture
from .transport.serial_connection import SerialConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "ulanding-rangefinder",
    instructions="MCP server for the Aerotenna uLanding radar altimeter",
)

# Global session state
_config = RangefinderConfig()
_connection: SerialConnection | None = None
_rangefinder: ULandingRangefinder | None = None


def _get_rangefinder() -> ULandingRangefinder:
    """Get the active rangefinder, raising if not connected."""
    if _rangefinder is None or _connection is None or not _connection.connected:
        raise RuntimeError(
            "Not connected to sensor. Use the 'connect' tool first."
        )
    return _rangefinder


def _status(rangefinder: ULandingRangefinder) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if isinstance(rangefinder.sink, RangeState):
        result.update(rangefinder.sink.to_dict())
    result.update(rangefinder.session.to_dict())
    return result


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(port: str | None = None, baudrate: int | None = None) -> dict[str, Any]:
    """Open the serial port the uLanding is attached to.

    The wire format is not configured: it is detected from the first
    bytes received, during the first polls.

    Args:
        port: Serial device (default from ULANDING_PORT or /dev/ttyS1).
        baudrate: Baud rate (default from ULANDING_BAUDRATE or 115200).
    """
    global _connection, _rangefinder
    if _connection is not None and _connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "port": _connection.port_info.port,
        }

    connection = SerialConnection(
        port=port or _config.port,
        baudrate=baudrate or _config.baudrate,
    )
    info = connection.open()

    _connection = connection
    _rangefinder = ULandingRangefinder(
        connection,
        sink=RangeState(
            min_distance_cm=_config.min_distance_cm,
            max_distance_cm=_config.max_distance_cm,
        ),
        stale_timeout_ms=_config.stale_timeout_ms,
    )
    return {"connected": True, "port": info.port, "baudrate": info.baudrate}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the serial port and forget the detected protocol."""
    global _connection, _rangefinder
    if _connection is not None:
        _connection.close()
    _connection = None
    _rangefinder = None
    return {"disconnected": True}


# ─── READING TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def poll() -> dict[str, Any]:
    """Run one polling cycle and return the resulting rangefinder state."""
    rangefinder = _get_rangefinder()
    rangefinder.poll()
    return _status(rangefinder)


@mcp.tool()
def get_reading() -> dict[str, Any]:
    """Decode the bytes buffered right now into a single distance.

    Unlike ``poll`` this does not update the published status.
    """
    rangefinder = _get_rangefinder()
    ok, distance_cm = rangefinder.try_get_reading()
    if not ok:
        return {"ok": False, "protocol": rangefinder.version.value}
    return {
        "ok": True,
        "distance_cm": distance_cm,
        "protocol": rangefinder.version.value,
    }


@mcp.tool()
def get_status() -> dict[str, Any]:
    """Return the last published distance, status and detected protocol."""
    rangefinder = _get_rangefinder()
    result = _status(rangefinder)
    result["port"] = _connection.port_info.port
    return result


@mcp.tool()
def sample(cycles: int = 10, interval_ms: int = 100) -> dict[str, Any]:
    """Poll repeatedly and summarise the readings.

    Args:
        cycles: Number of polling cycles (1-1000).
        interval_ms: Delay between cycles in milliseconds (0-10000).
    """
    if not 1 <= cycles <= 1000:
        return {"error": "cycles must be 1-1000"}
    if not 0 <= interval_ms <= 10000:
        return {"error": "interval_ms must be 0-10000"}

    rangefinder = _get_rangefinder()
    readings = []
    statuses = []
    for i in range(cycles):
        before = rangefinder.reading_count
        rangefinder.poll()
        if rangefinder.reading_count > before:
            readings.append(rangefinder.sink.distance_cm)
        statuses.append(rangefinder.sink.status.value)
        if i < cycles - 1:
            time.sleep(interval_ms / 1000)

    result = _status(rangefinder)
    result["cycles"] = cycles
    result["readings"] = readings
    result["statuses"] = statuses
    if readings:
        result["min_cm"] = min(readings)
        result["max_cm"] = max(readings)
    return result


@mcp.tool()
def replay_capture(
    path: str, chunk_size: int = 64, interval_ms: int = 20
) -> dict[str, Any]:
    """Decode a raw serial capture file offline.

    The capture is fed to a fresh rangefinder ``chunk_size`` bytes per
    poll, with a simulated clock advancing ``interval_ms`` per poll.

    Args:
        path: Path to a raw byte capture of the sensor's UART.
        chunk_size: Bytes made available per poll (1-4096).
        interval_ms: Simulated time between polls.
    """
    if not 1 <= chunk_size <= 4096:
        return {"error": "chunk_size must be 1-4096"}
    if interval_ms < 0:
        return {"error": "interval_ms must be non-negative"}
    if not os.path.isfile(path):
        return {"error": f"File not found: {path}"}

    data = load_capture(path)
    source = MemoryByteSource()
    clock_ms = [0]
    sink = RangeState(
        min_distance_cm=_config.min_distance_cm,
        max_distance_cm=_config.max_distance_cm,
    )
    rangefinder = ULandingRangefinder(
        source,
        sink=sink,
        clock=lambda: clock_ms[0],
        stale_timeout_ms=_config.stale_timeout_ms,
    )

    readings = []
    for offset in range(0, len(data), chunk_size):
        source.feed(data[offset : offset + chunk_size])
        clock_ms[0] += interval_ms
        before = rangefinder.reading_count
        rangefinder.poll()
        if rangefinder.reading_count > before:
            readings.append({
                "t_ms": clock_ms[0],
                "distance_cm": sink.distance_cm,
                "status": sink.status.value,
            })

    result = rangefinder.session.to_dict()
    result["bytes"] = len(data)
    result["polls"] = -(-len(data) // chunk_size)
    result["readings"] = readings
    return result


# ─── RESOURCES ────────────────────────────────────────────────────────

@mcp.resource("ulanding://protocols")
def protocols() -> str:
    """Wire formats the decoder understands."""
    return json.dumps(
        {
            "legacy": {
                "header": f"0x{LEGACY_HEADER:02X}",
                "frame_length": LEGACY_FRAME_LENGTH,
                "layout": ["header", "d0", "d1"],
                "value": "(d1 & 0x7F) * 128 + (d0 & 0x7F)",
                "cm_per_unit": LEGACY_CM_PER_UNIT,
                "checksum": None,
            },
            "standard": {
                "header": f"0x{STANDARD_HEADER:02X}",
                "frame_length": STANDARD_FRAME_LENGTH,
                "layout": ["header", "version", "d0", "d1", "d2", "checksum"],
                "value": "d1 * 256 + d0",
                "cm_per_unit": 1,
                "checksum": "(version + d0 + d1 + d2) & 0xFF",
            },
        },
        indent=2,
    )


@mcp.resource("ulanding://config")
def config() -> str:
    """Active server configuration."""
    return json.dumps(_config.to_dict(), indent=2)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    global _config
    logging.basicConfig(level=os.environ.get("ULANDING_LOG_LEVEL", "INFO"))
    _config = RangefinderConfig.from_env()
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
