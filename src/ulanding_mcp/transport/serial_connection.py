"""Serial (UART) connection to the uLanding radar.

The port is opened with ``timeout=0`` so that reads never block: the
decoder only ever asks for bytes that ``in_waiting`` already reports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import serial

logger = logging.getLogger(__name__)

DEFAULT_PORT = "/dev/ttyS1"
DEFAULT_BAUDRATE = 115200


@dataclass
class PortInfo:
    """Where and how the sensor is attached."""

    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUDRATE


class SerialConnection:
    """Manages the serial link to the sensor and exposes it as a byte source.

    Usage::

        conn = SerialConnection("/dev/ttyUSB0")
        conn.open()
        while conn.available():
            byte = conn.read_next()
        conn.close()
    """

    def __init__(
        self,
        port: str = DEFAULT_PORT,
        baudrate: int = DEFAULT_BAUDRATE,
    ) -> None:
        self._port_info = PortInfo(port=port, baudrate=baudrate)
        self._serial: serial.Serial | None = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def port_info(self) -> PortInfo:
        return self._port_info

    def open(self) -> PortInfo:
        """Open the serial port in non-blocking mode.

        Raises:
            ConnectionError: If the port cannot be opened.
        """
        try:
            self._serial = serial.Serial(
                self._port_info.port,
                self._port_info.baudrate,
                timeout=0,
            )
            self._serial.reset_input_buffer()
        except (serial.SerialException, OSError) as e:
            self._serial = None
            raise ConnectionError(
                f"Could not open uLanding serial port {self._port_info.port} "
                f"at {self._port_info.baudrate} baud. "
                f"Ensure the sensor is wired and you have permissions. "
                f"Last error: {e}"
            ) from e

        self._connected = True
        logger.info(
            "Opened %s at %d baud", self._port_info.port, self._port_info.baudrate
        )
        return self._port_info

    def close(self) -> None:
        """Close the serial port."""
        if not self._connected:
            return

        try:
            self._serial.close()
        except (serial.SerialException, OSError) as e:
            logger.warning("Error closing serial port: %s", e)
        finally:
            self._serial = None
            self._connected = False
            logger.info("Disconnected")

    def available(self) -> int:
        """Number of bytes buffered by the driver.

        A driver error ends the session: the connection is closed and 0 is
        returned so the current poll sees no data.
        """
        if not self._connected:
            return 0
        try:
            return self._serial.in_waiting
        except (serial.SerialException, OSError) as e:
            logger.warning("Serial port error, closing: %s", e)
            self.close()
            return 0

    def read_next(self) -> int:
        """Read one buffered byte.

        Raises:
            ConnectionError: If not connected, if no byte was buffered, or
                if the driver fails (the connection is closed first).
        """
        if not self._connected:
            raise ConnectionError("Not connected to sensor")

        try:
            data = self._serial.read(1)
        except (serial.SerialException, OSError) as e:
            logger.warning("Serial port error, closing: %s", e)
            self.close()
            raise ConnectionError(f"Serial read failed: {e}") from e
        if not data:
            raise ConnectionError("read_next() called with no bytes buffered")
        return data[0]
