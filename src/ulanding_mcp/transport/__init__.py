"""Transport layer: byte sources for the decoder."""

from .byte_source import ByteSource, MemoryByteSource, drain, load_capture
from .serial_connection import SerialConnection
