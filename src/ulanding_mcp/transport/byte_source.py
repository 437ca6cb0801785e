"""Byte source interface consumed by the decoder.

A byte source is non-blocking: ``available()`` reports how many bytes are
buffered right now and ``read_next()`` returns one of them. Bytes read are
gone; nothing is replayable.
"""

from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteSource(Protocol):
    """Non-blocking, single-consumer supplier of raw bytes."""

    def available(self) -> int:
        """Number of bytes that can be read without blocking."""
        ...

    def read_next(self) -> int:
        """Return the next buffered byte (0-255)."""
        ...


def drain(source: ByteSource) -> bytes:
    """Read every byte the source reports as available right now."""
    count = source.available()
    return bytes(source.read_next() for _ in range(count))


class MemoryByteSource:
    """In-memory FIFO byte source.

    Usage::

        source = MemoryByteSource(b"\\xFE\\x01\\x64\\x00\\x00\\x65")
        source.feed(more_bytes)
    """

    def __init__(self, data: bytes = b"") -> None:
        self._buffer: deque[int] = deque(data)

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def available(self) -> int:
        return len(self._buffer)

    def read_next(self) -> int:
        if not self._buffer:
            raise IndexError("read_next() called with no bytes available")
        return self._buffer.popleft()


def load_capture(path: str | Path) -> bytes:
    """Load a raw serial capture (``.bin``) from disk.

    Raises:
        FileNotFoundError: If the capture does not exist.
    """
    return Path(path).read_bytes()
