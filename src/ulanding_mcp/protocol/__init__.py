"""Protocol layer: wire formats, version detection and frame decoding."""

from .framing import (
    Frame,
    ProtocolVersion,
    build_legacy_frame,
    build_standard_frame,
    parse_frame,
)
from .session import ProtocolSession
from .detection import VersionDetector
from .decoder import FrameDecoder, PollResult
