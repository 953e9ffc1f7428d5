from .byte_range import ByteRange, parse_range, parse_range_header
from .exceptions import FileServerBindException, StreamingException
from .registry import ActiveFileRegistry
from .responder import STREAMING_THRESHOLD, StreamingResponder

__all__ = [
    "ActiveFileRegistry",
    "ByteRange",
    "FileServerBindException",
    "STREAMING_THRESHOLD",
    "StreamingException",
    "StreamingResponder",
    "parse_range",
    "parse_range_header",
]
