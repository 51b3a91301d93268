"""Id generation and wire message serialization helpers."""

from .id_generator import CounterIdGenerator
from .serialization import (
    Message,
    MessageError,
    MessageOk,
    encode_message,
    is_error_message,
    parse_frame
)

__all__ = [
    "CounterIdGenerator",
    "Message",
    "MessageError",
    "MessageOk",
    "encode_message",
    "is_error_message",
    "parse_frame"
]
