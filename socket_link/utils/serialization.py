"""
Wire message serialization

Messages are JSON objects, one per line. This module defines the two message
shapes and converts between them and raw newline-delimited frames.
"""

import json
from typing import Any, Dict, TypedDict, Union

FRAME_DELIMITER = b"\n"


class MessageOk(TypedDict, total=False):
    """Successful message. Every request gets an ``id`` assigned by the server."""
    id: str
    body: Any
    emptyResponse: bool


class MessageError(TypedDict, total=False):
    """Error message produced by a failed handler or an unparsable frame."""
    id: str
    error: str
    type: str
    invalidResponse: str
    stack: str
    details: Any


Message = Union[MessageOk, MessageError]


def empty_message() -> MessageOk:
    """Message yielded for an empty frame (heartbeat / no-op)"""
    return {"body": None, "emptyResponse": True}


def is_error_message(message: Dict[str, Any]) -> bool:
    """Check whether a message is the error variant

    Args:
        message: Parsed wire message

    Returns:
        bool: True if the message carries an ``error`` field
    """
    return "error" in message


def encode_message(message: Dict[str, Any]) -> bytes:
    """Encode a message as a single newline-terminated frame

    The JSON encoder escapes control characters, so the payload itself never
    contains the frame delimiter.

    Args:
        message: Message dictionary

    Returns:
        bytes: UTF-8 frame with trailing newline

    Raises:
        TypeError: The message contains values JSON cannot represent
        ValueError: The message contains circular references or NaN-like values
    """
    return json.dumps(message, separators=(",", ":"), allow_nan=False).encode("utf-8") + FRAME_DELIMITER


def parse_frame(raw: bytes) -> Message:
    """Parse one raw frame (without its delimiter) into a message

    Never raises: malformed frames are returned as error messages carrying the
    original text in ``invalidResponse``.

    Args:
        raw: Frame bytes

    Returns:
        Message: Parsed message, heartbeat message or error message
    """
    if not raw:
        return empty_message()

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        return {
            "error": str(e),
            "type": type(e).__name__,
            "invalidResponse": raw.decode("utf-8", errors="replace"),
        }

    try:
        message = json.loads(text)
    except ValueError as e:
        return {"error": str(e), "type": type(e).__name__, "invalidResponse": text}

    if not isinstance(message, dict):
        return {
            "error": f"Message must be a JSON object, got {type(message).__name__}",
            "type": "TypeError",
            "invalidResponse": text,
        }

    return message
