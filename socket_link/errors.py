"""
Error codec

Maps exceptions raised by a service handler to the wire error shape and maps
received error messages back to exceptions raised on the client.
"""

import json
import traceback
from typing import Any, Dict, Optional

from socket_link.utils.serialization import MessageError


class ErrorResponse(Exception):
    """Application error carrying a ``details`` payload for the client.

    Raise it from a service handler to deliver structured information with the
    error message, e.g. ``raise ErrorResponse("Name is invalid", {"name": name})``.
    """

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


class RemoteError(Exception):
    """Error reported by the remote service.

    ``str(error)`` is the remote message, ``type`` the remote error kind and
    ``details``/``invalid_response``/``id`` mirror the wire fields.
    """

    def __init__(self, message: MessageError):
        error = message.get("error", "unknown error")
        super().__init__(error)
        self.message = error
        self.type = message.get("type", "unknown")
        stack = message.get("stack")
        self.stack = f"{self.type}: {stack}" if stack else ""
        self.id: Optional[str] = message.get("id")
        self.details: Any = message.get("details")
        self.invalid_response: Optional[str] = message.get("invalidResponse")

        for key, value in message.items():
            if key in ("error", "type", "stack", "id", "details", "invalidResponse"):
                continue
            if key.isidentifier() and not hasattr(self, key):
                setattr(self, key, value)

    def __repr__(self) -> str:
        return f"RemoteError(type={self.type!r}, message={self.message!r}, details={self.details!r})"


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value, allow_nan=False)
    except (TypeError, ValueError):
        return repr(value)
    return value


def encode_error(thrown: Any, trace_errors: bool = False) -> MessageError:
    """Encode a thrown value as an error message

    Rules, first match wins:

    - ``ErrorResponse``: message, class name and details (no stack)
    - other exceptions: message and class name, stack when ``trace_errors``
    - ``str``: the string itself, type ``"string"``
    - ``None``: ``"unknown error"``, type ``"unknown"``
    - anything else: ``str(value)``, type ``"object"``, the value as details

    Args:
        thrown: Exception or arbitrary value raised by a handler
        trace_errors: Include the formatted traceback in ``stack``

    Returns:
        MessageError: Wire error message (without ``id``)
    """
    if isinstance(thrown, ErrorResponse):
        response: MessageError = {"error": str(thrown), "type": type(thrown).__name__}
        if thrown.details is not None:
            response["details"] = _json_safe(thrown.details)
        return response

    if isinstance(thrown, BaseException):
        response = {"error": str(thrown), "type": type(thrown).__name__}
        if trace_errors:
            response["stack"] = "".join(
                traceback.format_exception(type(thrown), thrown, thrown.__traceback__)
            )
        return response

    if isinstance(thrown, str):
        return {"error": thrown, "type": "string"}

    if thrown is None:
        return {"error": "unknown error", "type": "unknown", "details": None}

    return {"error": str(thrown), "type": "object", "details": _json_safe(thrown)}


def decode_error(message: Dict[str, Any]) -> RemoteError:
    """Turn an error message into the exception the client raises

    Args:
        message: Error variant message

    Returns:
        RemoteError: Exception ready to be raised
    """
    return RemoteError(message)
