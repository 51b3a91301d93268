"""
Tests for the error codec
"""
import json

from socket_link.errors import ErrorResponse, RemoteError, decode_error, encode_error


def _raise_and_catch(exc):
    try:
        raise exc
    except Exception as e:
        return e


class TestEncodeError:
    """Test encoding of thrown values"""

    def test_error_response_with_details(self):
        """Application errors carry their details"""
        message = encode_error(ErrorResponse("Name is invalid", {"name": "socket"}))
        assert message == {
            "error": "Name is invalid",
            "type": "ErrorResponse",
            "details": {"name": "socket"},
        }

    def test_error_response_never_has_stack(self):
        error = _raise_and_catch(ErrorResponse("nope"))
        message = encode_error(error, trace_errors=True)
        assert "stack" not in message
        assert "details" not in message

    def test_exception_without_trace(self):
        message = encode_error(_raise_and_catch(ValueError("bad value")))
        assert message == {"error": "bad value", "type": "ValueError"}

    def test_exception_with_trace(self):
        """Tracebacks are included only when requested"""
        message = encode_error(_raise_and_catch(KeyError("k")), trace_errors=True)
        assert message["type"] == "KeyError"
        assert "Traceback" in message["stack"]
        assert "_raise_and_catch" in message["stack"]

    def test_string(self):
        assert encode_error("plain failure") == {"error": "plain failure", "type": "string"}

    def test_none(self):
        message = encode_error(None)
        assert message["error"] == "unknown error"
        assert message["type"] == "unknown"

    def test_arbitrary_value(self):
        message = encode_error({"code": 7})
        assert message["type"] == "object"
        assert message["details"] == {"code": 7}

    def test_details_made_json_safe(self):
        """Details JSON cannot represent are replaced by their repr"""
        message = encode_error(ErrorResponse("odd", {1, 2}))
        assert message["details"] == repr({1, 2})
        json.dumps(message)

    def test_non_finite_details_made_json_safe(self):
        message = encode_error(ErrorResponse("odd", {"ratio": float("nan")}))
        assert message["details"] == repr({"ratio": float("nan")})
        json.dumps(message, allow_nan=False)


class TestDecodeError:
    """Test decoding into RemoteError"""

    def test_fields(self):
        error = decode_error({
            "id": "svc.0.3",
            "error": "Name is invalid",
            "type": "ErrorResponse",
            "details": {"name": "socket"},
        })
        assert isinstance(error, RemoteError)
        assert str(error) == "Name is invalid"
        assert error.message == "Name is invalid"
        assert error.type == "ErrorResponse"
        assert error.details == {"name": "socket"}
        assert error.id == "svc.0.3"
        assert error.stack == ""

    def test_stack_prefixed_with_type(self):
        error = decode_error({"error": "boom", "type": "ValueError", "stack": "Traceback ..."})
        assert error.stack == "ValueError: Traceback ..."

    def test_invalid_response(self):
        error = decode_error({"error": "Expecting value", "type": "JSONDecodeError", "invalidResponse": "oops"})
        assert error.invalid_response == "oops"

    def test_extra_fields_attached(self):
        error = decode_error({"error": "boom", "type": "x", "retryAfter": 5})
        assert error.retryAfter == 5

    def test_repr(self):
        error = decode_error({"error": "boom", "type": "ValueError"})
        assert repr(error) == "RemoteError(type='ValueError', message='boom', details=None)"
