"""
Unit Tests for Error Translation

Run with:
    pytest tests/unit/test_errors.py -v
"""

import httpx
import pytest

from exchanges.binance.errors import (
    ErrorCategory,
    StructuredError,
    decode_error_body,
    translate_error_response,
    translate_transport_error,
)
from exchanges.binance.exceptions import ApiError, BinanceApiException, NetworkError


class TestErrorCategory:
    """Test status classification"""

    @pytest.mark.parametrize("status, category", [
        (429, ErrorCategory.RATE_LIMITED),
        (418, ErrorCategory.IP_BANNED),
        (400, ErrorCategory.REJECTED),
        (403, ErrorCategory.REJECTED),
        (500, ErrorCategory.SERVER),
        (503, ErrorCategory.SERVER),
        (302, ErrorCategory.UNKNOWN),
    ])
    def test_from_status(self, status, category):
        """Verify HTTP statuses map to the expected category"""
        assert ErrorCategory.from_status(status) is category


class TestDecodeErrorBody:
    """Test decoding of {code, msg} bodies"""

    def test_decodes_exchange_error(self):
        """Verify a well-formed body decodes into code and message"""
        error = decode_error_body(b'{"code": -1121, "msg": "Invalid symbol."}', 400)
        assert error == StructuredError(code=-1121, message="Invalid symbol.", category=ErrorCategory.REJECTED)
        assert str(error) == "[-1121] Invalid symbol."

    @pytest.mark.parametrize("body", [
        b"",
        b"<html>403 Forbidden</html>",
        b'{"code": -1121',
        b'{"msg": "no code"}',
        b'{"code": "abc", "msg": "bad code"}',
        b'{"code": "-1121", "msg": "Invalid symbol."}',
        b'{"code": -1121.5, "msg": "Invalid symbol."}',
        b"[]",
    ])
    def test_undecodable_bodies(self, body):
        """Verify empty, HTML, truncated, incomplete or string-coded bodies give None"""
        assert decode_error_body(body, 400) is None


class TestTranslateErrorResponse:
    """Test non-2xx response translation"""

    def test_structured_error(self):
        """Verify a decodable body produces an ApiError with code and message"""
        response = httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."})
        error = translate_error_response(response)
        assert isinstance(error, ApiError)
        assert error.status_code == 400
        assert error.code == -1121
        assert error.error.message == "Invalid symbol."
        assert "Invalid symbol." in str(error)

    def test_string_code_is_not_structured(self):
        """Verify a quoted code keeps the raw body instead of being coerced"""
        response = httpx.Response(400, content=b'{"code": "-1121", "msg": "Invalid symbol."}')
        error = translate_error_response(response)
        assert error.error is None
        assert error.code is None
        assert '"-1121"' in error.body

    def test_rate_limited(self):
        """Verify 429 is categorized as rate limited"""
        response = httpx.Response(429, json={"code": -1003, "msg": "Too many requests."})
        assert translate_error_response(response).error.category is ErrorCategory.RATE_LIMITED

    def test_undecodable_body_keeps_status_and_text(self):
        """Verify an HTML body yields an ApiError without structured error"""
        response = httpx.Response(502, content=b"<html>Bad Gateway</html>")
        error = translate_error_response(response)
        assert error.status_code == 502
        assert error.error is None
        assert error.code is None
        assert error.body == "<html>Bad Gateway</html>"

    def test_empty_body(self):
        """Verify an empty error body still yields an ApiError"""
        error = translate_error_response(httpx.Response(500))
        assert error.status_code == 500
        assert error.error is None
        assert "<empty body>" in str(error)


class TestTranslateTransportError:
    """Test failures without a response"""

    def test_connect_error(self):
        """Verify a refused connection becomes a NetworkError"""
        error = translate_transport_error(httpx.ConnectError("Connection refused"))
        assert isinstance(error, NetworkError)
        assert isinstance(error, BinanceApiException)
        assert "Connection refused" in error.reason
        assert "ConnectError" in error.reason

    def test_timeout(self):
        """Verify a timeout is described as such"""
        error = translate_transport_error(httpx.ReadTimeout("timed out"))
        assert error.reason.startswith("timeout (ReadTimeout)")

    def test_empty_message_uses_class_name(self):
        """Verify an exception without message is still described"""
        error = translate_transport_error(httpx.RemoteProtocolError(""))
        assert "RemoteProtocolError" in error.reason
