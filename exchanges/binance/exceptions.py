"""
Binance Client Exceptions

Every failure surfaced by the client is a BinanceApiException subclass, so
callers can catch one type in blocking mode and receive one type in the
failure callback of callback mode.

Hierarchy:
    BinanceApiException
    ├── ConfigurationError   malformed credentials or proxy settings (construction time)
    ├── ValidationError      signed request missing timestamp/recvWindow (before any I/O)
    ├── NetworkError         no response obtained (refused, reset, timeout, DNS)
    ├── ApiError             non-2xx response, carries the decoded StructuredError
    └── SerializationError   2xx response whose body could not be decoded

Nothing here is retried automatically.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from exchanges.binance.errors import StructuredError


class BinanceApiException(Exception):
    """Base class for all client errors"""


class ConfigurationError(BinanceApiException):
    """Credentials or proxy settings are malformed"""


class ValidationError(BinanceApiException):
    """A request is missing fields required before it can be sent"""


class NetworkError(BinanceApiException):
    """
    Transport-level failure: no HTTP response was received.

    Attributes:
        reason: Low-level I/O failure description
    """

    def __init__(self, reason: str):
        super().__init__(f"Network failure: {reason}")
        self.reason = reason


class ApiError(BinanceApiException):
    """
    The exchange answered with a non-2xx status.

    Attributes:
        status_code: HTTP status of the response
        error: Decoded {code, msg} body, or None if the body was not decodable
        body: Raw response text
    """

    def __init__(self, status_code: int, error: Optional["StructuredError"] = None, body: str = ""):
        if error is not None:
            message = f"HTTP {status_code}: [{error.code}] {error.message}"
        else:
            message = f"HTTP {status_code}: {body or '<empty body>'}"
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.body = body

    @property
    def code(self) -> Optional[int]:
        """Binance error code, if the body was decodable"""
        return self.error.code if self.error is not None else None


class SerializationError(BinanceApiException):
    """A successful response body could not be decoded into the expected type"""

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body
