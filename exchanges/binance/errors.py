"""
Error Translation

Single code path that turns failed exchanges into client exceptions. Both
execution modes of the dispatcher call these functions, so a given failure
produces the same exception whether the call was blocking or callback-based.

Wire format of an exchange error:
    {"code": -1121, "msg": "Invalid symbol."}

Any other body shape (empty, HTML from a WAF, truncated JSON, missing keys)
is treated as undecodable: the ApiError then carries only the HTTP status and
the raw text.

Status categories (Binance REST semantics):
    429      - RATE_LIMITED: request weight or order rate limit exceeded
    418      - IP_BANNED: IP auto-banned after ignoring 429s
    4xx      - REJECTED: malformed or refused request (includes WAF 403)
    5xx      - SERVER: exchange-side failure, execution status unknown
"""

from enum import Enum
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from exchanges.binance.exceptions import ApiError, NetworkError


class ErrorCategory(str, Enum):
    """Classification of a failed response by HTTP status"""
    RATE_LIMITED = "RATE_LIMITED"
    IP_BANNED = "IP_BANNED"
    REJECTED = "REJECTED"
    SERVER = "SERVER"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_status(cls, status_code: int) -> "ErrorCategory":
        if status_code == 429:
            return cls.RATE_LIMITED
        if status_code == 418:
            return cls.IP_BANNED
        if 400 <= status_code < 500:
            return cls.REJECTED
        if 500 <= status_code < 600:
            return cls.SERVER
        return cls.UNKNOWN


class ErrorBody(BaseModel):
    """Exchange error payload; both keys are required and code must be a JSON integer"""

    model_config = ConfigDict(extra="ignore")

    code: int = Field(strict=True)
    msg: str


class StructuredError(BaseModel):
    """
    Decoded exchange error.

    Attributes:
        code: Binance error code (e.g., -1121)
        message: Human readable message from the exchange
        category: Classification derived from the HTTP status
    """

    model_config = ConfigDict(frozen=True)

    code: int
    message: str
    category: ErrorCategory = Field(default=ErrorCategory.UNKNOWN)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


def decode_error_body(body: bytes, status_code: int) -> Optional[StructuredError]:
    """
    Decode an error body into a StructuredError.

    Returns:
        StructuredError, or None if the body is empty or not {code, msg}
    """
    if not body:
        return None
    try:
        payload = ErrorBody.model_validate_json(body)
    except PydanticValidationError:
        return None
    return StructuredError(
        code=payload.code,
        message=payload.msg,
        category=ErrorCategory.from_status(status_code),
    )


def translate_error_response(response: httpx.Response) -> ApiError:
    """
    Convert a non-2xx response into an ApiError.

    The response body must already be read.
    """
    error = decode_error_body(response.content, response.status_code)
    body = "" if error is not None else response.text
    return ApiError(response.status_code, error=error, body=body)


def translate_transport_error(exc: Exception) -> NetworkError:
    """
    Convert a failure that happened before any response was received.

    Timeouts, refused/reset connections, DNS and proxy failures all map here.
    """
    description = str(exc) or exc.__class__.__name__
    if isinstance(exc, httpx.TimeoutException):
        description = f"timeout ({exc.__class__.__name__}): {description}"
    elif isinstance(exc, httpx.HTTPError) and exc.__class__.__name__ not in description:
        description = f"{exc.__class__.__name__}: {description}"
    return NetworkError(description)
