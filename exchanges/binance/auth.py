"""
Credential Binding

A client built with credentials gets its own transport: the shared pooled
transport wrapped with an ordered list of request transforms. The list is
composed once, when the client is constructed, and applied to every request
before it leaves the process:

    1. api_key_header  - X-MBX-APIKEY on API_KEY and SIGNED endpoints
    2. signature       - HMAC signature on SIGNED endpoints

A client built without credentials uses the shared transport unmodified.

The endpoint's security class travels with each request in the
SECURITY_EXTENSION request extension, set by the dispatcher.
"""

from typing import Callable, Optional, Sequence, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field

from core.logging import get_logger
from exchanges.binance.connection import ConnectionManager, connection_manager
from exchanges.binance.endpoints import SecurityClass
from exchanges.binance.exceptions import ConfigurationError
from exchanges.binance.signer import RequestSigner

logger = get_logger(__name__)

API_KEY_HEADER = "X-MBX-APIKEY"
SECURITY_EXTENSION = "binance_security"

RequestTransform = Callable[[httpx.Request, SecurityClass], httpx.Request]


class Credentials(BaseModel):
    """
    Immutable API key / secret pair.

    Use Credentials.of() to build from possibly-empty values: it returns None
    for anonymous access and rejects half-filled pairs.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(..., min_length=1)
    secret: str = Field(..., min_length=1, repr=False)

    @classmethod
    def of(cls, api_key: Optional[str], secret: Optional[str]) -> Optional["Credentials"]:
        """
        Build credentials, or None when both values are absent.

        Raises:
            ConfigurationError: If only one of the pair is supplied
        """
        if not api_key and not secret:
            return None
        if not api_key or not secret:
            raise ConfigurationError("API key and secret must be supplied together")
        return cls(api_key=api_key, secret=secret)


# ============================================
# Request Transforms
# ============================================

def api_key_header(api_key: str) -> RequestTransform:
    """Transform adding the API key header to API_KEY and SIGNED requests."""

    def apply(request: httpx.Request, security: SecurityClass) -> httpx.Request:
        if security.requires_api_key:
            request.headers[API_KEY_HEADER] = api_key
        return request

    return apply


def signature(signer: RequestSigner) -> RequestTransform:
    """
    Transform signing SIGNED requests.

    The query string is rebuilt from the request's parameters in their
    insertion order and the signature appended, so the bytes sent are exactly
    the bytes signed.
    """

    def apply(request: httpx.Request, security: SecurityClass) -> httpx.Request:
        if security is SecurityClass.SIGNED:
            query = signer.signed_query(request.url.params.multi_items())
            base = str(request.url).split("?", 1)[0]
            request.url = httpx.URL(f"{base}?{query}")
        return request

    return apply


# ============================================
# Authenticated Transport
# ============================================

class AuthenticatedTransport(httpx.BaseTransport):
    """
    Transport that runs request transforms, then delegates to a shared transport.

    Immutable after construction. Closing it leaves the wrapped shared
    transport open.

    Attributes:
        inner: The shared transport this instance was derived from
        transforms: Ordered request transforms
    """

    def __init__(self, inner: httpx.BaseTransport, transforms: Sequence[RequestTransform]):
        self._inner = inner
        self._transforms: Tuple[RequestTransform, ...] = tuple(transforms)

    @property
    def inner(self) -> httpx.BaseTransport:
        return self._inner

    @property
    def transforms(self) -> Tuple[RequestTransform, ...]:
        return self._transforms

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        security = request.extensions.get(SECURITY_EXTENSION, SecurityClass.NONE)
        for transform in self._transforms:
            request = transform(request, security)
        return self._inner.handle_request(request)

    def close(self) -> None:
        # Shared transport is owned by the ConnectionManager
        pass


class CredentialBinder:
    """
    Derives the transport a client instance uses for its lifetime.

    Example:
        >>> binder = CredentialBinder()
        >>> binder.bind(None) is connection_manager.current_transport()
        True
        >>> transport = binder.bind(Credentials(api_key="key", secret="secret"))
        >>> isinstance(transport, AuthenticatedTransport)
        True
    """

    def __init__(self, manager: ConnectionManager = connection_manager):
        self._manager = manager

    def bind(self, credentials: Optional[Credentials]) -> httpx.BaseTransport:
        """
        Derive a transport for the given credentials.

        Args:
            credentials: Credentials, or None for anonymous access

        Returns:
            The shared transport (anonymous) or an AuthenticatedTransport
            wrapping it (credentialed)
        """
        shared = self._manager.current_transport()
        if credentials is None:
            logger.debug("Anonymous client bound to shared transport")
            return shared

        transforms = (
            api_key_header(credentials.api_key),
            signature(RequestSigner(credentials.secret)),
        )
        logger.debug("Authenticated transport derived from shared transport")
        return AuthenticatedTransport(shared, transforms)

    def bind_keys(self, api_key: Optional[str], secret: Optional[str]) -> httpx.BaseTransport:
        """
        Derive a transport from raw key/secret values.

        Raises:
            ConfigurationError: If only one of the pair is supplied
        """
        return self.bind(Credentials.of(api_key, secret))
