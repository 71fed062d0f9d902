"""
Binance REST Connector

Authenticated REST dispatch for the Binance spot API.

Structure:
    exchanges/binance/
    ├── endpoints.py     # Declarative endpoint table (method, path, security, params)
    ├── connection.py    # Shared pooled transport + atomic proxy reconfiguration
    ├── signer.py        # HMAC-SHA256 request signing
    ├── auth.py          # Credentials and credential-bound transports
    ├── dispatcher.py    # Blocking and callback execution, response decoding
    ├── errors.py        # Error body / transport failure translation
    ├── exceptions.py    # Exception hierarchy
    ├── api_client.py    # Blocking facade
    ├── async_client.py  # Callback facade
    └── factory.py       # Client factory
"""

from .exceptions import (
    BinanceApiException,
    ConfigurationError,
    ValidationError,
    NetworkError,
    ApiError,
    SerializationError,
)
from .endpoints import EndpointSpec, SecurityClass
from .connection import ConnectionManager, ProxyConfig, connection_manager
from .signer import RequestSigner
from .auth import Credentials, CredentialBinder, AuthenticatedTransport
from .errors import StructuredError, ErrorCategory
from .dispatcher import Dispatcher, PreparedRequest, ApiCallback, FunctionCallback
from .api_client import BinanceApiRestClient
from .async_client import BinanceApiAsyncRestClient
from .factory import BinanceApiClientFactory

__all__ = [
    "BinanceApiException",
    "ConfigurationError",
    "ValidationError",
    "NetworkError",
    "ApiError",
    "SerializationError",
    "EndpointSpec",
    "SecurityClass",
    "ConnectionManager",
    "ProxyConfig",
    "connection_manager",
    "RequestSigner",
    "Credentials",
    "CredentialBinder",
    "AuthenticatedTransport",
    "StructuredError",
    "ErrorCategory",
    "Dispatcher",
    "PreparedRequest",
    "ApiCallback",
    "FunctionCallback",
    "BinanceApiRestClient",
    "BinanceApiAsyncRestClient",
    "BinanceApiClientFactory",
]
