"""
Request Dispatcher

Executes endpoint calls over a bound transport and delivers typed results.

Flow (identical in both modes):
    prepare  - resolve path template, order parameters, drop absent values,
               check the SIGNED invariant (timestamp + recvWindow present)
    send     - hand the request to the bound transport (credential transforms
               run there), with the configured timeout
    decode   - 2xx: validate the body into the requested type
               non-2xx: ErrorTranslator -> ApiError
               no response: ErrorTranslator -> NetworkError

Execution modes:
    execute()        blocking: returns the result or raises on the calling thread
    execute_async()  callback: runs execute() on the shared worker pool and
                     invokes exactly one of callback.on_response /
                     callback.on_failure, exactly once

Usage:
    dispatcher = Dispatcher(transport, base_url=settings.api_base_url)
    book = dispatcher.execute(endpoints.ORDER_BOOK, OrderBook, symbol="ETHBTC", limit=5)
"""

import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, Generic, List, Optional, Protocol, Tuple, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from core.config import settings
from core.logging import get_logger, log_api_request, log_api_response
from exchanges.binance.auth import SECURITY_EXTENSION
from exchanges.binance.connection import ConnectionManager, connection_manager
from exchanges.binance.endpoints import EndpointSpec, SecurityClass
from exchanges.binance.errors import translate_error_response, translate_transport_error
from exchanges.binance.exceptions import BinanceApiException, SerializationError, ValidationError
from exchanges.binance.signer import RECV_WINDOW_PARAM, TIMESTAMP_PARAM

logger = get_logger(__name__)

T = TypeVar("T")
T_contra = TypeVar("T_contra", contravariant=True)


class ApiCallback(Protocol[T_contra]):
    """Receiver of a callback-mode result"""

    def on_response(self, response: T_contra) -> None: ...

    def on_failure(self, error: BinanceApiException) -> None: ...


@dataclass
class FunctionCallback(Generic[T]):
    """
    ApiCallback built from two plain functions.

    Example:
        >>> callback = FunctionCallback(print, lambda e: print("failed", e))
    """

    response_handler: Callable[[T], None]
    failure_handler: Callable[[BinanceApiException], None]

    def on_response(self, response: T) -> None:
        self.response_handler(response)

    def on_failure(self, error: BinanceApiException) -> None:
        self.failure_handler(error)


@dataclass
class PreparedRequest:
    """
    One resolved call, built fresh per invocation.

    Attributes:
        endpoint: The operation being called
        url: Absolute URL (base URL + resolved path), without query string
        params: Ordered (name, value) pairs; absent values already dropped
        headers: Request headers
    """

    endpoint: EndpointSpec
    url: str
    params: List[Tuple[str, str]] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def method(self) -> str:
        return self.endpoint.method

    def param(self, name: str) -> Optional[str]:
        for key, value in self.params:
            if key == name:
                return value
        return None


def render_value(value: Any) -> str:
    """
    Render one parameter value the way the exchange expects it.

    - bool    -> "true" / "false"
    - Enum    -> its value
    - Decimal -> plain notation (never exponent form)
    - list    -> comma-joined rendered items (path placeholders only; query
                 lists are repeated by Dispatcher.prepare)
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (list, tuple)):
        return ",".join(render_value(item) for item in value)
    return str(value)


@lru_cache(maxsize=256)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


class Dispatcher:
    """
    Executes EndpointSpecs over one bound transport.

    Attributes:
        base_url: Base URL every endpoint path is appended to
        transport: Bound transport (shared or credential-bound)
        timeout: Per-request timeout in seconds

    Example:
        >>> dispatcher = Dispatcher(transport, base_url="https://api.binance.com")
        >>> dispatcher.execute(endpoints.TICKER_PRICE, TickerPrice, symbol="ETHBTC")
        TickerPrice(symbol='ETHBTC', price=Decimal('0.05'))
    """

    def __init__(
        self,
        transport: httpx.BaseTransport,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        manager: ConnectionManager = connection_manager,
    ):
        self.transport = transport
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = httpx.Timeout(timeout if timeout is not None else settings.request_timeout)
        self._manager = manager

    # ============================================
    # Preparation
    # ============================================

    def prepare(self, endpoint: EndpointSpec, **arguments: Any) -> PreparedRequest:
        """
        Resolve an endpoint and arguments into a PreparedRequest.

        Arguments whose value is None are absent and not sent. A list value
        is sent as one pair per item under the same name (asset=BTC&asset=ETH).
        Unknown argument names are rejected.

        Raises:
            ValidationError: Unknown argument, missing path argument, or a
                SIGNED endpoint without timestamp/recvWindow
        """
        path_names = endpoint.path_params
        unknown = set(arguments) - set(endpoint.params) - set(path_names)
        if unknown:
            raise ValidationError(f"{endpoint}: unknown parameter(s): {', '.join(sorted(unknown))}")

        path = endpoint.path
        for name in path_names:
            value = arguments.get(name)
            if value is None:
                raise ValidationError(f"{endpoint}: missing path parameter '{name}'")
            path = path.replace(f"{{{name}}}", quote(render_value(value), safe=""))

        params = []
        for name in endpoint.params:
            value = arguments.get(name)
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                params.extend((name, render_value(item)) for item in value)
            else:
                params.append((name, render_value(value)))

        prepared = PreparedRequest(endpoint=endpoint, url=f"{self.base_url}{path}", params=params)

        if endpoint.security is SecurityClass.SIGNED:
            missing = [name for name in (TIMESTAMP_PARAM, RECV_WINDOW_PARAM) if prepared.param(name) is None]
            if missing:
                raise ValidationError(f"{endpoint}: signed request is missing {', '.join(missing)}")

        return prepared

    # ============================================
    # Blocking Mode
    # ============================================

    def execute(self, endpoint: EndpointSpec, response_type: Optional[Type[T]], **arguments: Any) -> Optional[T]:
        """
        Run a call and block until it completes.

        Args:
            endpoint: Operation to call
            response_type: Type the 2xx body is decoded into; None ignores the body
            **arguments: Parameter values by wire name

        Returns:
            The decoded response (None when response_type is None)

        Raises:
            ValidationError, NetworkError, ApiError, SerializationError
            BinanceApiException: Any other failure, with the original as __cause__
        """
        try:
            prepared = self.prepare(endpoint, **arguments)
            response = self.send(prepared)
            return self.decode(prepared, response, response_type)
        except BinanceApiException:
            raise
        except Exception as e:
            logger.exception(f"{endpoint} raised an unexpected error")
            raise BinanceApiException(f"{endpoint}: unexpected error: {e}") from e

    def send(self, prepared: PreparedRequest) -> httpx.Response:
        """
        Send a prepared request and read the full response.

        Raises:
            NetworkError: If no complete response was received
            SerializationError: If the body cannot be content-decoded
        """
        request = httpx.Request(
            prepared.method,
            prepared.url,
            params=prepared.params,
            headers=prepared.headers,
            extensions={
                SECURITY_EXTENSION: prepared.endpoint.security,
                "timeout": self.timeout.as_dict(),
            },
        )
        log_api_request(prepared.method, prepared.endpoint.path, prepared.params)

        started = time.monotonic()
        try:
            response = self.transport.handle_request(request)
            try:
                response.read()
            finally:
                response.close()
        except httpx.DecodingError as e:
            logger.error(f"{prepared.endpoint} returned a body that cannot be decoded: {e}")
            raise SerializationError(f"{prepared.endpoint}: cannot decode response body: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"{prepared.endpoint} failed before a response was received: {e}")
            raise translate_transport_error(e) from e

        log_api_response(prepared.method, prepared.endpoint.path, response.status_code, time.monotonic() - started)
        return response

    def decode(self, prepared: PreparedRequest, response: httpx.Response, response_type: Optional[Type[T]]) -> Optional[T]:
        """
        Decode a response into the requested type.

        Raises:
            ApiError: Non-2xx status
            SerializationError: 2xx body that does not match response_type
        """
        if not response.is_success:
            error = translate_error_response(response)
            logger.error(f"{prepared.endpoint} failed: {error}")
            raise error

        if response_type is None:
            return None

        try:
            return _adapter(response_type).validate_json(response.content)
        except PydanticValidationError as e:
            raise SerializationError(
                f"{prepared.endpoint}: cannot decode response as {getattr(response_type, '__name__', response_type)}: {e}",
                body=response.text,
            ) from e

    # ============================================
    # Callback Mode
    # ============================================

    def execute_async(
        self,
        endpoint: EndpointSpec,
        response_type: Optional[Type[T]],
        callback: ApiCallback[T],
        **arguments: Any,
    ) -> Future:
        """
        Run a call on the shared worker pool and report through a callback.

        Returns immediately. Exactly one of callback.on_response /
        callback.on_failure is invoked, exactly once, on a worker thread.
        Errors are never raised on the calling thread.

        Returns:
            Future that completes after the callback has run
        """
        executor: Executor = self._manager.executor()
        return executor.submit(self._run_with_callback, endpoint, response_type, callback, arguments)

    def _run_with_callback(
        self,
        endpoint: EndpointSpec,
        response_type: Optional[Type[T]],
        callback: ApiCallback[T],
        arguments: Dict[str, Any],
    ) -> None:
        try:
            result = self.execute(endpoint, response_type, **arguments)
        except BinanceApiException as e:
            callback.on_failure(e)
            return

        try:
            callback.on_response(result)
        except Exception:
            # Failure branch already excluded for this call
            logger.exception(f"Response callback for {endpoint} raised")
