"""
Shared Connection Management

One pooled HTTP transport is shared by every client in the process. Clients
never own it; they derive their own (credential-bound) transport from whatever
shared instance is current when they are constructed.

Pooling:
    - httpx.Limits bounds the connections in total and the keep-alive
      connections per host
    - keepalive_expiry drops idle pooled connections after `ping_interval`
      seconds so a dead connection is never reused

Reconfiguration:
    reconfigure() builds a complete new transport first and only then swaps the
    reference under a lock. Readers either see the old transport or the new
    one. The old transport is left open: clients derived from it keep using it.

Usage:
    from exchanges.binance.connection import connection_manager, ProxyConfig

    transport = connection_manager.current_transport()
    connection_manager.reconfigure(ProxyConfig(host="10.0.0.1", port=3128))
"""

import threading
import urllib.request
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from core.config import settings
from core.logging import get_logger
from exchanges.binance.exceptions import ConfigurationError

logger = get_logger(__name__)


class ProxyConfig(BaseModel):
    """
    HTTP proxy descriptor for the shared transport.

    Attributes:
        host: Proxy host name or IP
        port: Proxy port (accepts "3128" or 3128)
        login: Optional proxy login
        password: Optional proxy password
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)
    login: Optional[str] = None
    password: Optional[str] = None

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        v = v.strip()
        if not v or any(c in v for c in "/@: "):
            raise ValueError(f"malformed proxy host: '{v}'")
        return v

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def to_httpx(self) -> httpx.Proxy:
        auth = (self.login, self.password or "") if self.login else None
        return httpx.Proxy(self.url, auth=auth)

    @classmethod
    def parse(cls, host, port, login: Optional[str] = None, password: Optional[str] = None) -> "ProxyConfig":
        """
        Build a descriptor from loosely typed values.

        Raises:
            ConfigurationError: If host or port cannot be parsed
        """
        try:
            return cls(host=host, port=port, login=login, password=password)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid proxy settings ({host}:{port}): {e}") from e


ProxySetting = Union[ProxyConfig, httpx.Proxy, Mapping[str, Any], None]


def _system_proxy() -> Optional[httpx.Proxy]:
    """HTTPS proxy from the process environment, if any."""
    url = urllib.request.getproxies().get("https")
    return httpx.Proxy(url) if url else None


def build_transport(proxy: ProxySetting = None) -> httpx.HTTPTransport:
    """
    Construct a pooled transport.

    Args:
        proxy: Explicit proxy, or None for system defaults (environment proxy
               without explicit authentication, or a direct connection)

    Returns:
        httpx.HTTPTransport: A new transport with its own connection pool
    """
    if isinstance(proxy, ProxyConfig):
        proxy = proxy.to_httpx()
    elif proxy is None:
        proxy = _system_proxy()

    limits = httpx.Limits(
        max_connections=settings.max_connections,
        max_keepalive_connections=settings.max_connections_per_host,
        keepalive_expiry=settings.ping_interval,
    )
    return httpx.HTTPTransport(limits=limits, proxy=proxy)


class ConnectionManager:
    """
    Owner of the process-wide shared transport and callback worker pool.

    Attributes:
        generation: Incremented on every successful reconfigure()

    Example:
        >>> manager = ConnectionManager()
        >>> old = manager.current_transport()
        >>> manager.reconfigure(ProxyConfig(host="proxy.local", port=8080))
        >>> manager.current_transport() is old
        False
    """

    def __init__(self, transport_factory: Callable[[ProxySetting], httpx.BaseTransport] = build_transport):
        self._transport_factory = transport_factory
        self._lock = threading.Lock()
        self._transport: Optional[httpx.BaseTransport] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self.generation = 0

    # ============================================
    # Shared Transport
    # ============================================

    def current_transport(self) -> httpx.BaseTransport:
        """
        Return the currently active shared transport.

        The first call builds the default transport (configured proxy from
        settings, or system defaults). Later calls only read the reference.
        """
        transport = self._transport
        if transport is not None:
            return transport

        with self._lock:
            if self._transport is None:
                self._transport = self._transport_factory(_settings_proxy())
                logger.debug("Shared transport created")
            return self._transport

    def reconfigure(self, proxy: ProxySetting = None) -> None:
        """
        Atomically replace the shared transport.

        Args:
            proxy: New proxy settings: a ProxyConfig, an httpx.Proxy, a mapping
                   with host/port/login/password keys, or None for system defaults

        Raises:
            ConfigurationError: If the proxy settings are malformed. The
                previous shared transport stays active.

        Notes:
            Transports derived before this call keep the instance they wrapped.
            A mapping without host and port is the same as None.
        """
        if isinstance(proxy, Mapping) and not proxy.get("host") and not proxy.get("port"):
            proxy = None
        elif isinstance(proxy, Mapping):
            proxy = ProxyConfig.parse(
                proxy.get("host"),
                proxy.get("port"),
                proxy.get("login"),
                proxy.get("password"),
            )
        elif proxy is not None and not isinstance(proxy, (ProxyConfig, httpx.Proxy)):
            raise ConfigurationError(f"Unsupported proxy descriptor: {proxy!r}")

        try:
            new_transport = self._transport_factory(proxy)
        except (ValueError, TypeError, httpx.InvalidURL) as e:
            raise ConfigurationError(f"Cannot build transport for proxy {proxy!r}: {e}") from e

        with self._lock:
            self._transport = new_transport
            self.generation += 1

        if isinstance(proxy, ProxyConfig):
            logger.info(f"Shared transport reconfigured with proxy {proxy.host}:{proxy.port}")
        else:
            logger.info("Shared transport reconfigured")

    # ============================================
    # Callback Worker Pool
    # ============================================

    def executor(self) -> ThreadPoolExecutor:
        """Bounded worker pool shared by all callback-mode calls."""
        executor = self._executor
        if executor is not None:
            return executor

        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=settings.callback_workers,
                    thread_name_prefix="binance-callback",
                )
            return self._executor

    def reset(self) -> None:
        """
        Drop the shared transport and worker pool.

        The next current_transport()/executor() call builds fresh ones.
        Intended for tests and process shutdown.
        """
        with self._lock:
            transport, self._transport = self._transport, None
            executor, self._executor = self._executor, None

        if executor is not None:
            executor.shutdown(wait=True)
        if transport is not None:
            transport.close()


def _settings_proxy() -> ProxySetting:
    if not settings.use_proxy:
        return None
    return ProxyConfig.parse(
        settings.proxy_host,
        settings.proxy_port,
        settings.proxy_login,
        settings.proxy_password,
    )


# ============================================
# Global Connection Manager Instance
# ============================================

connection_manager = ConnectionManager()
