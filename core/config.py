"""
Configuration Management Module

This module handles loading, validating, and providing access to client configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Provides type-safe access to REST endpoints, pool limits and timeouts
- Optional proxy settings for the shared HTTP transport
- Default receive window used by signed requests

Usage:
    from core.config import settings

    print(settings.api_base_url)
    print(settings.default_recv_window)
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Client Settings

    Values are automatically loaded from environment variables or .env file.

    Attributes:
        binance_base_url: Base URL for the Binance spot REST API
        binance_testnet_url: Base URL for the spot test network
        use_testnet: Route requests to the test network
        binance_api_key: API key (optional, not needed for public endpoints)
        binance_secret_key: Secret key (optional, not needed for public endpoints)
        request_timeout: Timeout for HTTP requests in seconds
        max_connections: Total pooled connections across all hosts
        max_connections_per_host: Pooled connections kept alive per host
        ping_interval: Seconds an idle pooled connection is trusted before it is dropped
        callback_workers: Worker threads shared by all callback-mode calls
        default_recv_window: Receive window (ms) applied to signed requests
        proxy_host: Optional HTTP proxy host for the shared transport
        proxy_port: Optional HTTP proxy port
        proxy_login: Optional proxy login
        proxy_password: Optional proxy password
    """

    # ============================================
    # Binance API Configuration
    # ============================================

    binance_base_url: str = Field(
        default="https://api.binance.com",
        description="Binance spot REST API base URL"
    )

    binance_testnet_url: str = Field(
        default="https://testnet.binance.vision",
        description="Binance spot test network base URL"
    )

    use_testnet: bool = Field(
        default=False,
        description="Send requests to the test network instead of production"
    )

    binance_api_key: str = Field(
        default="",
        description="Binance API key (optional for public endpoints)"
    )

    binance_secret_key: str = Field(
        default="",
        description="Binance secret key (optional for public endpoints)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # ============================================
    # Transport & Performance
    # ============================================

    request_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds"
    )

    max_connections: int = Field(
        default=500,
        description="Maximum concurrent pooled connections in total"
    )

    max_connections_per_host: int = Field(
        default=500,
        description="Maximum pooled connections kept alive per remote host"
    )

    ping_interval: float = Field(
        default=20.0,
        description="Idle connection liveness window in seconds"
    )

    callback_workers: int = Field(
        default=16,
        description="Worker threads for callback-mode requests"
    )

    # ============================================
    # Signed Request Configuration
    # ============================================

    default_recv_window: int = Field(
        default=60_000,
        description="Default receive window in milliseconds for signed requests"
    )

    # ============================================
    # Proxy Configuration
    # ============================================

    proxy_host: Optional[str] = Field(
        default=None,
        description="HTTP proxy host (empty = direct connection)"
    )

    proxy_port: Optional[int] = Field(
        default=None,
        description="HTTP proxy port"
    )

    proxy_login: Optional[str] = Field(
        default=None,
        description="HTTP proxy login"
    )

    proxy_password: Optional[str] = Field(
        default=None,
        description="HTTP proxy password"
    )

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        # Look for .env file in the project root
        env_file=".env",
        # Ignore extra fields in .env that aren't defined here
        extra="ignore",
        # Case-insensitive environment variable matching
        case_sensitive=False
    )

    @property
    def api_base_url(self) -> str:
        """
        Base URL requests are sent to.

        Returns:
            Testnet URL when use_testnet is set, otherwise the production URL
        """
        return self.binance_testnet_url if self.use_testnet else self.binance_base_url

    @property
    def use_proxy(self) -> bool:
        """Check if a proxy is configured."""
        return bool(self.proxy_host)


# ============================================
# Global Settings Instance
# ============================================

# Loaded once and shared by every module
settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration() -> None:
    """
    Validate critical configuration settings.

    Raises:
        ValueError: If configuration is missing or invalid
    """
    # Import logger here to avoid circular import
    # (logging.py imports config.py, so we can't import at module level)
    from core.logging import logger

    for name in ("binance_base_url", "binance_testnet_url"):
        url = getattr(settings, name)
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"{name.upper()} must be an http(s) URL, got '{url}'")

    if bool(settings.binance_api_key) != bool(settings.binance_secret_key):
        raise ValueError(
            "BINANCE_API_KEY and BINANCE_SECRET_KEY must be set together "
            "(or both left empty for public access)"
        )

    if settings.request_timeout <= 0:
        raise ValueError(f"Invalid REQUEST_TIMEOUT: {settings.request_timeout}. Must be positive")

    if settings.max_connections < 1 or settings.max_connections_per_host < 1:
        raise ValueError("MAX_CONNECTIONS and MAX_CONNECTIONS_PER_HOST must be at least 1")

    if settings.max_connections_per_host > settings.max_connections:
        raise ValueError(
            f"MAX_CONNECTIONS_PER_HOST ({settings.max_connections_per_host}) "
            f"cannot exceed MAX_CONNECTIONS ({settings.max_connections})"
        )

    if settings.callback_workers < 1:
        raise ValueError(f"Invalid CALLBACK_WORKERS: {settings.callback_workers}. Must be at least 1")

    # Binance rejects receive windows above 60 seconds
    if not (1 <= settings.default_recv_window <= 60_000):
        raise ValueError(
            f"Invalid DEFAULT_RECV_WINDOW: {settings.default_recv_window}. "
            f"Must be between 1 and 60000 milliseconds"
        )

    if settings.use_proxy and settings.proxy_port is None:
        raise ValueError("PROXY_PORT is required when PROXY_HOST is set")

    if settings.proxy_port is not None and not (1 <= settings.proxy_port <= 65535):
        raise ValueError(f"Invalid PROXY_PORT: {settings.proxy_port}. Must be between 1 and 65535")

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if settings.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{settings.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    logger.info("Configuration validated successfully")
    logger.info(f"Binance API: {settings.api_base_url}")
    logger.info(f"Connection pool: {settings.max_connections} total, {settings.max_connections_per_host} per host")
    logger.info(f"Proxy: {settings.proxy_host}:{settings.proxy_port}" if settings.use_proxy else "Proxy: none")
    logger.info(f"Log level: {settings.log_level.upper()}")
