"""
Unified Logging Configuration

This module sets up a centralized logging system for the client library.
All modules should import and use the logger from this module instead of
using print() statements.

Usage:
    from core.logging import get_logger

    logger = get_logger(__name__)
    logger.debug("Detailed debugging information")
    logger.info("General informational messages")

Log Levels (from most to least verbose):
    DEBUG    - Request/response traces (e.g., "API Request: GET /api/v3/depth ...")
    INFO     - Lifecycle messages (e.g., "Shared transport reconfigured")
    WARNING  - Recoverable issues
    ERROR    - Failed calls (e.g., "GET /api/v3/order failed: -1021")

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env file.

Never log API secrets or request signatures.
"""

import logging
import sys
from typing import Optional, Sequence, Tuple, Any


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the library logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include module name in log messages

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Client started")
        2024-01-01 12:00:00 [INFO] binance_rest: Client started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    level = getattr(logging, log_level.upper(), logging.INFO)

    # Handler lives on the binance_rest namespace; the root logger is left alone
    logger = logging.getLogger("binance_rest")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
    logger.propagate = False

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level if hasattr(settings, 'log_level') else "INFO"
except ImportError:
    log_level = "INFO"

logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module or component.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: Logger instance for the specified name

    Example:
        # In exchanges/binance/dispatcher.py:
        logger = get_logger(__name__)  # "binance_rest.exchanges.binance.dispatcher"
    """
    return logging.getLogger(f"binance_rest.{name}")


def set_log_level(level: str) -> None:
    """
    Change the log level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(method: str, endpoint: str, params: Optional[Sequence[Tuple[str, Any]]] = None) -> None:
    """
    Log an API request with consistent formatting.

    Args:
        method: HTTP method
        endpoint: API endpoint path
        params: Ordered request parameters (optional)

    Example:
        >>> log_api_request("GET", "/api/v3/depth", [("symbol", "BTCUSDT"), ("limit", 5)])
        [DEBUG] API Request: GET /api/v3/depth | Params: symbol=BTCUSDT, limit=5
    """
    if params:
        rendered = ", ".join(f"{key}={value}" for key, value in params)
        logger.debug(f"API Request: {method} {endpoint} | Params: {rendered}")
    else:
        logger.debug(f"API Request: {method} {endpoint}")


def log_api_response(method: str, endpoint: str, status: int, response_time: Optional[float] = None) -> None:
    """
    Log an API response with status and timing information.

    Args:
        method: HTTP method
        endpoint: API endpoint path
        status: HTTP status code
        response_time: Response time in seconds (optional)

    Example:
        >>> log_api_response("GET", "/api/v3/depth", 200, 0.342)
        [DEBUG] API Response: GET /api/v3/depth | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {method} {endpoint} | Status: {status}{time_str}")


logger.debug("Logging system initialized")
