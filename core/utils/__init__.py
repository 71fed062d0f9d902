"""
Core Utilities Package

This package contains utility functions and helpers used throughout the library.

Modules:
    - time: Millisecond timestamp helpers for signed requests and responses
"""

from core.utils.time import current_timestamp_ms, to_utc_datetime, datetime_to_timestamp_ms

__all__ = ["current_timestamp_ms", "to_utc_datetime", "datetime_to_timestamp_ms"]
