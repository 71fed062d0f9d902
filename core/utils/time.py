"""
Time Utilities

Binance speaks milliseconds since epoch everywhere: signed requests carry a
`timestamp` in ms and responses report server/transaction times in ms.
These helpers convert between those integers and timezone-aware datetimes.
"""

import time
from datetime import datetime, timezone
from typing import Union


def current_timestamp_ms() -> int:
    """
    Get the current wall-clock time in milliseconds since epoch.

    This is the value placed in the `timestamp` parameter of signed requests.

    Example:
        >>> current_timestamp_ms()
        1704110400123
    """
    return time.time_ns() // 1_000_000


def to_utc_datetime(timestamp_ms: Union[int, float]) -> datetime:
    """
    Convert a Binance millisecond timestamp to a UTC datetime.

    Args:
        timestamp_ms: Unix timestamp in milliseconds

    Returns:
        datetime: Timezone-aware datetime object in UTC

    Raises:
        ValueError: If timestamp is negative or out of range

    Examples:
        >>> to_utc_datetime(1704110400000)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    """
    if timestamp_ms < 0:
        raise ValueError(f"Timestamp cannot be negative: {timestamp_ms}")

    try:
        return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Invalid timestamp: {timestamp_ms}. Error: {e}")


def datetime_to_timestamp_ms(dt: datetime) -> int:
    """
    Convert a datetime to milliseconds since epoch.

    Naive datetimes are assumed to be UTC.

    Examples:
        >>> datetime_to_timestamp_ms(datetime(2024, 1, 1, 12, tzinfo=timezone.utc))
        1704110400000
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return int(dt.timestamp() * 1000)
