"""
Time utilities.

Integer clocks for latency and rate-limit bookkeeping, and aware UTC
datetimes for opportunity lifetimes.
"""

import time
from datetime import UTC, datetime


def get_timestamp_us() -> int:
    """Current Unix time in microseconds."""
    return time.time_ns() // 1000


def get_timestamp_ms() -> int:
    """Current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def format_duration_us(duration_us: int) -> str:
    """
    Render a scan duration for log lines.

    Args:
        duration_us: Duration in microseconds.

    Returns:
        Duration in the largest unit that keeps it readable.

    Examples:
        >>> format_duration_us(850)
        '850μs'
        >>> format_duration_us(42_500)
        '42.50ms'
        >>> format_duration_us(3_250_000)
        '3.25s'
    """
    if duration_us < 1000:
        return f"{duration_us}μs"
    if duration_us < 1_000_000:
        return f"{duration_us / 1000:.2f}ms"
    return f"{duration_us / 1_000_000:.2f}s"
