"""Utility functions for the arbitrage scanner."""

from dexarb.utils.math import clamp, format_profit, safe_divide
from dexarb.utils.time import (
    format_duration_us,
    get_timestamp_ms,
    get_timestamp_us,
    utc_now,
)


__all__ = [
    "clamp",
    "format_duration_us",
    "format_profit",
    "get_timestamp_ms",
    "get_timestamp_us",
    "safe_divide",
    "utc_now",
]
