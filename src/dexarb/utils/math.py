"""
Mathematical utilities for opportunity scoring.
"""

from typing import Final


# Epsilon for floating point comparisons
EPSILON: Final[float] = 1e-10


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default on division by zero.

    Args:
        numerator: The dividend.
        denominator: The divisor.
        default: Value to return if denominator is zero.

    Returns:
        Result of division or default value.
    """
    if abs(denominator) < EPSILON:
        return default
    return numerator / denominator


def clamp(value: float, low: float, high: float) -> float:
    """
    Clamp a value into the closed interval [low, high].

    Example:
        >>> clamp(7.5, 0.1, 6.0)
        6.0
    """
    return min(high, max(low, value))


def format_profit(profit_pct: float) -> str:
    """
    Format a profit percentage for display.

    Example:
        >>> format_profit(1.23456)
        '+1.2346%'
    """
    sign = "+" if profit_pct >= 0 else ""
    return f"{sign}{profit_pct:.4f}%"
