"""
Configuration module for the arbitrage scanner.

Settings live in `dexarb.config.settings` and are imported from there,
since they depend on the core types.
"""

from dexarb.config.constants import (
    DEFAULT_FEE_RATE,
    MAX_RESULTS,
    OPPORTUNITY_TTL_SECONDS,
    SCAN_COOLDOWN_SECONDS,
    SCAN_INTERVAL_SECONDS,
)


__all__ = [
    "DEFAULT_FEE_RATE",
    "MAX_RESULTS",
    "OPPORTUNITY_TTL_SECONDS",
    "SCAN_COOLDOWN_SECONDS",
    "SCAN_INTERVAL_SECONDS",
]
