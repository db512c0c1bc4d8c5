"""Telemetry module for logging and metrics."""

from dexarb.telemetry.logger import AsyncLogger, setup_logging
from dexarb.telemetry.metrics import LatencyStats, MetricsCollector, ScanSummary


__all__ = [
    "AsyncLogger",
    "LatencyStats",
    "MetricsCollector",
    "ScanSummary",
    "setup_logging",
]
