"""
Metrics collection for scan monitoring.

Tracks scan counters, rolling stage latencies and a summary of the
most recent ranked result set.
"""

import time
from collections import Counter, defaultdict, deque
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any, Final

from dexarb.config.constants import LATENCY_WINDOW_SIZE
from dexarb.core.types import Confidence, OpportunityCandidate
from dexarb.utils.math import safe_divide


# Counter names
SCANS_REQUESTED: Final[str] = "scans_requested"
SCANS_COMPLETED: Final[str] = "scans_completed"
SCANS_REJECTED_BUSY: Final[str] = "scans_rejected_busy"
SCANS_REJECTED_COOLDOWN: Final[str] = "scans_rejected_cooldown"
SCANS_FAILED: Final[str] = "scans_failed"
OBSERVATIONS_RECEIVED: Final[str] = "observations_received"
OBSERVATIONS_VALID: Final[str] = "observations_valid"
CANDIDATES_GENERATED: Final[str] = "candidates_generated"
OPPORTUNITIES_RANKED: Final[str] = "opportunities_ranked"
PERSIST_FAILURES: Final[str] = "persist_failures"

# Latency names
LATENCY_FEED_FETCH: Final[str] = "feed_fetch"
LATENCY_PIPELINE: Final[str] = "pipeline"
LATENCY_SCAN_TOTAL: Final[str] = "scan_total"


@dataclass(slots=True, frozen=True)
class LatencyStats:
    """Order statistics over a window of latency samples, in microseconds."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p95_us: int = 0
    p99_us: int = 0
    count: int = 0

    @classmethod
    def from_samples(cls, samples: Sequence[int]) -> "LatencyStats":
        if not samples:
            return cls()

        ordered = sorted(samples)
        n = len(ordered)
        return cls(
            min_us=ordered[0],
            max_us=ordered[-1],
            avg_us=sum(ordered) / n,
            p50_us=ordered[n // 2],
            p95_us=ordered[int(n * 0.95)],
            p99_us=ordered[int(n * 0.99)],
            count=n,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "min": self.min_us,
            "max": self.max_us,
            "avg": round(self.avg_us, 1),
            "p50": self.p50_us,
            "p95": self.p95_us,
            "p99": self.p99_us,
            "count": self.count,
        }


@dataclass(slots=True, frozen=True)
class ScanSummary:
    """Headline numbers for one ranked result set."""

    total_opportunities: int = 0
    avg_profit_pct: float = 0.0
    total_potential_profit: float = 0.0
    high_confidence_count: int = 0
    executable_count: int = 0
    total_volume: float = 0.0
    scan_time_us: int = 0

    @classmethod
    def from_opportunities(
        cls,
        opportunities: Sequence[OpportunityCandidate],
        scan_time_us: int = 0,
    ) -> "ScanSummary":
        """
        Summarize a ranked result set.

        Args:
            opportunities: Ranked candidates of one scan.
            scan_time_us: Wall time the scan took.
        """
        total = len(opportunities)
        return cls(
            total_opportunities=total,
            avg_profit_pct=safe_divide(sum(o.net_profit_pct for o in opportunities), total),
            total_potential_profit=sum(o.net_profit for o in opportunities),
            high_confidence_count=sum(1 for o in opportunities if o.confidence == Confidence.HIGH),
            executable_count=sum(1 for o in opportunities if o.execution_ready),
            total_volume=sum(o.volume_available for o in opportunities),
            scan_time_us=scan_time_us,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class MetricsCollector:
    """
    Scan counters, rolling stage latencies and the latest result summary.

    Each latency name keeps only its most recent `latency_window_size`
    samples, so stats describe current behaviour rather than all time.
    """

    def __init__(self, latency_window_size: int = LATENCY_WINDOW_SIZE) -> None:
        self._latencies: defaultdict[str, deque[int]] = defaultdict(
            lambda: deque(maxlen=latency_window_size)
        )
        self._counters: Counter[str] = Counter()
        self._last_summary = ScanSummary()
        self._started_at = time.monotonic()

    def record_latency(self, name: str, latency_us: int) -> None:
        """Add a sample to the window of `name` (e.g. LATENCY_PIPELINE)."""
        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        self._counters[name] += value

    def get_counter(self, name: str) -> int:
        return self._counters[name]

    def record_summary(self, summary: ScanSummary) -> None:
        """Remember the summary of the latest completed scan."""
        self._last_summary = summary

    def get_latency_stats(self, name: str) -> LatencyStats:
        """Stats for one latency name; empty if it was never recorded."""
        return LatencyStats.from_samples(self._latencies.get(name, ()))

    @property
    def last_summary(self) -> ScanSummary:
        return self._last_summary

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_at

    def to_dict(self) -> dict[str, Any]:
        """Snapshot for the status view."""
        return {
            "uptime_seconds": round(self.uptime_seconds, 1),
            "counters": dict(self._counters),
            "latencies": {
                name: LatencyStats.from_samples(samples).to_dict()
                for name, samples in self._latencies.items()
            },
            "last_scan": self._last_summary.to_dict(),
        }
