"""
Scan orchestration.

Runs the fetch -> normalize -> detect -> rank -> persist pipeline under
a mutual-exclusion guard and a minimum cooldown between scan starts,
either on demand or periodically.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from dexarb.config.constants import SCAN_COOLDOWN_SECONDS, SCAN_INTERVAL_SECONDS
from dexarb.config.settings import Settings
from dexarb.core.event_bus import Event, EventBus, EventType
from dexarb.core.types import (
    OpportunityCandidate,
    OpportunitySink,
    PriceFeed,
    PriceObservation,
    ScanState,
    ScanThresholds,
)
from dexarb.strategy.fees import FeeModel
from dexarb.strategy.normalizer import MarketDataNormalizer
from dexarb.strategy.opportunity import OpportunityDetector
from dexarb.strategy.ranking import RankingFilter
from dexarb.telemetry import metrics as m
from dexarb.telemetry.metrics import MetricsCollector, ScanSummary
from dexarb.utils.time import format_duration_us, get_timestamp_us, utc_now


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScanResult:
    """Outcome of one scan request."""

    ran: bool
    failed: bool = False
    opportunities: list[OpportunityCandidate] = field(default_factory=list)


class ScanOrchestrator:
    """
    Owns scan state and drives the pipeline.

    State moves IDLE -> SCANNING -> IDLE. The SCANNING flag is set before
    the first suspension point and cleared in a `finally`, so a failed
    scan never locks the scanner out. A request arriving while a scan
    runs, or before the cooldown since the last scan start has elapsed,
    is a no-op returning an empty list.

    Every dependency is injected, so independent instances can run side
    by side in tests.
    """

    def __init__(
        self,
        feed: PriceFeed,
        sink: OpportunitySink | None = None,
        fee_model: FeeModel | None = None,
        thresholds: ScanThresholds | None = None,
        cooldown_seconds: float = SCAN_COOLDOWN_SECONDS,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            feed: Source of price observations.
            sink: Optional persistence for ranked results.
            fee_model: Fee table and risk scoring (defaults to an empty table).
            thresholds: Validation, detection and ranking policy.
            cooldown_seconds: Minimum time between two scan starts.
            event_bus: Bus for scan notifications.
            metrics: Metrics collector.
            clock: Monotonic clock in seconds, used for the cooldown.
            wall_clock: Wall clock used to stamp candidates.
        """
        thresholds = thresholds or ScanThresholds()

        self._feed = feed
        self._sink = sink
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._wall_clock = wall_clock

        self._normalizer = MarketDataNormalizer(thresholds)
        self._detector = OpportunityDetector(
            fee_model or FeeModel(), thresholds, clock=wall_clock
        )
        self._ranking = RankingFilter(thresholds)

        self._event_bus = event_bus or EventBus()
        self._metrics = metrics or MetricsCollector()

        # Scan state
        self._state = ScanState.IDLE
        self._last_scan_started: float | None = None
        self._last_scan_at: datetime | None = None
        self._last_results: list[OpportunityCandidate] = []

        # Periodic scanning
        self._periodic_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._interval = SCAN_INTERVAL_SECONDS

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        feed: PriceFeed,
        sink: OpportunitySink | None = None,
        event_bus: EventBus | None = None,
    ) -> "ScanOrchestrator":
        """Build an orchestrator configured from application settings."""
        orchestrator = cls(
            feed=feed,
            sink=sink,
            fee_model=FeeModel(settings.fee_table(), settings.default_fee_rate),
            thresholds=settings.thresholds(),
            cooldown_seconds=settings.scan_cooldown_seconds,
            event_bus=event_bus,
        )
        orchestrator._interval = settings.scan_interval_seconds
        return orchestrator

    # =========================================================================
    # Scanning
    # =========================================================================

    async def scan_now(self) -> list[OpportunityCandidate]:
        """
        Run one scan if allowed.

        Returns:
            Ranked opportunities, or [] when the request was rejected or
            the scan failed.
        """
        return (await self.request_scan()).opportunities

    async def request_scan(self) -> ScanResult:
        """Run one scan if allowed, reporting whether this request ran it."""
        self._metrics.increment_counter(m.SCANS_REQUESTED)

        if self._state == ScanState.SCANNING:
            self._metrics.increment_counter(m.SCANS_REJECTED_BUSY)
            logger.info("Scan rejected: a scan is already running")
            await self._publish(EventType.SCAN_REJECTED, {"reason": "busy"})
            return ScanResult(ran=False)

        now = self._clock()
        remaining = self._cooldown_remaining(now)
        if remaining > 0:
            self._metrics.increment_counter(m.SCANS_REJECTED_COOLDOWN)
            logger.info(f"Scan rejected: cooldown active for {remaining:.1f}s")
            await self._publish(
                EventType.SCAN_REJECTED, {"reason": "cooldown", "remaining": remaining}
            )
            return ScanResult(ran=False)

        # Guard is set before the first await
        self._state = ScanState.SCANNING
        self._last_scan_started = now

        try:
            return await self._run_scan()
        finally:
            self._state = ScanState.IDLE

    async def _run_scan(self) -> ScanResult:
        start_us = get_timestamp_us()
        await self._publish(EventType.SCAN_STARTED, {"started_at": self._wall_clock()})

        try:
            fetch_start = get_timestamp_us()
            observations = await self._feed.fetch_observations()
            self._metrics.record_latency(m.LATENCY_FEED_FETCH, get_timestamp_us() - fetch_start)

            ranked = self.run_pipeline(observations)
        except Exception as e:
            self._metrics.increment_counter(m.SCANS_FAILED)
            logger.error(f"Scan failed: {e}")
            await self._publish(EventType.SCAN_FAILED, {"error": str(e)})
            return ScanResult(ran=True, failed=True)

        await self._persist(ranked)

        scan_time_us = get_timestamp_us() - start_us
        self._metrics.record_latency(m.LATENCY_SCAN_TOTAL, scan_time_us)
        self._metrics.increment_counter(m.SCANS_COMPLETED)

        summary = ScanSummary.from_opportunities(ranked, scan_time_us)
        self._metrics.record_summary(summary)
        self._last_results = ranked
        self._last_scan_at = self._wall_clock()

        logger.info(
            f"Scan complete: {len(ranked)} opportunities from {len(observations)} "
            f"observations in {format_duration_us(scan_time_us)}"
        )

        for candidate in ranked:
            await self._publish(EventType.OPPORTUNITY_FOUND, candidate)
        await self._publish(EventType.SCAN_COMPLETED, summary)

        return ScanResult(ran=True, opportunities=ranked)

    def run_pipeline(self, observations: Sequence[PriceObservation]) -> list[OpportunityCandidate]:
        """
        Normalize, detect and rank one batch of observations.

        Synchronous: nothing here suspends.
        """
        start_us = get_timestamp_us()

        quotes = self._normalizer.normalize(observations)
        groups = self._normalizer.group_by_pair(quotes)
        candidates = self._detector.detect(groups)
        ranked = self._ranking.rank(candidates)

        self._metrics.increment_counter(m.OBSERVATIONS_RECEIVED, len(observations))
        self._metrics.increment_counter(m.OBSERVATIONS_VALID, len(quotes))
        self._metrics.increment_counter(m.CANDIDATES_GENERATED, len(candidates))
        self._metrics.increment_counter(m.OPPORTUNITIES_RANKED, len(ranked))
        self._metrics.record_latency(m.LATENCY_PIPELINE, get_timestamp_us() - start_us)

        return ranked

    async def _persist(self, ranked: list[OpportunityCandidate]) -> None:
        """Hand results to the sink; failures never affect the scan result."""
        if self._sink is None:
            return

        try:
            await self._sink.store(ranked)
        except Exception as e:
            self._metrics.increment_counter(m.PERSIST_FAILURES)
            logger.error(f"Failed to persist {len(ranked)} opportunities: {e}")

    async def _publish(self, event_type: EventType, payload: Any) -> None:
        await self._event_bus.publish(Event(type=event_type, payload=payload, source="scanner"))

    def _cooldown_remaining(self, now: float) -> float:
        if self._last_scan_started is None:
            return 0.0
        return max(0.0, self._cooldown - (now - self._last_scan_started))

    # =========================================================================
    # Periodic Scanning
    # =========================================================================

    def start(self, interval: float | None = None) -> bool:
        """
        Start periodic scanning on the running event loop.

        Args:
            interval: Seconds between scan attempts.

        Returns:
            False if periodic scanning was already running.
        """
        if self.is_running:
            return False

        if interval is not None:
            if interval <= 0:
                raise ValueError("interval must be positive")
            self._interval = interval

        self._stop_event.clear()
        self._periodic_task = asyncio.create_task(self._periodic_loop(self._interval))
        logger.info(f"Periodic scanning started (every {self._interval:.0f}s)")
        return True

    async def stop(self) -> bool:
        """
        Stop periodic scanning.

        A scan already in flight runs to completion before this returns.

        Returns:
            False if periodic scanning was not running.
        """
        if self._periodic_task is None:
            return False

        self._stop_event.set()
        task, self._periodic_task = self._periodic_task, None
        await task
        logger.info("Periodic scanning stopped")
        return True

    async def _periodic_loop(self, interval: float) -> None:
        await self._publish(EventType.SCANNER_STARTED, {"interval": interval})
        try:
            while not self._stop_event.is_set():
                await self.scan_now()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    continue
        finally:
            await self._publish(EventType.SCANNER_STOPPED, {})

    # =========================================================================
    # Introspection
    # =========================================================================

    def status(self) -> dict[str, Any]:
        """Snapshot of scanner state for the control surface."""
        return {
            "state": self._state.value,
            "periodic": self.is_running,
            "interval_seconds": self._interval,
            "cooldown_seconds": self._cooldown,
            "cooldown_remaining": self._cooldown_remaining(self._clock()),
            "last_scan_at": self._last_scan_at.isoformat() if self._last_scan_at else None,
            "last_result_count": len(self._last_results),
            "metrics": self._metrics.to_dict(),
            "detector": asdict(self._detector.stats),
        }

    def find(self, opportunity_id: str, now: datetime | None = None) -> OpportunityCandidate | None:
        """Look up a live candidate of the latest result set by id."""
        now = now or self._wall_clock()
        for candidate in self._last_results:
            if candidate.id == opportunity_id:
                return None if candidate.is_expired(now) else candidate
        return None

    @property
    def state(self) -> ScanState:
        """Get scan state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if periodic scanning is active."""
        return self._periodic_task is not None and not self._periodic_task.done()

    @property
    def last_results(self) -> list[OpportunityCandidate]:
        """Get the ranked results of the latest completed scan."""
        return list(self._last_results)

    @property
    def sink(self) -> OpportunitySink | None:
        """Get the persistence sink."""
        return self._sink

    @property
    def event_bus(self) -> EventBus:
        """Get the event bus."""
        return self._event_bus

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics
