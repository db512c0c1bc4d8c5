"""
Opportunity persistence.

Stores ranked opportunities as rows keyed by (pair, buy venue, sell
venue) and answers the simple history queries the dashboard needs.
Every write doubles as housekeeping: rows older than the stale window
are evicted and rows sharing a key with the incoming batch are replaced.
"""

import asyncio
import logging
import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel, Field, ValidationError

from dexarb.config.constants import CONFIDENCE_SCORES, STALE_RECORD_SECONDS
from dexarb.core.types import OpportunityCandidate
from dexarb.utils.math import safe_divide
from dexarb.utils.time import utc_now


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the opportunity store cannot read or write."""

    pass


class OpportunityRecord(BaseModel):
    """Stored row for one opportunity."""

    id: str
    pair: str
    buy_venue: str
    sell_venue: str
    buy_price: float
    sell_price: float
    price_diff: float
    profit_potential: float = Field(description="Net profit percentage")
    net_profit: float
    volume_available: float
    confidence_score: int
    execution_ready: bool = False
    timestamp: datetime
    expires_at: datetime
    is_active: bool = True

    @classmethod
    def from_candidate(cls, candidate: OpportunityCandidate) -> "OpportunityRecord":
        """Build the stored row for a candidate."""
        return cls(
            id=candidate.id,
            pair=candidate.pair,
            buy_venue=candidate.buy_venue,
            sell_venue=candidate.sell_venue,
            buy_price=candidate.buy_price,
            sell_price=candidate.sell_price,
            price_diff=candidate.sell_price - candidate.buy_price,
            profit_potential=candidate.net_profit_pct,
            net_profit=candidate.net_profit,
            volume_available=candidate.volume_available,
            confidence_score=CONFIDENCE_SCORES[candidate.confidence.value],
            execution_ready=candidate.execution_ready,
            timestamp=candidate.created_at,
            expires_at=candidate.expires_at,
        )

    @property
    def key(self) -> tuple[str, str, str]:
        """Row key: (pair, buy venue, sell venue)."""
        return (self.pair, self.buy_venue, self.sell_venue)

    def is_live(self, now: datetime) -> bool:
        """Active and not yet expired."""
        return self.is_active and now < self.expires_at


@dataclass(slots=True, frozen=True)
class PerformanceSummary:
    """Aggregate over stored rows in a time window."""

    total_opportunities: int
    avg_profit_pct: float
    success_rate: float
    total_volume: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_opportunities": self.total_opportunities,
            "avg_profit_pct": self.avg_profit_pct,
            "success_rate": self.success_rate,
            "total_volume": self.total_volume,
        }


class InMemoryOpportunityStore:
    """
    Opportunity sink keeping rows in memory.

    Implements the `OpportunitySink` protocol.
    """

    def __init__(
        self,
        stale_after_seconds: int = STALE_RECORD_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize store.

        Args:
            stale_after_seconds: Age after which rows are evicted on write.
            clock: Source of the current time.
        """
        self._stale_after = timedelta(seconds=stale_after_seconds)
        self._clock = clock
        self._records: list[OpportunityRecord] = []
        self._lock = asyncio.Lock()

    async def store(self, opportunities: Sequence[OpportunityCandidate]) -> None:
        """
        Persist a ranked opportunity set.

        Evicts stale rows, then replaces rows sharing a key with the batch.

        Raises:
            StorageError: If the backing medium fails.
        """
        async with self._lock:
            now = self._clock()
            incoming = [OpportunityRecord.from_candidate(c) for c in opportunities]
            keys = {record.key for record in incoming}

            cutoff = now - self._stale_after
            kept = [r for r in self._records if r.timestamp >= cutoff and r.key not in keys]
            evicted = len(self._records) - len(kept)

            self._records = kept + incoming
            await self._flush()

        if evicted:
            logger.debug(f"Evicted {evicted} stale or replaced rows")

    async def _flush(self) -> None:
        """Hook for durable subclasses."""
        return None

    def records(self) -> list[OpportunityRecord]:
        """Get all stored rows, oldest first."""
        return list(self._records)

    def active(self, now: datetime | None = None) -> list[OpportunityRecord]:
        """
        Get live rows, best net profit percentage first.

        Args:
            now: Reference time (defaults to the store clock).
        """
        now = now or self._clock()
        live = [r for r in self._records if r.is_live(now)]
        live.sort(key=lambda r: r.profit_potential, reverse=True)
        return live

    def performance(self, days: int = 7) -> PerformanceSummary:
        """
        Summarize rows recorded over the last `days` days.

        Success rate is the share of rows still flagged active, in percent.
        """
        since = self._clock() - timedelta(days=days)
        window = [r for r in self._records if r.timestamp >= since]
        total = len(window)

        return PerformanceSummary(
            total_opportunities=total,
            avg_profit_pct=safe_divide(sum(r.profit_potential for r in window), total),
            success_rate=safe_divide(sum(1 for r in window if r.is_active), total) * 100,
            total_volume=sum(r.volume_available for r in window),
        )

    def deactivate_expired(self, now: datetime | None = None) -> int:
        """
        Flag expired rows inactive.

        Returns:
            Number of rows deactivated.
        """
        now = now or self._clock()
        count = 0
        for index, record in enumerate(self._records):
            if record.is_active and now >= record.expires_at:
                self._records[index] = record.model_copy(update={"is_active": False})
                count += 1
        return count

    def __len__(self) -> int:
        return len(self._records)


class JsonFileOpportunityStore(InMemoryOpportunityStore):
    """
    Opportunity store persisted as a JSON document.

    The file is rewritten atomically after every store.
    """

    def __init__(
        self,
        path: Path,
        stale_after_seconds: int = STALE_RECORD_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize store, loading existing rows from `path`.

        Raises:
            StorageError: If an existing file cannot be parsed.
        """
        super().__init__(stale_after_seconds=stale_after_seconds, clock=clock)
        self._path = Path(path)
        self._records = self._load()

    def _load(self) -> list[OpportunityRecord]:
        if not self._path.exists():
            return []

        try:
            raw = orjson.loads(self._path.read_bytes())
            return [OpportunityRecord.model_validate(item) for item in raw]
        except (OSError, orjson.JSONDecodeError, ValidationError, TypeError) as e:
            raise StorageError(f"Cannot load opportunities from {self._path}: {e}") from e

    async def _flush(self) -> None:
        data = orjson.dumps(
            [record.model_dump(mode="json") for record in self._records],
            option=orjson.OPT_INDENT_2,
        )
        await asyncio.to_thread(self._write, data)

    def _write(self, data: bytes) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Cannot write opportunities to {self._path}: {e}") from e

    @property
    def path(self) -> Path:
        """Get the backing file path."""
        return self._path
