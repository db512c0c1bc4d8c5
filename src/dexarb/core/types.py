"""
Type definitions for the arbitrage scanner.

This module contains all dataclasses, enums and Protocol definitions
used throughout the application. Using slots=True for memory efficiency
and faster attribute access.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Protocol

from dexarb.config.constants import (
    EXECUTION_MIN_NET_PROFIT,
    LIQUIDITY_FLOOR,
    LIQUIDITY_VOLUME_FACTOR,
    MAX_RAW_PROFIT_PCT,
    MAX_RESULTS,
    MAX_SLIPPAGE_RISK,
    MAX_TRADE_VOLUME,
    MAX_VALID_PRICE,
    MIN_NET_PROFIT,
    MIN_NET_PROFIT_PCT,
    MIN_PRICE_DIFFERENCE,
    MIN_RAW_PROFIT_PCT,
    MIN_VALID_PRICE,
    MIN_VOLUME,
    OPPORTUNITY_TTL_SECONDS,
    REFERENCE_ONLY_VENUES,
    VOLUME_FLOOR,
)


# =============================================================================
# Enums
# =============================================================================


class Confidence(str, Enum):
    """Heuristic confidence classification of an opportunity."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def weight(self) -> int:
        """Ranking weight (HIGH=3, MEDIUM=2, LOW=1)."""
        return _CONFIDENCE_WEIGHTS[self]


_CONFIDENCE_WEIGHTS: dict[Confidence, int] = {
    Confidence.HIGH: 3,
    Confidence.MEDIUM: 2,
    Confidence.LOW: 1,
}


class ScanState(str, Enum):
    """Scan orchestrator state."""

    IDLE = "IDLE"
    SCANNING = "SCANNING"


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class PriceObservation:
    """
    One price reported by one venue for one pair.

    Frozen for immutability. The pair is kept exactly as the source
    reported it; canonicalization happens in the normalizer.
    """

    pair: str
    venue: str
    price: float
    volume_24h: float

    @property
    def base_symbol(self) -> str:
        """Base asset symbol as reported (text before the first separator)."""
        for sep in ("/", "-"):
            if sep in self.pair:
                return self.pair.split(sep, 1)[0].strip().upper()
        return self.pair.strip().upper()


@dataclass(slots=True, frozen=True)
class MarketQuote:
    """
    Validated observation reshaped for detection.

    The pair is canonical, the volume is floored and liquidity is
    an estimate derived from volume.
    """

    pair: str
    venue: str
    price: float
    volume_24h: float
    liquidity: float


# =============================================================================
# Configuration Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class VenueFees:
    """Fee schedule for a single venue."""

    venue: str
    trading_fee: float
    withdrawal_fee: float
    network_fee: float
    minimum_trade: float = 0.0

    def rate(self, price: float) -> float:
        """
        Per-unit fee at the given price.

        The network fee is an absolute cost amortized per unit.
        """
        return self.trading_fee + self.withdrawal_fee + self.network_fee / price


@dataclass(slots=True, frozen=True)
class ScanThresholds:
    """Numeric policy for validation, detection and ranking."""

    # Observation validity
    min_valid_price: float = MIN_VALID_PRICE
    max_valid_price: float = MAX_VALID_PRICE
    reference_venues: frozenset[str] = REFERENCE_ONLY_VENUES
    liquidity_volume_factor: float = LIQUIDITY_VOLUME_FACTOR
    liquidity_floor: float = LIQUIDITY_FLOOR
    volume_floor: float = VOLUME_FLOOR

    # Detection
    min_price_difference: float = MIN_PRICE_DIFFERENCE
    min_raw_profit_pct: float = MIN_RAW_PROFIT_PCT
    max_raw_profit_pct: float = MAX_RAW_PROFIT_PCT
    max_trade_volume: float = MAX_TRADE_VOLUME
    opportunity_ttl_seconds: int = OPPORTUNITY_TTL_SECONDS
    execution_min_net_profit: float = EXECUTION_MIN_NET_PROFIT

    # Viability & ranking
    min_net_profit_pct: float = MIN_NET_PROFIT_PCT
    min_volume: float = MIN_VOLUME
    max_slippage_risk: float = MAX_SLIPPAGE_RISK
    min_net_profit: float = MIN_NET_PROFIT
    max_results: int = MAX_RESULTS


# =============================================================================
# Opportunity Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class OpportunityCandidate:
    """
    Cross-venue arbitrage candidate produced by one scan.

    Never mutated after creation; every scan builds a fresh set.
    """

    id: str
    pair: str
    buy_venue: str
    sell_venue: str
    buy_price: float
    sell_price: float
    gross_price_diff: float
    raw_profit_pct: float
    volume_available: float
    total_fees: float
    net_profit: float
    net_profit_pct: float
    liquidity_score: float
    slippage_risk: float
    confidence: Confidence
    time_to_expiry: int
    execution_ready: bool
    created_at: datetime = field(compare=False)

    @property
    def key(self) -> tuple[str, str, str]:
        """Storage key: (pair, buy venue, sell venue)."""
        return (self.pair, self.buy_venue, self.sell_venue)

    @property
    def expires_at(self) -> datetime:
        """Time after which the candidate is stale."""
        return self.created_at + timedelta(seconds=self.time_to_expiry)

    def is_expired(self, now: datetime) -> bool:
        """Check whether the validity window has passed."""
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Export as a JSON-friendly dict."""
        return {
            "id": self.id,
            "pair": self.pair,
            "buy_venue": self.buy_venue,
            "sell_venue": self.sell_venue,
            "buy_price": self.buy_price,
            "sell_price": self.sell_price,
            "gross_price_diff": self.gross_price_diff,
            "raw_profit_pct": self.raw_profit_pct,
            "volume_available": self.volume_available,
            "total_fees": self.total_fees,
            "net_profit": self.net_profit,
            "net_profit_pct": self.net_profit_pct,
            "liquidity_score": self.liquidity_score,
            "slippage_risk": self.slippage_risk,
            "confidence": self.confidence.value,
            "time_to_expiry": self.time_to_expiry,
            "execution_ready": self.execution_ready,
            "created_at": self.created_at.isoformat(),
        }


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class PriceFeed(Protocol):
    """Protocol for price feed implementations."""

    async def fetch_observations(self) -> list[PriceObservation]:
        """Fetch the current price observations from all sources."""
        ...


class OpportunitySink(Protocol):
    """Protocol for opportunity persistence."""

    async def store(self, opportunities: Sequence[OpportunityCandidate]) -> None:
        """Persist a ranked opportunity set."""
        ...
