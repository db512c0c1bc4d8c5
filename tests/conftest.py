"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from dexarb.config.constants import DEFAULT_VENUE_FEES
from dexarb.core.types import (
    Confidence,
    MarketQuote,
    OpportunityCandidate,
    PriceObservation,
    ScanThresholds,
    VenueFees,
)
from dexarb.strategy.fees import FeeModel
from dexarb.strategy.normalizer import MarketDataNormalizer
from dexarb.strategy.opportunity import OpportunityDetector
from dexarb.strategy.ranking import RankingFilter
from tests.mocks.clock import ManualClock


FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


# =============================================================================
# Clock Fixtures
# =============================================================================


@pytest.fixture
def fixed_now() -> datetime:
    """Frozen wall-clock time."""
    return FIXED_NOW


@pytest.fixture
def wall_clock(fixed_now: datetime) -> Callable[[], datetime]:
    """Wall clock always returning the frozen time."""
    return lambda: fixed_now


@pytest.fixture
def manual_clock() -> ManualClock:
    """Monotonic clock for cooldown tests."""
    return ManualClock()


# =============================================================================
# Policy Fixtures
# =============================================================================


@pytest.fixture
def venue_fees() -> list[VenueFees]:
    """Default fee table of the known venues."""
    return [
        VenueFees(
            venue=venue,
            trading_fee=trading,
            withdrawal_fee=withdrawal,
            network_fee=network,
            minimum_trade=minimum,
        )
        for venue, (trading, withdrawal, network, minimum) in DEFAULT_VENUE_FEES.items()
    ]


@pytest.fixture
def fee_model(venue_fees: list[VenueFees]) -> FeeModel:
    """Fee model with the default fee table."""
    return FeeModel(venue_fees)


@pytest.fixture
def thresholds() -> ScanThresholds:
    """Default scan thresholds."""
    return ScanThresholds()


@pytest.fixture
def normalizer(thresholds: ScanThresholds) -> MarketDataNormalizer:
    """Normalizer with default thresholds."""
    return MarketDataNormalizer(thresholds)


@pytest.fixture
def detector(
    fee_model: FeeModel,
    thresholds: ScanThresholds,
    wall_clock: Callable[[], datetime],
) -> OpportunityDetector:
    """Detector stamping candidates with the frozen time."""
    return OpportunityDetector(fee_model, thresholds, clock=wall_clock)


@pytest.fixture
def ranking(thresholds: ScanThresholds) -> RankingFilter:
    """Ranking filter with default thresholds."""
    return RankingFilter(thresholds)


# =============================================================================
# Market Data Fixtures
# =============================================================================


@pytest.fixture
def make_observation() -> Callable[..., PriceObservation]:
    """Factory for price observations."""

    def _make(
        pair: str = "WMT/ADA",
        venue: str = "Minswap",
        price: float = 40.0,
        volume_24h: float = 10_000_000.0,
    ) -> PriceObservation:
        return PriceObservation(pair=pair, venue=venue, price=price, volume_24h=volume_24h)

    return _make


@pytest.fixture
def make_quote() -> Callable[..., MarketQuote]:
    """Factory for market quotes."""

    def _make(
        venue: str = "Minswap",
        price: float = 40.0,
        volume_24h: float = 10_000_000.0,
        liquidity: float | None = None,
        pair: str = "WMT/ADA",
    ) -> MarketQuote:
        return MarketQuote(
            pair=pair,
            venue=venue,
            price=price,
            volume_24h=volume_24h,
            liquidity=volume_24h * 0.15 if liquidity is None else liquidity,
        )

    return _make


@pytest.fixture
def profitable_observations(
    make_observation: Callable[..., PriceObservation],
) -> list[PriceObservation]:
    """Two deep venues quoting WMT/ADA 5% apart: one HIGH candidate."""
    return [
        make_observation(venue="Minswap", price=40.0),
        make_observation(venue="SundaeSwap", price=42.0),
    ]


@pytest.fixture
def make_candidate(fixed_now: datetime) -> Callable[..., OpportunityCandidate]:
    """Factory for candidates with viable defaults."""

    def _make(
        id: str = "WMT/ADA-Minswap-SundaeSwap-0-abc",
        pair: str = "WMT/ADA",
        buy_venue: str = "Minswap",
        sell_venue: str = "SundaeSwap",
        buy_price: float = 40.0,
        sell_price: float = 42.0,
        volume_available: float = 500.0,
        total_fees: float = 8.0,
        net_profit: float = 992.0,
        net_profit_pct: float = 4.96,
        liquidity_score: float = 95.0,
        slippage_risk: float = 1.1,
        confidence: Confidence = Confidence.HIGH,
        time_to_expiry: int = 120,
        execution_ready: bool = True,
        created_at: datetime | None = None,
    ) -> OpportunityCandidate:
        return OpportunityCandidate(
            id=id,
            pair=pair,
            buy_venue=buy_venue,
            sell_venue=sell_venue,
            buy_price=buy_price,
            sell_price=sell_price,
            gross_price_diff=sell_price - buy_price,
            raw_profit_pct=(sell_price - buy_price) / buy_price * 100,
            volume_available=volume_available,
            total_fees=total_fees,
            net_profit=net_profit,
            net_profit_pct=net_profit_pct,
            liquidity_score=liquidity_score,
            slippage_risk=slippage_risk,
            confidence=confidence,
            time_to_expiry=time_to_expiry,
            execution_ready=execution_ready,
            created_at=created_at or fixed_now,
        )

    return _make
