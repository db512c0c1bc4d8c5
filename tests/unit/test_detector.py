"""
Unit tests for OpportunityDetector.

Tests venue pairing, gating, trade sizing, fee adjustment and scoring.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest

from dexarb.core.types import Confidence, MarketQuote, ScanThresholds
from dexarb.strategy.fees import FeeModel
from dexarb.strategy.opportunity import OpportunityDetector, make_candidate_id


class TestEvaluate:
    """Tests for single venue pairings."""

    def test_high_confidence_candidate(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
        fixed_now: datetime,
    ) -> None:
        """Test a deep, 5% gap between two known venues."""
        candidate = detector.evaluate(
            "WMT/ADA",
            make_quote(venue="Minswap", price=40.0),
            make_quote(venue="SundaeSwap", price=42.0),
        )

        assert candidate is not None
        assert candidate.buy_venue == "Minswap"
        assert candidate.sell_venue == "SundaeSwap"
        assert candidate.gross_price_diff == pytest.approx(2.0)
        assert candidate.raw_profit_pct == pytest.approx(5.0)
        assert candidate.volume_available == 500.0
        assert candidate.total_fees == pytest.approx(8.1488, rel=1e-4)
        assert candidate.net_profit == pytest.approx(991.851, rel=1e-4)
        assert candidate.net_profit_pct == pytest.approx(4.9593, rel=1e-4)
        assert candidate.liquidity_score == 95.0
        assert candidate.slippage_risk == pytest.approx(1.10263, rel=1e-4)
        assert candidate.confidence == Confidence.HIGH
        assert candidate.execution_ready is True
        assert candidate.time_to_expiry == 120
        assert candidate.created_at == fixed_now

    def test_buy_side_is_lower_price_regardless_of_order(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test argument order does not change direction."""
        candidate = detector.evaluate(
            "WMT/ADA",
            make_quote(venue="SundaeSwap", price=42.0),
            make_quote(venue="Minswap", price=40.0),
        )

        assert candidate is not None
        assert candidate.buy_venue == "Minswap"
        assert candidate.buy_price < candidate.sell_price

    def test_medium_confidence_not_execution_ready(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test a shallower market scores MEDIUM."""
        candidate = detector.evaluate(
            "WMT/ADA",
            make_quote(venue="Minswap", price=40.0, volume_24h=1_000_000.0),
            make_quote(venue="SundaeSwap", price=42.0, volume_24h=1_000_000.0),
        )

        assert candidate is not None
        assert candidate.liquidity_score == 75.0
        assert candidate.slippage_risk == pytest.approx(1.38333, rel=1e-4)
        assert candidate.confidence == Confidence.MEDIUM
        assert candidate.execution_ready is False

    def test_break_even_gap_is_low_confidence(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test a 2% gap that default fees entirely consume."""
        candidate = detector.evaluate(
            "ADA/USD",
            make_quote(pair="ADA/USD", venue="A", price=0.40, volume_24h=100_000.0),
            make_quote(pair="ADA/USD", venue="B", price=0.408, volume_24h=90_000.0),
        )

        assert candidate is not None
        assert candidate.raw_profit_pct == pytest.approx(2.0)
        assert candidate.volume_available == pytest.approx(100.0)
        assert candidate.total_fees == pytest.approx(0.8)
        assert candidate.net_profit == pytest.approx(0.0, abs=1e-9)
        assert candidate.liquidity_score == 45.0
        assert candidate.confidence == Confidence.LOW
        assert candidate.execution_ready is False

    def test_same_venue_skipped(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test a venue is never compared with itself."""
        assert (
            detector.evaluate(
                "WMT/ADA",
                make_quote(venue="Minswap", price=40.0),
                make_quote(venue="Minswap", price=42.0),
            )
            is None
        )

    def test_below_noise_floor(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test gaps under 0.001 are ignored."""
        candidate = detector.evaluate(
            "X/ADA",
            make_quote(venue="A", price=0.0500),
            make_quote(venue="B", price=0.0509),
        )

        assert candidate is None
        assert detector.stats.below_noise_floor == 1

    @pytest.mark.parametrize(
        ("buy", "sell"),
        [
            (200.0, 201.0),  # exactly 0.5%
            (40.0, 40.1),  # below 0.5%
            (40.0, 46.0),  # exactly 15%
            (40.0, 50.0),  # above 15%
        ],
    )
    def test_outside_profit_window(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
        buy: float,
        sell: float,
    ) -> None:
        """Test the raw profit window is exclusive on both ends."""
        candidate = detector.evaluate(
            "WMT/ADA",
            make_quote(venue="Minswap", price=buy),
            make_quote(venue="SundaeSwap", price=sell),
        )

        assert candidate is None
        assert detector.stats.outside_profit_window == 1

    def test_profit_cap_is_configurable(
        self,
        fee_model: FeeModel,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test a wider window admits larger gaps."""
        detector = OpportunityDetector(fee_model, ScanThresholds(max_raw_profit_pct=50.0))

        candidate = detector.evaluate(
            "WMT/ADA",
            make_quote(venue="Minswap", price=40.0),
            make_quote(venue="SundaeSwap", price=50.0),
        )

        assert candidate is not None
        assert candidate.raw_profit_pct == pytest.approx(25.0)

    def test_expiry(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
        fixed_now: datetime,
    ) -> None:
        """Test the validity window."""
        candidate = detector.evaluate(
            "WMT/ADA",
            make_quote(venue="Minswap", price=40.0),
            make_quote(venue="SundaeSwap", price=42.0),
        )

        assert candidate is not None
        assert candidate.expires_at == fixed_now + timedelta(seconds=120)
        assert not candidate.is_expired(fixed_now + timedelta(seconds=119))
        assert candidate.is_expired(fixed_now + timedelta(seconds=120))


class TestSizing:
    """Tests for conservative trade sizing."""

    def test_absolute_cap(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test deep markets are capped at 500 units."""
        assert detector.size_trade(make_quote(), make_quote(venue="B")) == 500.0

    def test_volume_share_cap(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test the 2% share of the thinner side's daily volume."""
        buy = make_quote(volume_24h=2_000.0, liquidity=1_000_000.0)
        sell = make_quote(venue="B", volume_24h=1_000_000.0)

        assert detector.size_trade(buy, sell) == pytest.approx(40.0)

    def test_liquidity_share_cap_with_floor(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test the liquidity share never sizes below 100 units."""
        buy = make_quote(volume_24h=100_000.0, liquidity=15_000.0)
        sell = make_quote(venue="B", volume_24h=100_000.0, liquidity=50_000.0)

        # 0.5% of 15k = 75 -> floored to 100
        assert detector.size_trade(buy, sell) == 100.0

    def test_never_exceeds_any_cap(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test the size is the minimum of every cap."""
        buy = make_quote(volume_24h=30_000.0, liquidity=60_000.0)
        sell = make_quote(venue="B", volume_24h=50_000.0, liquidity=80_000.0)

        volume = detector.size_trade(buy, sell)

        assert volume <= 30_000.0 * 0.02
        assert volume <= max(60_000.0 * 0.005, 100.0)
        assert volume <= 500.0


class TestDetect:
    """Tests for detection across groups."""

    def test_every_venue_pair_compared_once(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test n venues yield n*(n-1)/2 comparisons."""
        groups = {
            "WMT/ADA": [
                make_quote(venue="Minswap", price=40.0),
                make_quote(venue="SundaeSwap", price=42.0),
                make_quote(venue="MuesliSwap", price=41.0),
            ]
        }

        candidates = detector.detect(groups)

        assert detector.stats.comparisons == 3
        assert len(candidates) == 3
        assert [(c.buy_venue, c.sell_venue) for c in candidates] == [
            ("Minswap", "SundaeSwap"),
            ("Minswap", "MuesliSwap"),
            ("MuesliSwap", "SundaeSwap"),
        ]

    def test_single_venue_groups_skipped(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test pairs quoted by one venue produce nothing."""
        assert detector.detect({"WMT/ADA": [make_quote()]}) == []
        assert detector.stats.pairs_scanned == 0

    def test_empty_groups(self, detector: OpportunityDetector) -> None:
        """Test no groups, no candidates."""
        assert detector.detect({}) == []

    def test_failing_pairing_is_isolated(
        self,
        fee_model: FeeModel,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test one broken quote drops only its own candidates."""
        detector = OpportunityDetector(fee_model)
        groups = {
            "BAD/ADA": [
                # A zero buy price breaks the profit percentage
                make_quote(pair="BAD/ADA", venue="Minswap", price=0.0),
                make_quote(pair="BAD/ADA", venue="SundaeSwap", price=42.0),
            ],
            "WMT/ADA": [
                make_quote(venue="Minswap", price=40.0),
                make_quote(venue="SundaeSwap", price=42.0),
            ],
        }

        candidates = detector.detect(groups)

        assert [c.pair for c in candidates] == ["WMT/ADA"]
        assert detector.stats.errors == 1

    def test_ids_are_unique(
        self,
        detector: OpportunityDetector,
        make_quote: Callable[..., MarketQuote],
    ) -> None:
        """Test two detections of the same gap get distinct ids."""
        groups = {
            "WMT/ADA": [
                make_quote(venue="Minswap", price=40.0),
                make_quote(venue="SundaeSwap", price=42.0),
            ]
        }

        first = detector.detect(groups)[0]
        second = detector.detect(groups)[0]

        assert first.id != second.id
        assert first.key == second.key


class TestCandidateId:
    """Tests for candidate id construction."""

    def test_format(self, fixed_now: datetime) -> None:
        """Test the id embeds pair, venues and milliseconds."""
        candidate_id = make_candidate_id("WMT/ADA", "Minswap", "SundaeSwap", fixed_now)
        timestamp_ms = int(fixed_now.timestamp() * 1000)

        assert candidate_id.startswith(f"WMT/ADA-Minswap-SundaeSwap-{timestamp_ms}-")
        assert len(candidate_id.rsplit("-", 1)[1]) == 9
