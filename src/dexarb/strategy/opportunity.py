"""
Cross-venue opportunity detection.

Compares every pair of venues quoting the same canonical pair and turns
sufficiently large price gaps into sized, fee-adjusted and scored
candidates.
"""

import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime

from dexarb.config.constants import LIQUIDITY_SHARE, MIN_LIQUIDITY_SIZE, VOLUME_SHARE
from dexarb.core.types import Confidence, MarketQuote, OpportunityCandidate, ScanThresholds
from dexarb.strategy.fees import FeeModel
from dexarb.utils.time import utc_now


logger = logging.getLogger(__name__)


# Type alias for the wall clock used to stamp candidates
Clock = Callable[[], datetime]


@dataclass
class DetectionStats:
    """Counters for a detector's lifetime."""

    pairs_scanned: int = 0
    comparisons: int = 0
    below_noise_floor: int = 0
    outside_profit_window: int = 0
    candidates: int = 0
    errors: int = 0


def make_candidate_id(pair: str, buy_venue: str, sell_venue: str, created_at: datetime) -> str:
    """
    Build a unique candidate id.

    Combines pair, venues, creation time in milliseconds and a random
    suffix. Unique, but not meant for ordering or equality.
    """
    timestamp_ms = int(created_at.timestamp() * 1000)
    return f"{pair}-{buy_venue}-{sell_venue}-{timestamp_ms}-{uuid.uuid4().hex[:9]}"


class OpportunityDetector:
    """
    Turns grouped market quotes into candidate opportunities.

    Synchronous and CPU-bound: no suspension happens while candidates
    are generated. A failure while evaluating one venue pairing drops
    that candidate only.
    """

    __slots__ = ("_fee_model", "_thresholds", "_clock", "_stats")

    def __init__(
        self,
        fee_model: FeeModel,
        thresholds: ScanThresholds | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """
        Initialize opportunity detector.

        Args:
            fee_model: Fee lookup and risk scoring.
            thresholds: Detection gates and sizing caps.
            clock: Source of creation timestamps.
        """
        self._fee_model = fee_model
        self._thresholds = thresholds or ScanThresholds()
        self._clock = clock
        self._stats = DetectionStats()

    def detect(self, groups: Mapping[str, Sequence[MarketQuote]]) -> list[OpportunityCandidate]:
        """
        Find candidates across all pairs.

        Args:
            groups: Canonical pair -> quotes from distinct venues.

        Returns:
            Candidates in discovery order (pair order, then venue order).
        """
        candidates: list[OpportunityCandidate] = []

        for pair, quotes in groups.items():
            if len(quotes) < 2:
                continue
            self._stats.pairs_scanned += 1

            for i in range(len(quotes)):
                for j in range(i + 1, len(quotes)):
                    self._stats.comparisons += 1
                    try:
                        candidate = self.evaluate(pair, quotes[i], quotes[j])
                    except Exception as e:
                        self._stats.errors += 1
                        logger.warning(
                            f"Skipping {pair} {quotes[i].venue}/{quotes[j].venue}: {e}"
                        )
                        continue

                    if candidate is not None:
                        candidates.append(candidate)

        self._stats.candidates += len(candidates)
        return candidates

    def evaluate(
        self,
        pair: str,
        first: MarketQuote,
        second: MarketQuote,
    ) -> OpportunityCandidate | None:
        """
        Evaluate one venue pairing.

        Args:
            pair: Canonical pair both quotes belong to.
            first: Quote from one venue.
            second: Quote from another venue.

        Returns:
            Candidate, or None if the gap is noise or outside the profit window.
        """
        if first.venue == second.venue:
            return None

        t = self._thresholds
        price_diff = abs(first.price - second.price)
        if price_diff < t.min_price_difference:
            self._stats.below_noise_floor += 1
            return None

        if first.price <= second.price:
            buy, sell = first, second
        else:
            buy, sell = second, first

        raw_profit_pct = price_diff / buy.price * 100
        if not t.min_raw_profit_pct < raw_profit_pct < t.max_raw_profit_pct:
            self._stats.outside_profit_window += 1
            return None

        volume = self.size_trade(buy, sell)

        fee_per_unit = self._fee_model.fee_rate(buy.venue, buy.price) + self._fee_model.fee_rate(
            sell.venue, sell.price
        )
        total_fees = fee_per_unit * volume
        net_profit = price_diff * volume - total_fees
        net_profit_pct = net_profit / (buy.price * volume) * 100

        liquidity_score = self._fee_model.liquidity_score(buy.liquidity, sell.liquidity)
        slippage_risk = self._fee_model.slippage_risk(volume, liquidity_score)
        confidence = self._fee_model.confidence(
            net_profit_pct, liquidity_score, slippage_risk, price_diff, volume
        )

        created_at = self._clock()
        return OpportunityCandidate(
            id=make_candidate_id(pair, buy.venue, sell.venue, created_at),
            pair=pair,
            buy_venue=buy.venue,
            sell_venue=sell.venue,
            buy_price=buy.price,
            sell_price=sell.price,
            gross_price_diff=price_diff,
            raw_profit_pct=raw_profit_pct,
            volume_available=volume,
            total_fees=total_fees,
            net_profit=net_profit,
            net_profit_pct=net_profit_pct,
            liquidity_score=liquidity_score,
            slippage_risk=slippage_risk,
            confidence=confidence,
            time_to_expiry=t.opportunity_ttl_seconds,
            execution_ready=(
                confidence == Confidence.HIGH and net_profit > t.execution_min_net_profit
            ),
            created_at=created_at,
        )

    def size_trade(self, buy: MarketQuote, sell: MarketQuote) -> float:
        """
        Conservative trade size for a pairing.

        Never more than a small share of either side's daily volume or
        estimated liquidity, and never above the absolute cap.
        """
        return min(
            buy.volume_24h * VOLUME_SHARE,
            sell.volume_24h * VOLUME_SHARE,
            max(buy.liquidity * LIQUIDITY_SHARE, MIN_LIQUIDITY_SIZE),
            max(sell.liquidity * LIQUIDITY_SHARE, MIN_LIQUIDITY_SIZE),
            self._thresholds.max_trade_volume,
        )

    @property
    def stats(self) -> DetectionStats:
        """Get detection statistics."""
        return self._stats

    @property
    def fee_model(self) -> FeeModel:
        """Get fee model."""
        return self._fee_model
