"""
Venue fee schedule and risk scoring.

Holds every venue-specific and risk-derived numeric policy used when
turning a price gap into a scored opportunity.
"""

from collections.abc import Iterable

from dexarb.config.constants import (
    DEFAULT_FEE_RATE,
    HIGH_CONFIDENCE_SCORE,
    LIQUIDITY_BREAKPOINTS,
    MARKET_IMPACT_RATE,
    MARKET_IMPACT_THRESHOLD,
    MAX_LOW_LIQUIDITY_SCORE,
    MAX_SLIPPAGE_PCT,
    MEDIUM_CONFIDENCE_SCORE,
    MIN_LIQUIDITY_SCORE,
    MIN_SLIPPAGE_PCT,
    SLIPPAGE_DEPTH,
    SMALL_PRICE_DIFF,
    SMALL_PRICE_DIFF_PENALTY,
)
from dexarb.core.types import Confidence, VenueFees
from dexarb.utils.math import clamp


class FeeModel:
    """
    Fee lookup and risk heuristics for cross-venue opportunities.

    The fee table is injected so venues can be onboarded or stubbed
    in tests without touching module state. Lookups are
    case-insensitive on the venue name.
    """

    __slots__ = ("_fees", "_default_rate")

    def __init__(
        self,
        venue_fees: Iterable[VenueFees] = (),
        default_rate: float = DEFAULT_FEE_RATE,
    ) -> None:
        """
        Initialize fee model.

        Args:
            venue_fees: Fee schedules of known venues.
            default_rate: Per-unit rate for unknown venues (0.004 = 0.4%).
        """
        self._fees: dict[str, VenueFees] = {fees.venue.lower(): fees for fees in venue_fees}
        self._default_rate = default_rate

    def fee_rate(self, venue: str, price: float) -> float:
        """
        Per-unit fee for trading on a venue at a price.

        Args:
            venue: Venue name.
            price: Current unit price (must be positive for known venues).

        Returns:
            Trading + withdrawal fee plus the network fee amortized per unit,
            or the default rate for unknown venues.
        """
        fees = self._fees.get(venue.lower())
        if fees is None:
            return self._default_rate
        return fees.rate(price)

    def liquidity_score(self, liquidity_a: float, liquidity_b: float) -> float:
        """
        Score the average liquidity of both sides on a 0-100 scale.

        Step function over fixed breakpoints; below the lowest breakpoint
        the score scales linearly and is held within [25, 45].
        """
        avg_liquidity = (liquidity_a + liquidity_b) / 2

        for threshold, score in LIQUIDITY_BREAKPOINTS:
            if avg_liquidity > threshold:
                return score

        return clamp((avg_liquidity / 1000) * 2, MIN_LIQUIDITY_SCORE, MAX_LOW_LIQUIDITY_SCORE)

    def slippage_risk(self, volume: float, liquidity_score: float) -> float:
        """
        Estimate price impact (percent) of trading `volume`.

        Args:
            volume: Trade size in base units.
            liquidity_score: Score from `liquidity_score`.

        Returns:
            Slippage percentage clamped to [0.1, 6].
        """
        liquidity_factor = liquidity_score / 100
        base_slippage = (volume / (liquidity_factor * SLIPPAGE_DEPTH)) * 100

        # Large trades move the pool further
        market_impact = max(0.0, (volume - MARKET_IMPACT_THRESHOLD) * MARKET_IMPACT_RATE)

        return clamp(base_slippage + market_impact, MIN_SLIPPAGE_PCT, MAX_SLIPPAGE_PCT)

    def confidence_score(
        self,
        profit_pct: float,
        liquidity_score: float,
        slippage_risk: float,
        price_diff: float,
        volume: float,
    ) -> float:
        """Composite heuristic score behind `confidence`."""
        score = min(40.0, profit_pct * 10)
        score += liquidity_score * 0.35
        score -= slippage_risk * 4
        if price_diff < SMALL_PRICE_DIFF:
            score -= SMALL_PRICE_DIFF_PENALTY
        score += min(15.0, volume / 40)
        return score

    def confidence(
        self,
        profit_pct: float,
        liquidity_score: float,
        slippage_risk: float,
        price_diff: float,
        volume: float,
    ) -> Confidence:
        """
        Classify an opportunity as HIGH, MEDIUM or LOW confidence.

        Score above 80 is HIGH, above 60 is MEDIUM, anything else LOW.
        """
        score = self.confidence_score(
            profit_pct, liquidity_score, slippage_risk, price_diff, volume
        )

        if score > HIGH_CONFIDENCE_SCORE:
            return Confidence.HIGH
        if score > MEDIUM_CONFIDENCE_SCORE:
            return Confidence.MEDIUM
        return Confidence.LOW

    def venue_fees(self, venue: str) -> VenueFees | None:
        """Get the fee schedule of a known venue."""
        return self._fees.get(venue.lower())

    @property
    def default_rate(self) -> float:
        """Get the fallback per-unit rate."""
        return self._default_rate

    @property
    def known_venues(self) -> frozenset[str]:
        """Get the names of venues in the fee table."""
        return frozenset(fees.venue for fees in self._fees.values())
