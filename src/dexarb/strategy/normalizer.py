"""
Market data validation and normalization.

Filters raw price observations, estimates liquidity and groups the
survivors by canonical pair for cross-venue comparison.
"""

import logging
import re
from collections.abc import Iterable

from dexarb.config.constants import UNKNOWN_SYMBOLS
from dexarb.core.types import MarketQuote, PriceObservation, ScanThresholds


logger = logging.getLogger(__name__)


_WHITESPACE = re.compile(r"\s+")
_SEPARATORS = re.compile(r"[/\-]+")


def canonicalize_pair(pair: str) -> str:
    """
    Normalize a pair string into its grouping key.

    Uppercases, strips all whitespace and collapses runs of `-`/`/`
    into a single `/`. Idempotent.

    Example:
        >>> canonicalize_pair("ada - usd")
        'ADA/USD'
    """
    compact = _WHITESPACE.sub("", pair.upper())
    return _SEPARATORS.sub("/", compact)


class MarketDataNormalizer:
    """
    Turns raw observations into grouped market quotes.

    Pure: holds only its thresholds and never mutates its input.
    """

    __slots__ = ("_thresholds", "_reference_venues")

    def __init__(self, thresholds: ScanThresholds | None = None) -> None:
        """
        Initialize normalizer.

        Args:
            thresholds: Validity bounds and liquidity estimation settings.
        """
        self._thresholds = thresholds or ScanThresholds()
        # Venue names match case-insensitively, as in the fee table
        self._reference_venues = frozenset(v.lower() for v in self._thresholds.reference_venues)

    def is_valid(self, observation: PriceObservation) -> bool:
        """
        Check whether an observation may take part in comparison.

        Valid iff the price lies strictly inside the configured bounds,
        volume is positive, the venue is not reference-only and the
        base symbol is known.
        """
        t = self._thresholds
        return (
            t.min_valid_price < observation.price < t.max_valid_price
            and observation.volume_24h > 0
            and observation.venue.lower() not in self._reference_venues
            and observation.base_symbol not in UNKNOWN_SYMBOLS
        )

    def to_quote(self, observation: PriceObservation) -> MarketQuote:
        """Reshape a valid observation into a market quote."""
        t = self._thresholds
        return MarketQuote(
            pair=canonicalize_pair(observation.pair),
            venue=observation.venue,
            price=observation.price,
            volume_24h=max(observation.volume_24h, t.volume_floor),
            liquidity=max(observation.volume_24h * t.liquidity_volume_factor, t.liquidity_floor),
        )

    def normalize(self, observations: Iterable[PriceObservation]) -> list[MarketQuote]:
        """
        Validate and reshape observations, dropping invalid ones.

        Args:
            observations: Raw observations from the price feed.

        Returns:
            Market quotes in input order.
        """
        quotes: list[MarketQuote] = []
        dropped = 0

        for observation in observations:
            if not self.is_valid(observation):
                dropped += 1
                continue
            quotes.append(self.to_quote(observation))

        if dropped:
            logger.debug(f"Dropped {dropped} invalid price observations")

        return quotes

    def group_by_pair(self, quotes: Iterable[MarketQuote]) -> dict[str, list[MarketQuote]]:
        """
        Group quotes by canonical pair, one quote per venue.

        The first quote seen for a (pair, venue) wins.
        """
        groups: dict[str, list[MarketQuote]] = {}
        seen: set[tuple[str, str]] = set()

        for quote in quotes:
            key = (quote.pair, quote.venue)
            if key in seen:
                continue
            seen.add(key)
            groups.setdefault(quote.pair, []).append(quote)

        return groups

    def prepare(self, observations: Iterable[PriceObservation]) -> dict[str, list[MarketQuote]]:
        """Validate, reshape and group observations in one pass."""
        return self.group_by_pair(self.normalize(observations))

    @property
    def thresholds(self) -> ScanThresholds:
        """Get validity thresholds."""
        return self._thresholds
