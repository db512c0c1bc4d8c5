"""
Integration tests for MultiVenueFeed.

Tests concurrent venue polling, partial failure handling and
de-duplication with in-process adapters.
"""

from typing import Any

import pytest

from dexarb.core.types import PriceObservation
from dexarb.feeds.adapters import VenueAdapter
from dexarb.feeds.aggregate import MultiVenueFeed
from dexarb.feeds.client import FeedAPIError, FeedError, VenueHttpClient


class StaticAdapter(VenueAdapter):
    """Adapter serving a fixed payload instead of calling a venue."""

    venue = "Static"

    def __init__(
        self,
        observations: list[PriceObservation] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._observations = observations or []
        self._error = error
        self.fetches = 0

    async def fetch_raw(self, client: VenueHttpClient) -> Any:
        self.fetches += 1
        if self._error is not None:
            raise self._error
        return self._observations

    def parse(self, payload: Any) -> list[PriceObservation]:
        return list(payload)


class AlphaAdapter(StaticAdapter):
    venue = "Alpha"


class BetaAdapter(StaticAdapter):
    venue = "Beta"


def observation(
    venue: str,
    pair: str = "MIN/ADA",
    price: float = 0.02,
    volume_24h: float = 50_000.0,
) -> PriceObservation:
    return PriceObservation(pair=pair, venue=venue, price=price, volume_24h=volume_24h)


class TestMultiVenueFeed:
    """Tests for MultiVenueFeed."""

    @pytest.mark.asyncio
    async def test_merges_all_venues(self) -> None:
        """Test observations from every venue are combined in adapter order."""
        feed = MultiVenueFeed(
            [
                AlphaAdapter([observation("Alpha")]),
                BetaAdapter([observation("Beta", price=0.021)]),
            ]
        )

        observations = await feed.fetch_observations()

        assert [o.venue for o in observations] == ["Alpha", "Beta"]
        assert feed.venues == ["Alpha", "Beta"]
        await feed.close()

    @pytest.mark.asyncio
    async def test_one_venue_failure_is_skipped(self) -> None:
        """Test a failing venue does not fail the fetch."""
        feed = MultiVenueFeed(
            [
                AlphaAdapter(error=FeedAPIError("down", venue="Alpha", status=503)),
                BetaAdapter([observation("Beta")]),
            ]
        )

        observations = await feed.fetch_observations()

        assert [o.venue for o in observations] == ["Beta"]
        assert feed.stats.failures == {"Alpha": 1}
        assert feed.stats.successes == {"Beta": 1}
        assert "down" in feed.stats.last_errors["Alpha"]

    @pytest.mark.asyncio
    async def test_all_venues_failing_raises(self) -> None:
        """Test the fetch fails when no venue answered."""
        feed = MultiVenueFeed(
            [
                AlphaAdapter(error=FeedError("timeout")),
                BetaAdapter(error=RuntimeError("bug")),
            ]
        )

        with pytest.raises(FeedError, match="All 2 venues failed"):
            await feed.fetch_observations()

    @pytest.mark.asyncio
    async def test_recovered_venue_clears_last_error(self) -> None:
        """Test a later success forgets the venue's last error."""
        alpha = AlphaAdapter(error=FeedError("flaky"))
        feed = MultiVenueFeed([alpha, BetaAdapter([observation("Beta")])])

        await feed.fetch_observations()
        alpha._error = None
        await feed.fetch_observations()

        assert "Alpha" not in feed.stats.last_errors
        assert feed.stats.fetches == 2

    @pytest.mark.asyncio
    async def test_duplicates_dropped(self) -> None:
        """Test one observation per canonical pair and venue."""
        feed = MultiVenueFeed(
            [
                AlphaAdapter(
                    [
                        observation("Alpha", pair="MIN/ADA", price=0.02),
                        observation("Alpha", pair="min-ada", price=0.03),
                        observation("Alpha", pair="WMT/ADA", price=0.5),
                    ]
                )
            ]
        )

        observations = await feed.fetch_observations()

        assert [(o.pair, o.price) for o in observations] == [("MIN/ADA", 0.02), ("WMT/ADA", 0.5)]

    @pytest.mark.asyncio
    async def test_volumeless_quote_does_not_hide_later_pool(self) -> None:
        """Test an empty pool ahead of a live one for the same pair keeps the live one."""
        feed = MultiVenueFeed(
            [
                AlphaAdapter(
                    [
                        observation("Alpha", pair="ADA/Token", price=0.5, volume_24h=0.0),
                        observation("Alpha", pair="ADA/Token", price=0.6),
                        observation("Alpha", pair="ADA/Token", price=0.7),
                    ]
                )
            ]
        )

        observations = await feed.fetch_observations()

        assert [(o.price, o.volume_24h) for o in observations] == [(0.5, 0.0), (0.6, 50_000.0)]

    def test_requires_adapters(self) -> None:
        """Test an empty adapter list is rejected."""
        with pytest.raises(ValueError):
            MultiVenueFeed([])

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self) -> None:
        """Test the feed closes its client on exit."""
        closed: list[bool] = []

        class TrackingClient(VenueHttpClient):
            async def close(self) -> None:
                closed.append(True)

        async with MultiVenueFeed([AlphaAdapter()], TrackingClient()) as feed:
            await feed.fetch_observations()

        assert closed == [True]
