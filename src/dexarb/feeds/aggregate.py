"""
Multi-venue price feed.

Polls every enabled venue concurrently and merges the results into one
observation list for the scan pipeline.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from dexarb.core.types import PriceObservation
from dexarb.feeds.adapters import VenueAdapter
from dexarb.feeds.client import FeedError, VenueHttpClient
from dexarb.strategy.normalizer import canonicalize_pair


logger = logging.getLogger(__name__)


@dataclass
class FeedStats:
    """Per-venue fetch counters."""

    fetches: int = 0
    successes: dict[str, int] = field(default_factory=dict)
    failures: dict[str, int] = field(default_factory=dict)
    last_errors: dict[str, str] = field(default_factory=dict)

    def record_success(self, venue: str) -> None:
        self.successes[venue] = self.successes.get(venue, 0) + 1
        self.last_errors.pop(venue, None)

    def record_failure(self, venue: str, error: BaseException) -> None:
        self.failures[venue] = self.failures.get(venue, 0) + 1
        self.last_errors[venue] = str(error)


class MultiVenueFeed:
    """
    Price feed backed by a set of venue adapters.

    One failing venue is logged and skipped; the fetch only fails when
    every venue failed. Observations are de-duplicated on
    (canonical pair, venue), keeping the first.
    """

    def __init__(
        self,
        adapters: Sequence[VenueAdapter],
        client: VenueHttpClient | None = None,
    ) -> None:
        """
        Initialize the feed.

        Args:
            adapters: Venue adapters to poll.
            client: Shared HTTP client (created if omitted).
        """
        if not adapters:
            raise ValueError("At least one venue adapter is required")

        self._adapters = list(adapters)
        self._client = client or VenueHttpClient()
        self._stats = FeedStats()

    async def fetch_observations(self) -> list[PriceObservation]:
        """
        Fetch current observations from all venues.

        Raises:
            FeedError: If every venue failed.
        """
        self._stats.fetches += 1
        results = await asyncio.gather(
            *(adapter.fetch(self._client) for adapter in self._adapters),
            return_exceptions=True,
        )

        observations: list[PriceObservation] = []
        seen: set[tuple[str, str]] = set()
        failed = 0

        for adapter, result in zip(self._adapters, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failed += 1
                self._stats.record_failure(adapter.venue, result)
                logger.error(f"{adapter.venue} fetch failed: {result}")
                continue

            self._stats.record_success(adapter.venue)
            for observation in result:
                # Volumeless quotes are dropped later and must not shadow a usable one
                if observation.volume_24h > 0:
                    key = (canonicalize_pair(observation.pair), observation.venue)
                    if key in seen:
                        continue
                    seen.add(key)
                observations.append(observation)

        if failed == len(self._adapters):
            raise FeedError(f"All {failed} venues failed")

        logger.debug(
            f"Fetched {len(observations)} observations from "
            f"{len(self._adapters) - failed}/{len(self._adapters)} venues"
        )
        return observations

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    @property
    def venues(self) -> list[str]:
        """Get the polled venue names."""
        return [adapter.venue for adapter in self._adapters]

    @property
    def stats(self) -> FeedStats:
        """Get fetch statistics."""
        return self._stats

    async def __aenter__(self) -> "MultiVenueFeed":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
