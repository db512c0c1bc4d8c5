"""
Mock price feed and opportunity sinks for testing.

Provide controllable stand-ins for the live venue feed and the
persistence layer without network or disk access.
"""

import asyncio
from collections.abc import Sequence

from dexarb.core.types import OpportunityCandidate, PriceObservation


class MockPriceFeed:
    """
    Mock price feed.

    Returns a fixed observation list, optionally failing or blocking on
    a gate until the test releases it.
    """

    def __init__(
        self,
        observations: Sequence[PriceObservation] = (),
        error: Exception | None = None,
        gated: bool = False,
    ) -> None:
        """
        Initialize mock feed.

        Args:
            observations: Observations returned by every fetch.
            error: Exception raised by every fetch instead.
            gated: Block each fetch until `release()` is called.
        """
        self.observations = list(observations)
        self.error = error
        self.calls = 0
        self.started = asyncio.Event()
        self._gate = asyncio.Event()
        if not gated:
            self._gate.set()

    async def fetch_observations(self) -> list[PriceObservation]:
        self.calls += 1
        self.started.set()
        await self._gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.observations)

    def release(self) -> None:
        """Let blocked fetches complete."""
        self._gate.set()


class RecordingSink:
    """Opportunity sink remembering every batch it was given."""

    def __init__(self) -> None:
        self.batches: list[list[OpportunityCandidate]] = []

    async def store(self, opportunities: Sequence[OpportunityCandidate]) -> None:
        self.batches.append(list(opportunities))


class FailingSink:
    """Opportunity sink whose every write fails."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or RuntimeError("disk full")
        self.calls = 0

    async def store(self, opportunities: Sequence[OpportunityCandidate]) -> None:
        self.calls += 1
        raise self.error
