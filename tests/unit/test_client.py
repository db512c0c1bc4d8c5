"""
Unit tests for VenueHttpClient retry handling and rate limiting.

The single-request path is stubbed so no sockets are opened.
"""

from typing import Any

import pytest

from dexarb.feeds.client import FeedAPIError, FeedError, FeedParseError, VenueHttpClient
from dexarb.feeds.rate_limiter import TokenBucket, VenueRateLimiter


class ScriptedClient(VenueHttpClient):
    """Client whose requests replay a scripted list of outcomes."""

    def __init__(self, outcomes: list[Any], max_retries: int = 2) -> None:
        super().__init__(max_retries=max_retries, backoff=0.0)
        self._outcomes = list(outcomes)
        self.attempts = 0

    async def _request_once(
        self,
        venue: str,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        self.attempts += 1
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestFeedAPIError:
    """Tests for retry classification."""

    @pytest.mark.parametrize(
        ("status", "retryable"),
        [(None, True), (429, True), (500, True), (503, True), (400, False), (404, False)],
    )
    def test_retryable(self, status: int | None, retryable: bool) -> None:
        """Test throttling and server errors are retryable."""
        assert FeedAPIError("x", venue="v", status=status).retryable is retryable


class TestRetries:
    """Tests for the retry loop."""

    @pytest.mark.asyncio
    async def test_network_error_retried(self) -> None:
        """Test transient failures are retried until success."""
        client = ScriptedClient([FeedError("reset"), FeedAPIError("busy", status=503), {"ok": 1}])

        assert await client.get_json("Minswap", "http://x") == {"ok": 1}
        assert client.attempts == 3

    @pytest.mark.asyncio
    async def test_retries_exhausted(self) -> None:
        """Test the last error surfaces once retries run out."""
        client = ScriptedClient([FeedError("a"), FeedError("b"), FeedError("c")], max_retries=2)

        with pytest.raises(FeedError, match="c"):
            await client.get_json("Minswap", "http://x")
        assert client.attempts == 3

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self) -> None:
        """Test 4xx responses fail immediately."""
        client = ScriptedClient([FeedAPIError("gone", status=404), {"ok": 1}])

        with pytest.raises(FeedAPIError):
            await client.get_json("Minswap", "http://x")
        assert client.attempts == 1

    @pytest.mark.asyncio
    async def test_parse_error_not_retried(self) -> None:
        """Test undecodable bodies fail immediately."""
        client = ScriptedClient([FeedParseError("html"), {"ok": 1}])

        with pytest.raises(FeedParseError):
            await client.get_json("Minswap", "http://x")
        assert client.attempts == 1


class TestGraphQL:
    """Tests for the GraphQL helper."""

    @pytest.mark.asyncio
    async def test_returns_data(self) -> None:
        """Test the data member is returned."""
        client = ScriptedClient([{"data": {"pools": []}}])

        assert await client.post_graphql("WingRiders", "http://x", "query {}") == {"pools": []}

    @pytest.mark.asyncio
    async def test_errors_raise(self) -> None:
        """Test GraphQL errors become API errors."""
        client = ScriptedClient([{"errors": [{"message": "bad query"}], "data": None}])

        with pytest.raises(FeedAPIError, match="bad query"):
            await client.post_graphql("WingRiders", "http://x", "query {}")

    @pytest.mark.asyncio
    async def test_missing_data_raises(self) -> None:
        """Test a response without data is a parse error."""
        client = ScriptedClient([{"something": "else"}])

        with pytest.raises(FeedParseError):
            await client.post_graphql("WingRiders", "http://x", "query {}")


class TestRateLimiter:
    """Tests for per-venue token buckets."""

    def test_burst_capacity(self) -> None:
        """Test a bucket starts full and drains."""
        bucket = TokenBucket(capacity=2, refill_rate=0.001)

        assert bucket.try_acquire() is True
        assert bucket.try_acquire() is True
        assert bucket.try_acquire() is False

    @pytest.mark.asyncio
    async def test_venues_are_independent(self) -> None:
        """Test one venue's usage does not drain another's bucket."""
        limiter = VenueRateLimiter(requests_per_second=1)

        await limiter.acquire("Minswap")
        await limiter.acquire("Minswap")

        assert limiter.available("Minswap") < 1
        assert limiter.available("SundaeSwap") == 2
