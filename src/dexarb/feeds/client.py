"""
Async HTTP client for venue price APIs.

Shared by every venue adapter:
- Single session with connection pooling
- Fast JSON parsing with orjson
- GraphQL POST helper
- Per-venue rate limiting
- Retry with linear backoff on transient failures
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
import orjson

from dexarb.config.constants import (
    MAX_REQUEST_RETRIES,
    REQUEST_TIMEOUT_SECONDS,
    RETRY_BACKOFF_SECONDS,
    USER_AGENT,
)
from dexarb.feeds.rate_limiter import VenueRateLimiter


logger = logging.getLogger(__name__)


class FeedError(Exception):
    """Base exception for price feed errors."""

    def __init__(self, message: str, venue: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.venue = venue
        self.status = status


class FeedAPIError(FeedError):
    """Venue answered with an error status or GraphQL errors."""

    @property
    def retryable(self) -> bool:
        """Server-side and throttling errors are worth another attempt."""
        return self.status is None or self.status == 429 or self.status >= 500


class FeedParseError(FeedError):
    """Venue answered with a body that is not the expected JSON shape."""

    pass


class VenueHttpClient:
    """
    Async HTTP client shared by the venue adapters.

    Network errors and retryable API errors are retried up to
    `max_retries` times, sleeping `backoff * attempt` seconds in between.
    Parse errors are never retried.
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_retries: int = MAX_REQUEST_RETRIES,
        backoff: float = RETRY_BACKOFF_SECONDS,
        rate_limiter: VenueRateLimiter | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            timeout: Total timeout per request in seconds.
            max_retries: Extra attempts after the first failure.
            backoff: Base delay between attempts in seconds.
            rate_limiter: Optional per-venue rate limiter.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._max_retries = max_retries
        self._backoff = backoff
        self._rate_limiter = rate_limiter or VenueRateLimiter()
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=50,
                limit_per_host=10,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )

            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=self._timeout,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )

        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    @asynccontextmanager
    async def _request_context(self, venue: str) -> AsyncIterator[aiohttp.ClientSession]:
        """Context manager translating transport errors into feed errors."""
        session = await self._get_session()
        try:
            yield session
        except asyncio.TimeoutError as e:
            raise FeedError(f"{venue} request timed out", venue=venue) from e
        except aiohttp.ClientError as e:
            raise FeedError(f"{venue} network error: {e}", venue=venue) from e

    async def _request_once(
        self,
        venue: str,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        await self._rate_limiter.acquire(venue)

        async with self._request_context(venue) as session:
            async with session.request(method, url, params=params, json=json_body) as response:
                return await self._handle_response(venue, response)

    async def _handle_response(self, venue: str, response: aiohttp.ClientResponse) -> Any:
        """Parse and validate response."""
        body = await response.read()

        if response.status >= 400:
            snippet = body[:200].decode(errors="replace")
            raise FeedAPIError(
                f"{venue} API error {response.status}: {snippet}",
                venue=venue,
                status=response.status,
            )

        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise FeedParseError(f"{venue} returned invalid JSON: {e}", venue=venue) from e

    async def request(
        self,
        venue: str,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make a request with retries.

        Args:
            venue: Venue name (rate-limit bucket and error context).
            method: HTTP method.
            url: Absolute URL.
            params: Query parameters.
            json_body: JSON request body.

        Returns:
            Decoded JSON body.

        Raises:
            FeedAPIError: On a non-retryable error status, or when retries run out.
            FeedParseError: On an undecodable body.
            FeedError: On network errors once retries run out.
        """
        attempt = 0
        while True:
            try:
                return await self._request_once(venue, method, url, params, json_body)
            except FeedParseError:
                raise
            except FeedError as e:
                if isinstance(e, FeedAPIError) and not e.retryable:
                    raise
                if attempt >= self._max_retries:
                    raise
                attempt += 1
                delay = self._backoff * attempt
                logger.debug(f"{venue} attempt {attempt} failed ({e}), retrying in {delay:.1f}s")
                await asyncio.sleep(delay)

    async def get_json(self, venue: str, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON document."""
        return await self.request(venue, "GET", url, params=params)

    async def post_graphql(
        self,
        venue: str,
        url: str,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Run a GraphQL query.

        Returns:
            The `data` member of the response.

        Raises:
            FeedAPIError: If the response carries GraphQL `errors`.
            FeedParseError: If the response has no `data` object.
        """
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables

        payload = await self.request(venue, "POST", url, json_body=body)
        if not isinstance(payload, dict):
            raise FeedParseError(f"{venue} GraphQL response is not an object", venue=venue)

        errors = payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            if isinstance(first, dict):
                first = first.get("message", first)
            raise FeedAPIError(f"{venue} GraphQL error: {first}", venue=venue, status=200)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise FeedParseError(f"{venue} GraphQL response has no data", venue=venue)
        return data

    async def __aenter__(self) -> "VenueHttpClient":
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()
