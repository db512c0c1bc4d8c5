"""
Token bucket pacing for venue API requests.

Public DEX endpoints throttle aggressively and share no rate-limit
headers, so each venue gets its own bucket and the feed paces itself.
"""

import asyncio
from dataclasses import dataclass, field

from dexarb.config.constants import REQUESTS_PER_SECOND
from dexarb.utils.time import get_timestamp_ms


@dataclass
class TokenBucket:
    """
    Token bucket implementation for rate limiting.

    Tokens are added at a constant rate up to a maximum capacity.
    Each request consumes one token.
    """

    capacity: int
    refill_rate: float  # tokens per second
    tokens: float = field(init=False)
    last_refill: int = field(init=False)  # milliseconds
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize with full bucket."""
        self.tokens = float(self.capacity)
        self.last_refill = get_timestamp_ms()

    def _refill(self) -> None:
        now = get_timestamp_ms()
        elapsed_seconds = (now - self.last_refill) / 1000.0
        self.tokens = min(self.capacity, self.tokens + elapsed_seconds * self.refill_rate)
        self.last_refill = now

    async def acquire(self, tokens: int = 1) -> None:
        """
        Acquire tokens, sleeping until enough have accumulated.

        Args:
            tokens: Number of tokens to acquire.
        """
        async with self._lock:
            self._refill()

            if self.tokens < tokens:
                await asyncio.sleep((tokens - self.tokens) / self.refill_rate)
                self._refill()

            self.tokens -= tokens

    def try_acquire(self, tokens: int = 1) -> bool:
        """Take tokens only if available right now."""
        self._refill()
        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False


class VenueRateLimiter:
    """
    One token bucket per venue.

    Buckets are created lazily; burst capacity is twice the rate.
    """

    def __init__(self, requests_per_second: int = REQUESTS_PER_SECOND) -> None:
        """
        Initialize rate limiter.

        Args:
            requests_per_second: Sustained request rate allowed per venue.
        """
        self._rate = requests_per_second
        self._buckets: dict[str, TokenBucket] = {}

    def _bucket(self, venue: str) -> TokenBucket:
        bucket = self._buckets.get(venue)
        if bucket is None:
            bucket = TokenBucket(capacity=self._rate * 2, refill_rate=float(self._rate))
            self._buckets[venue] = bucket
        return bucket

    async def acquire(self, venue: str) -> None:
        """Wait for permission to send one request to a venue."""
        await self._bucket(venue).acquire(1)

    def available(self, venue: str) -> float:
        """Get approximate number of tokens available for a venue."""
        return self._bucket(venue).tokens

    @property
    def requests_per_second(self) -> int:
        """Get the per-venue request rate."""
        return self._rate
