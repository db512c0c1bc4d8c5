"""Venue price feeds: HTTP client, payload models and adapters."""

from dexarb.feeds.adapters import ADAPTERS, VenueAdapter, build_adapters
from dexarb.feeds.aggregate import MultiVenueFeed
from dexarb.feeds.client import FeedAPIError, FeedError, FeedParseError, VenueHttpClient
from dexarb.feeds.rate_limiter import VenueRateLimiter


__all__ = [
    "ADAPTERS",
    "FeedAPIError",
    "FeedError",
    "FeedParseError",
    "MultiVenueFeed",
    "VenueAdapter",
    "VenueHttpClient",
    "VenueRateLimiter",
    "build_adapters",
]
