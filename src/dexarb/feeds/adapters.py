"""
Venue adapters.

Each adapter owns one venue's payload shape: it fetches the raw
response through the shared HTTP client and maps it to canonical
`PriceObservation`s. Parsing is pure and testable without a network.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, ClassVar

from pydantic import BaseModel, ValidationError

from dexarb.config.constants import (
    COINGECKO_API_URL,
    DEFAULT_QUOTE_CURRENCY,
    DEFILLAMA_COINS_URL,
    ENDPOINT_COINGECKO_PRICE,
    ENDPOINT_DEFILLAMA_PRICES,
    ENDPOINT_MUESLISWAP_POOLS,
    ENDPOINT_SUNDAESWAP_POOLS,
    GRAPHQL_POOL_LIMIT,
    MINSWAP_GRAPHQL_URL,
    MUESLISWAP_API_URL,
    SUNDAESWAP_API_URL,
    VENUE_COINGECKO,
    VENUE_DEFILLAMA,
    VENUE_MINSWAP,
    VENUE_MUESLISWAP,
    VENUE_SUNDAESWAP,
    VENUE_WINGRIDERS,
    WINGRIDERS_GRAPHQL_URL,
)
from dexarb.core.types import PriceObservation
from dexarb.feeds.client import FeedParseError, VenueHttpClient
from dexarb.feeds.models import (
    CoinGeckoQuote,
    LlamaPrices,
    MinswapPool,
    MuesliPool,
    SundaePool,
    WingRidersPool,
)


logger = logging.getLogger(__name__)


# Fallback symbols for pools whose assets carry no readable name
DEFAULT_BASE_SYMBOL = "ADA"
DEFAULT_QUOTE_SYMBOL = "Token"

# Aggregator coin ids mapped to the symbol they price
DEFAULT_LLAMA_COINS: dict[str, str] = {"coingecko:cardano": "ADA"}
DEFAULT_COINGECKO_IDS: dict[str, str] = {"cardano": "ADA"}


def _pool_price(reserve_a: float, reserve_b: float) -> float | None:
    """Spot price of a constant-product pool, or None for an empty pool."""
    if reserve_a <= 0 or reserve_b <= 0:
        return None
    return reserve_b / reserve_a


class VenueAdapter(ABC):
    """
    Maps one venue's API to price observations.

    Subclasses set the `venue` discriminator and implement `fetch_raw`
    and `parse`.
    """

    venue: ClassVar[str]

    async def fetch(self, client: VenueHttpClient) -> list[PriceObservation]:
        """
        Fetch and parse the venue's current prices.

        Raises:
            FeedError: If the request fails or the payload is unusable.
        """
        payload = await self.fetch_raw(client)
        observations = self.parse(payload)
        logger.debug(f"{self.venue}: {len(observations)} observations")
        return observations

    @abstractmethod
    async def fetch_raw(self, client: VenueHttpClient) -> Any:
        """Fetch the raw payload."""
        ...

    @abstractmethod
    def parse(self, payload: Any) -> list[PriceObservation]:
        """Map a raw payload to observations, skipping malformed entries."""
        ...

    def _validate_items(self, items: Iterable[Any], model: type[BaseModel]) -> list[Any]:
        """Validate list entries one by one, logging and skipping bad ones."""
        valid = []
        for item in items:
            try:
                valid.append(model.model_validate(item))
            except ValidationError as e:
                logger.debug(f"{self.venue}: skipping malformed entry: {e.error_count()} errors")
        return valid

    def _require_list(self, payload: Any, key: str) -> list[Any]:
        """Extract a list either given directly or under `key`."""
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            items = payload.get(key) or []
            if isinstance(items, list):
                return items
        raise FeedParseError(f"{self.venue}: expected a list of {key}", venue=self.venue)


# =============================================================================
# Pool-based DEXs
# =============================================================================


class MinswapAdapter(VenueAdapter):
    """Minswap pools via GraphQL."""

    venue = VENUE_MINSWAP

    QUERY = """
    query GetPools($limit: Int, $offset: Int) {
      pools(limit: $limit, offset: $offset, where: {isValid: {_eq: true}}) {
        id
        assetA { policyId assetName decimals }
        assetB { policyId assetName decimals }
        reserveA
        reserveB
        volume24h
        tvl
      }
    }
    """

    def __init__(self, url: str = MINSWAP_GRAPHQL_URL, limit: int = GRAPHQL_POOL_LIMIT) -> None:
        self._url = url
        self._limit = limit

    async def fetch_raw(self, client: VenueHttpClient) -> Any:
        return await client.post_graphql(
            self.venue, self._url, self.QUERY, {"limit": self._limit, "offset": 0}
        )

    def parse(self, payload: Any) -> list[PriceObservation]:
        observations = []
        for pool in self._validate_items(self._require_list(payload, "pools"), MinswapPool):
            price = _pool_price(pool.reserve_a, pool.reserve_b)
            if price is None:
                continue
            base = pool.asset_a.asset_name or DEFAULT_BASE_SYMBOL
            quote = pool.asset_b.asset_name or DEFAULT_QUOTE_SYMBOL
            observations.append(
                PriceObservation(
                    pair=f"{base}/{quote}",
                    venue=self.venue,
                    price=price,
                    volume_24h=pool.volume_24h,
                )
            )
        return observations


class SundaeSwapAdapter(VenueAdapter):
    """SundaeSwap pools via the stats REST API."""

    venue = VENUE_SUNDAESWAP

    def __init__(self, base_url: str = SUNDAESWAP_API_URL) -> None:
        self._url = f"{base_url}{ENDPOINT_SUNDAESWAP_POOLS}"

    async def fetch_raw(self, client: VenueHttpClient) -> Any:
        return await client.get_json(self.venue, self._url)

    def parse(self, payload: Any) -> list[PriceObservation]:
        observations = []
        for pool in self._validate_items(self._require_list(payload, "pools"), SundaePool):
            price = _pool_price(pool.quantity_a, pool.quantity_b)
            if price is None:
                continue
            observations.append(
                PriceObservation(
                    pair=f"{pool.asset_a.symbol}/{pool.asset_b.symbol}",
                    venue=self.venue,
                    price=price,
                    volume_24h=pool.volume.rolling_24_hours,
                )
            )
        return observations


class MuesliSwapAdapter(VenueAdapter):
    """
    MuesliSwap pools via REST.

    The pool's own `price` is preferred over the reserve ratio.
    """

    venue = VENUE_MUESLISWAP

    def __init__(self, base_url: str = MUESLISWAP_API_URL) -> None:
        self._url = f"{base_url}{ENDPOINT_MUESLISWAP_POOLS}"

    async def fetch_raw(self, client: VenueHttpClient) -> Any:
        return await client.get_json(self.venue, self._url)

    def parse(self, payload: Any) -> list[PriceObservation]:
        observations = []
        for pool in self._validate_items(self._require_list(payload, "pools"), MuesliPool):
            reserve_a, reserve_b = pool.reserves
            if reserve_a <= 0 or reserve_b <= 0:
                continue
            price = pool.price if pool.price else reserve_b / reserve_a
            base = pool.token_a.symbol or DEFAULT_BASE_SYMBOL
            quote = pool.token_b.symbol or DEFAULT_QUOTE_SYMBOL
            observations.append(
                PriceObservation(
                    pair=f"{base}/{quote}",
                    venue=self.venue,
                    price=price,
                    volume_24h=pool.volume_24h,
                )
            )
        return observations


class WingRidersAdapter(VenueAdapter):
    """WingRiders pools via GraphQL."""

    venue = VENUE_WINGRIDERS

    QUERY = """
    query GetPools {
      pools {
        id
        tokenA { policyId assetName ticker decimals }
        tokenB { policyId assetName ticker decimals }
        reserveA
        reserveB
        volume24h
        tvl
      }
    }
    """

    def __init__(self, url: str = WINGRIDERS_GRAPHQL_URL) -> None:
        self._url = url

    async def fetch_raw(self, client: VenueHttpClient) -> Any:
        return await client.post_graphql(self.venue, self._url, self.QUERY)

    def parse(self, payload: Any) -> list[PriceObservation]:
        observations = []
        for pool in self._validate_items(self._require_list(payload, "pools"), WingRidersPool):
            price = _pool_price(pool.reserve_a, pool.reserve_b)
            if price is None:
                continue
            base = pool.token_a.ticker or DEFAULT_BASE_SYMBOL
            quote = pool.token_b.ticker or DEFAULT_QUOTE_SYMBOL
            observations.append(
                PriceObservation(
                    pair=f"{base}/{quote}",
                    venue=self.venue,
                    price=price,
                    volume_24h=pool.volume_24h,
                )
            )
        return observations


# =============================================================================
# Aggregators
# =============================================================================


class DefiLlamaAdapter(VenueAdapter):
    """
    DeFiLlama current coin prices.

    The endpoint reports no volume, so its observations carry zero
    volume and never reach cross-venue comparison.
    """

    venue = VENUE_DEFILLAMA

    def __init__(
        self,
        coins: dict[str, str] | None = None,
        base_url: str = DEFILLAMA_COINS_URL,
        quote: str = DEFAULT_QUOTE_CURRENCY,
    ) -> None:
        self._coins = coins or DEFAULT_LLAMA_COINS
        self._base_url = base_url
        self._quote = quote

    async def fetch_raw(self, client: VenueHttpClient) -> Any:
        path = ENDPOINT_DEFILLAMA_PRICES.format(coins=",".join(self._coins))
        return await client.get_json(self.venue, f"{self._base_url}{path}")

    def parse(self, payload: Any) -> list[PriceObservation]:
        try:
            prices = LlamaPrices.model_validate(payload)
        except ValidationError as e:
            raise FeedParseError(f"{self.venue}: unexpected payload: {e}", venue=self.venue) from e

        observations = []
        for coin_id, coin in prices.coins.items():
            symbol = self._coins.get(coin_id) or coin.symbol.upper()
            observations.append(
                PriceObservation(
                    pair=f"{symbol}/{self._quote}",
                    venue=self.venue,
                    price=coin.price,
                    volume_24h=0.0,
                )
            )
        return observations


class CoinGeckoAdapter(VenueAdapter):
    """
    CoinGecko `simple/price` fiat quotes.

    Reference-only: the normalizer drops these before comparison.
    """

    venue = VENUE_COINGECKO

    def __init__(
        self,
        ids: dict[str, str] | None = None,
        base_url: str = COINGECKO_API_URL,
    ) -> None:
        self._ids = ids or DEFAULT_COINGECKO_IDS
        self._url = f"{base_url}{ENDPOINT_COINGECKO_PRICE}"

    async def fetch_raw(self, client: VenueHttpClient) -> Any:
        params = {
            "ids": ",".join(self._ids),
            "vs_currencies": "usd",
            "include_24hr_vol": "true",
            "include_24hr_change": "true",
        }
        return await client.get_json(self.venue, self._url, params=params)

    def parse(self, payload: Any) -> list[PriceObservation]:
        if not isinstance(payload, dict):
            raise FeedParseError(f"{self.venue}: expected an object", venue=self.venue)

        observations = []
        for coin_id, symbol in self._ids.items():
            raw = payload.get(coin_id)
            if raw is None:
                continue
            try:
                quote = CoinGeckoQuote.model_validate(raw)
            except ValidationError:
                logger.debug(f"{self.venue}: skipping malformed quote for {coin_id}")
                continue
            observations.append(
                PriceObservation(
                    pair=f"{symbol}/{DEFAULT_QUOTE_CURRENCY}",
                    venue=self.venue,
                    price=quote.usd,
                    volume_24h=quote.usd_24h_vol,
                )
            )
        return observations


# =============================================================================
# Registry
# =============================================================================


ADAPTERS: dict[str, type[VenueAdapter]] = {
    adapter.venue: adapter
    for adapter in (
        MinswapAdapter,
        SundaeSwapAdapter,
        MuesliSwapAdapter,
        WingRidersAdapter,
        DefiLlamaAdapter,
        CoinGeckoAdapter,
    )
}


def build_adapters(venues: Iterable[str]) -> list[VenueAdapter]:
    """
    Instantiate adapters by venue name (case-insensitive).

    Raises:
        ValueError: If a venue has no adapter.
    """
    by_name = {name.lower(): cls for name, cls in ADAPTERS.items()}
    adapters = []
    for venue in venues:
        cls = by_name.get(venue.lower())
        if cls is None:
            raise ValueError(f"No adapter for venue: {venue}")
        adapters.append(cls())
    return adapters
