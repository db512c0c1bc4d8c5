"""
Pydantic models for venue API payloads.

Venue responses vary in shape and numeric encoding (numbers, numeric
strings, missing fields); these models give type-safe parsing so the
adapters only deal with validated values.
"""

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _zero_if_missing(v: object) -> object:
    return 0.0 if v is None or v == "" else v


# Numeric amount that venues may send as a number, a numeric string or null
Amount = Annotated[float, BeforeValidator(_zero_if_missing)]


def _none_if_empty(v: object) -> object:
    return None if v == "" else v


# Amount that may be absent altogether
OptionalAmount = Annotated[float | None, BeforeValidator(_none_if_empty)]


class _Payload(BaseModel):
    """Base for venue payloads: tolerant of extra fields."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# Minswap (GraphQL)
# =============================================================================


class MinswapAsset(_Payload):
    """Asset reference in a Minswap pool."""

    asset_name: str | None = Field(default=None, alias="assetName")


class MinswapPool(_Payload):
    """Minswap liquidity pool."""

    asset_a: MinswapAsset = Field(default_factory=MinswapAsset, alias="assetA")
    asset_b: MinswapAsset = Field(default_factory=MinswapAsset, alias="assetB")
    reserve_a: Amount = Field(default=0.0, alias="reserveA")
    reserve_b: Amount = Field(default=0.0, alias="reserveB")
    volume_24h: Amount = Field(default=0.0, alias="volume24h")
    tvl: Amount = 0.0


# =============================================================================
# SundaeSwap (REST)
# =============================================================================


class SundaeAsset(_Payload):
    """Asset reference in a SundaeSwap pool."""

    asset_id: str = Field(default="", alias="assetId")

    @property
    def symbol(self) -> str:
        """ADA for the native asset, otherwise the last 8 chars of the asset id."""
        if self.asset_id == "ada":
            return "ADA"
        return self.asset_id[-8:]


class SundaeVolume(_Payload):
    """Rolling volume block."""

    rolling_24_hours: Amount = Field(default=0.0, alias="rolling24Hours")


class SundaePool(_Payload):
    """SundaeSwap liquidity pool."""

    ident: str = ""
    asset_a: SundaeAsset = Field(default_factory=SundaeAsset, alias="assetA")
    asset_b: SundaeAsset = Field(default_factory=SundaeAsset, alias="assetB")
    quantity_a: Amount = Field(default=0.0, alias="quantityA")
    quantity_b: Amount = Field(default=0.0, alias="quantityB")
    tvl: Amount = 0.0
    volume: SundaeVolume = Field(default_factory=SundaeVolume)


# =============================================================================
# MuesliSwap (REST)
# =============================================================================


class MuesliToken(_Payload):
    """Token reference in a MuesliSwap pool."""

    symbol: str | None = None


class MuesliPool(_Payload):
    """
    MuesliSwap liquidity pool.

    Older API versions report reserves as `liquidity_a`/`liquidity_b`.
    """

    id: str | int = ""
    token_a: MuesliToken = Field(default_factory=MuesliToken)
    token_b: MuesliToken = Field(default_factory=MuesliToken)
    reserve_a: OptionalAmount = None
    reserve_b: OptionalAmount = None
    liquidity_a: OptionalAmount = None
    liquidity_b: OptionalAmount = None
    volume_24h: Amount = 0.0
    price: OptionalAmount = None

    @property
    def reserves(self) -> tuple[float, float]:
        """(reserve A, reserve B), falling back to the legacy fields."""
        a = self.reserve_a if self.reserve_a is not None else self.liquidity_a
        b = self.reserve_b if self.reserve_b is not None else self.liquidity_b
        return (a or 0.0, b or 0.0)


# =============================================================================
# WingRiders (GraphQL)
# =============================================================================


class WingRidersToken(_Payload):
    """Token reference in a WingRiders pool."""

    ticker: str | None = None


class WingRidersPool(_Payload):
    """WingRiders liquidity pool."""

    token_a: WingRidersToken = Field(default_factory=WingRidersToken, alias="tokenA")
    token_b: WingRidersToken = Field(default_factory=WingRidersToken, alias="tokenB")
    reserve_a: Amount = Field(default=0.0, alias="reserveA")
    reserve_b: Amount = Field(default=0.0, alias="reserveB")
    volume_24h: Amount = Field(default=0.0, alias="volume24h")
    tvl: Amount = 0.0


# =============================================================================
# Aggregators
# =============================================================================


class LlamaCoin(_Payload):
    """One coin from DeFiLlama `prices/current`."""

    price: float
    symbol: str = ""
    timestamp: int | None = None
    confidence: float | None = None


class LlamaPrices(_Payload):
    """DeFiLlama `prices/current` response."""

    coins: dict[str, LlamaCoin] = Field(default_factory=dict)


class CoinGeckoQuote(_Payload):
    """One coin from CoinGecko `simple/price` (USD only)."""

    usd: float
    usd_24h_vol: Amount = 0.0
    usd_24h_change: float | None = None
    usd_market_cap: float | None = None
