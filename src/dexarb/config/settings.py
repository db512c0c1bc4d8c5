"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dexarb.config.constants import (
    DEFAULT_FEE_RATE,
    DEFAULT_VENUE_FEES,
    EXECUTION_MIN_NET_PROFIT,
    MAX_RAW_PROFIT_PCT,
    MAX_REQUEST_RETRIES,
    MAX_RESULTS,
    MAX_SLIPPAGE_RISK,
    MAX_TRADE_VOLUME,
    MAX_VALID_PRICE,
    MIN_NET_PROFIT,
    MIN_NET_PROFIT_PCT,
    MIN_PRICE_DIFFERENCE,
    MIN_RAW_PROFIT_PCT,
    MIN_VALID_PRICE,
    MIN_VOLUME,
    OPPORTUNITY_TTL_SECONDS,
    REFERENCE_ONLY_VENUES,
    REQUEST_TIMEOUT_SECONDS,
    REQUESTS_PER_SECOND,
    SCAN_COOLDOWN_SECONDS,
    SCAN_INTERVAL_SECONDS,
    STALE_RECORD_SECONDS,
    VENUE_COINGECKO,
    VENUE_DEFILLAMA,
    VENUE_MINSWAP,
    VENUE_MUESLISWAP,
    VENUE_SUNDAESWAP,
    VENUE_WINGRIDERS,
)
from dexarb.core.types import ScanThresholds, VenueFees


class VenueFeeConfig(BaseModel):
    """Fee schedule entry as it appears in configuration."""

    venue: str
    trading_fee: float = Field(ge=0.0, le=0.1)
    withdrawal_fee: float = Field(ge=0.0, le=0.1)
    network_fee: float = Field(ge=0.0)
    minimum_trade: float = Field(default=0.0, ge=0.0)


def _default_venue_fees() -> list[VenueFeeConfig]:
    return [
        VenueFeeConfig(
            venue=venue,
            trading_fee=trading,
            withdrawal_fee=withdrawal,
            network_fee=network,
            minimum_trade=minimum,
        )
        for venue, (trading, withdrawal, network, minimum) in DEFAULT_VENUE_FEES.items()
    ]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    ``DEXARB_`` prefix. List values (fee table, venues) are read as JSON.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEXARB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Scan Cadence
    # =========================================================================

    scan_cooldown_seconds: float = Field(
        default=SCAN_COOLDOWN_SECONDS,
        ge=0.0,
        le=3600.0,
        description="Minimum time between the starts of two scans",
    )

    scan_interval_seconds: float = Field(
        default=SCAN_INTERVAL_SECONDS,
        gt=0.0,
        le=3600.0,
        description="Interval for periodic scanning",
    )

    # =========================================================================
    # Observation Validity
    # =========================================================================

    min_valid_price: float = Field(default=MIN_VALID_PRICE, ge=0.0)
    max_valid_price: float = Field(default=MAX_VALID_PRICE, gt=0.0)

    reference_venues: list[str] = Field(
        default_factory=lambda: sorted(REFERENCE_ONLY_VENUES),
        description="Reference-only price sources excluded from comparison",
    )

    # =========================================================================
    # Detection
    # =========================================================================

    min_price_difference: float = Field(default=MIN_PRICE_DIFFERENCE, ge=0.0)
    min_raw_profit_pct: float = Field(default=MIN_RAW_PROFIT_PCT, ge=0.0)
    max_raw_profit_pct: float = Field(default=MAX_RAW_PROFIT_PCT, gt=0.0)
    max_trade_volume: float = Field(default=MAX_TRADE_VOLUME, gt=0.0)
    opportunity_ttl_seconds: int = Field(default=OPPORTUNITY_TTL_SECONDS, ge=1)
    execution_min_net_profit: float = Field(default=EXECUTION_MIN_NET_PROFIT, ge=0.0)

    # =========================================================================
    # Viability & Ranking
    # =========================================================================

    min_net_profit_pct: float = Field(default=MIN_NET_PROFIT_PCT, ge=0.0)
    min_volume: float = Field(default=MIN_VOLUME, ge=0.0)
    max_slippage_risk: float = Field(default=MAX_SLIPPAGE_RISK, gt=0.0)
    min_net_profit: float = Field(default=MIN_NET_PROFIT)
    max_results: int = Field(default=MAX_RESULTS, ge=1, le=100)

    # =========================================================================
    # Fees
    # =========================================================================

    default_fee_rate: float = Field(
        default=DEFAULT_FEE_RATE,
        ge=0.0,
        le=0.1,
        description="Per-unit fee for venues missing from the fee table",
    )

    venue_fees: list[VenueFeeConfig] = Field(
        default_factory=_default_venue_fees,
        description="Known venue fee schedules",
    )

    # =========================================================================
    # Price Feed
    # =========================================================================

    enabled_venues: list[str] = Field(
        default_factory=lambda: [
            VENUE_MINSWAP,
            VENUE_SUNDAESWAP,
            VENUE_MUESLISWAP,
            VENUE_WINGRIDERS,
            VENUE_DEFILLAMA,
            VENUE_COINGECKO,
        ],
        description="Venues polled by the live price feed",
    )

    request_timeout_seconds: float = Field(default=REQUEST_TIMEOUT_SECONDS, gt=0.0, le=120.0)
    max_request_retries: int = Field(default=MAX_REQUEST_RETRIES, ge=0, le=10)
    requests_per_second: int = Field(default=REQUESTS_PER_SECOND, ge=1, le=100)

    # =========================================================================
    # Persistence
    # =========================================================================

    storage_path: Path = Field(
        default=Path("data/opportunities.json"),
        description="File used by the JSON opportunity store",
    )

    stale_record_seconds: int = Field(default=STALE_RECORD_SECONDS, ge=60)

    # =========================================================================
    # Operation
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(default=None, description="Optional log file")

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for improved async performance",
    )

    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8000, ge=1, le=65535)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("max_valid_price", mode="after")
    @classmethod
    def validate_price_bounds(cls, v: float, info: ValidationInfo) -> float:
        """Ensure the valid price window is not empty."""
        low = info.data.get("min_valid_price", MIN_VALID_PRICE)
        if v <= low:
            raise ValueError("max_valid_price must be greater than min_valid_price")
        return v

    @field_validator("max_raw_profit_pct", mode="after")
    @classmethod
    def validate_profit_window(cls, v: float, info: ValidationInfo) -> float:
        """Ensure the raw profit gate is not empty."""
        low = info.data.get("min_raw_profit_pct", MIN_RAW_PROFIT_PCT)
        if v <= low:
            raise ValueError("max_raw_profit_pct must be greater than min_raw_profit_pct")
        return v

    @field_validator("venue_fees", mode="after")
    @classmethod
    def validate_unique_venues(cls, v: list[VenueFeeConfig]) -> list[VenueFeeConfig]:
        """Reject duplicate venues in the fee table."""
        names = [entry.venue.lower() for entry in v]
        if len(names) != len(set(names)):
            raise ValueError("venue_fees contains duplicate venues")
        return v

    # =========================================================================
    # Derived Configuration
    # =========================================================================

    def thresholds(self) -> ScanThresholds:
        """Build the scan thresholds consumed by the pipeline."""
        return ScanThresholds(
            min_valid_price=self.min_valid_price,
            max_valid_price=self.max_valid_price,
            reference_venues=frozenset(self.reference_venues),
            min_price_difference=self.min_price_difference,
            min_raw_profit_pct=self.min_raw_profit_pct,
            max_raw_profit_pct=self.max_raw_profit_pct,
            max_trade_volume=self.max_trade_volume,
            opportunity_ttl_seconds=self.opportunity_ttl_seconds,
            execution_min_net_profit=self.execution_min_net_profit,
            min_net_profit_pct=self.min_net_profit_pct,
            min_volume=self.min_volume,
            max_slippage_risk=self.max_slippage_risk,
            min_net_profit=self.min_net_profit,
            max_results=self.max_results,
        )

    def fee_table(self) -> list[VenueFees]:
        """Build the venue fee table consumed by the fee model."""
        return [
            VenueFees(
                venue=entry.venue,
                trading_fee=entry.trading_fee,
                withdrawal_fee=entry.withdrawal_fee,
                network_fee=entry.network_fee,
                minimum_trade=entry.minimum_trade,
            )
            for entry in self.venue_fees
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
