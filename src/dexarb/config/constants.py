"""
Scanner constants and configuration values.

This module contains all hardcoded values used throughout the scanner.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Venue API Endpoints
# =============================================================================

MINSWAP_GRAPHQL_URL: Final[str] = "https://graphql-api.mainnet.dandelion.link"
SUNDAESWAP_API_URL: Final[str] = "https://stats.sundaeswap.finance/api"
MUESLISWAP_API_URL: Final[str] = "https://api.muesliswap.com"
WINGRIDERS_GRAPHQL_URL: Final[str] = "https://api.wingriders.com/graphql"
DEFILLAMA_COINS_URL: Final[str] = "https://coins.llama.fi"
COINGECKO_API_URL: Final[str] = "https://api.coingecko.com/api/v3"

# Endpoint paths
ENDPOINT_SUNDAESWAP_POOLS: Final[str] = "/pools"
ENDPOINT_MUESLISWAP_POOLS: Final[str] = "/pools"
ENDPOINT_DEFILLAMA_PRICES: Final[str] = "/prices/current/{coins}"
ENDPOINT_COINGECKO_PRICE: Final[str] = "/simple/price"

USER_AGENT: Final[str] = "Cardano-DEX-Monitor/1.0"

# Pools requested per GraphQL page
GRAPHQL_POOL_LIMIT: Final[int] = 100


# =============================================================================
# Venues
# =============================================================================

VENUE_MINSWAP: Final[str] = "Minswap"
VENUE_SUNDAESWAP: Final[str] = "SundaeSwap"
VENUE_MUESLISWAP: Final[str] = "MuesliSwap"
VENUE_WINGRIDERS: Final[str] = "WingRiders"
VENUE_DEFILLAMA: Final[str] = "DeFiLlama"
VENUE_COINGECKO: Final[str] = "CoinGecko"

# Price sources that only publish reference (fiat aggregate) prices
REFERENCE_ONLY_VENUES: Final[frozenset[str]] = frozenset({VENUE_COINGECKO})

# Base symbols that mark an unidentified asset
UNKNOWN_SYMBOLS: Final[frozenset[str]] = frozenset({"", "UNKNOWN"})

DEFAULT_QUOTE_CURRENCY: Final[str] = "USD"


# =============================================================================
# Fees
# =============================================================================

# Fallback rate for venues missing from the fee table (0.4%)
DEFAULT_FEE_RATE: Final[float] = 0.004

# Known venues: (trading fee, withdrawal fee, network fee in ADA, minimum trade)
DEFAULT_VENUE_FEES: Final[dict[str, tuple[float, float, float, float]]] = {
    VENUE_MINSWAP: (0.003, 0.001, 0.17, 10.0),
    VENUE_SUNDAESWAP: (0.003, 0.001, 0.17, 5.0),
    VENUE_MUESLISWAP: (0.0025, 0.001, 0.17, 5.0),
    VENUE_WINGRIDERS: (0.0035, 0.001, 0.17, 10.0),
    VENUE_DEFILLAMA: (0.002, 0.0005, 0.17, 5.0),
}


# =============================================================================
# Observation Validity & Normalization
# =============================================================================

# Valid prices lie strictly inside (MIN_VALID_PRICE, MAX_VALID_PRICE)
MIN_VALID_PRICE: Final[float] = 0.001
MAX_VALID_PRICE: Final[float] = 100.0

# Liquidity is estimated from volume since order-book depth is unavailable
LIQUIDITY_VOLUME_FACTOR: Final[float] = 0.15
LIQUIDITY_FLOOR: Final[float] = 1000.0
VOLUME_FLOOR: Final[float] = 1000.0


# =============================================================================
# Detection
# =============================================================================

MIN_PRICE_DIFFERENCE: Final[float] = 0.001
MIN_RAW_PROFIT_PCT: Final[float] = 0.5
MAX_RAW_PROFIT_PCT: Final[float] = 15.0

# Trade sizing caps
VOLUME_SHARE: Final[float] = 0.02
LIQUIDITY_SHARE: Final[float] = 0.005
MIN_LIQUIDITY_SIZE: Final[float] = 100.0
MAX_TRADE_VOLUME: Final[float] = 500.0

# Seconds a candidate stays valid
OPPORTUNITY_TTL_SECONDS: Final[int] = 120

# Net profit above which a HIGH confidence candidate is execution-ready
EXECUTION_MIN_NET_PROFIT: Final[float] = 5.0


# =============================================================================
# Scoring
# =============================================================================

# (average liquidity strictly above, score), checked top-down
LIQUIDITY_BREAKPOINTS: Final[tuple[tuple[float, float], ...]] = (
    (500_000.0, 95.0),
    (250_000.0, 85.0),
    (100_000.0, 75.0),
    (50_000.0, 65.0),
    (25_000.0, 55.0),
    (10_000.0, 45.0),
)
MIN_LIQUIDITY_SCORE: Final[float] = 25.0
MAX_LOW_LIQUIDITY_SCORE: Final[float] = 45.0

SLIPPAGE_DEPTH: Final[float] = 50_000.0
MARKET_IMPACT_THRESHOLD: Final[float] = 400.0
MARKET_IMPACT_RATE: Final[float] = 0.0005
MIN_SLIPPAGE_PCT: Final[float] = 0.1
MAX_SLIPPAGE_PCT: Final[float] = 6.0

# Gaps below this many quote units are penalized as noise-prone
SMALL_PRICE_DIFF: Final[float] = 0.01
SMALL_PRICE_DIFF_PENALTY: Final[float] = 15.0

HIGH_CONFIDENCE_SCORE: Final[float] = 80.0
MEDIUM_CONFIDENCE_SCORE: Final[float] = 60.0


# =============================================================================
# Ranking
# =============================================================================

MIN_NET_PROFIT_PCT: Final[float] = 0.8
MIN_VOLUME: Final[float] = 50.0
MAX_SLIPPAGE_RISK: Final[float] = 4.0
MIN_NET_PROFIT: Final[float] = 2.0
MAX_RESULTS: Final[int] = 12
CONFIDENCE_RANK_MULTIPLIER: Final[float] = 1000.0


# =============================================================================
# Scan Cadence
# =============================================================================

SCAN_COOLDOWN_SECONDS: Final[float] = 45.0
SCAN_INTERVAL_SECONDS: Final[float] = 60.0


# =============================================================================
# Persistence
# =============================================================================

# Stored rows older than this are evicted on every write
STALE_RECORD_SECONDS: Final[int] = 3600

# Stored confidence score per confidence level
CONFIDENCE_SCORES: Final[dict[str, int]] = {"HIGH": 90, "MEDIUM": 70, "LOW": 50}


# =============================================================================
# HTTP
# =============================================================================

REQUEST_TIMEOUT_SECONDS: Final[float] = 15.0
MAX_REQUEST_RETRIES: Final[int] = 2
RETRY_BACKOFF_SECONDS: Final[float] = 1.0
REQUESTS_PER_SECOND: Final[int] = 5


# =============================================================================
# Simulation
# =============================================================================

SIMULATED_GAS_ADA: Final[float] = 0.5
SIMULATED_EXECUTION_SECONDS: Final[int] = 120


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000

# Samples kept per latency window
LATENCY_WINDOW_SIZE: Final[int] = 500
