"""
Entry point for the arbitrage scanner.

Usage:
    python -m dexarb
    dexarb  # if installed via pip
"""

import asyncio
import logging
import signal
import sys
from typing import Any


# Try to use uvloop for better performance
try:
    import uvloop

    UVLOOP_AVAILABLE = True
except ImportError:
    UVLOOP_AVAILABLE = False


logger = logging.getLogger("dexarb")


async def run_scanner() -> int:
    """
    Scan periodically against the live venue feed until SIGINT/SIGTERM.

    Returns:
        Exit code.
    """
    from dexarb.config.settings import get_settings
    from dexarb.core.event_bus import Event, EventType
    from dexarb.core.scanner import ScanOrchestrator
    from dexarb.feeds.adapters import build_adapters
    from dexarb.feeds.aggregate import MultiVenueFeed
    from dexarb.feeds.client import VenueHttpClient
    from dexarb.feeds.rate_limiter import VenueRateLimiter
    from dexarb.storage.store import JsonFileOpportunityStore
    from dexarb.telemetry.logger import setup_logging
    from dexarb.utils.math import format_profit

    settings = get_settings()
    async_logger = setup_logging(level=settings.log_level, log_file=settings.log_file)

    client = VenueHttpClient(
        timeout=settings.request_timeout_seconds,
        max_retries=settings.max_request_retries,
        rate_limiter=VenueRateLimiter(settings.requests_per_second),
    )
    feed = MultiVenueFeed(build_adapters(settings.enabled_venues), client)
    store = JsonFileOpportunityStore(
        settings.storage_path, stale_after_seconds=settings.stale_record_seconds
    )
    orchestrator = ScanOrchestrator.from_settings(settings, feed, store)

    def log_opportunity(event: Event[Any]) -> None:
        candidate = event.payload
        logger.info(
            f"{candidate.pair}: buy {candidate.buy_venue} @ {candidate.buy_price:.6f}, "
            f"sell {candidate.sell_venue} @ {candidate.sell_price:.6f}, "
            f"net {format_profit(candidate.net_profit_pct)} [{candidate.confidence.value}]"
        )

    orchestrator.event_bus.subscribe_sync(EventType.OPPORTUNITY_FOUND, log_opportunity)

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    try:
        orchestrator.start(settings.scan_interval_seconds)
        await shutdown.wait()
        logger.info("Shutdown signal received")
        return 0
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1
    finally:
        await orchestrator.stop()
        await feed.close()
        async_logger.stop()


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from dexarb import __version__
    from dexarb.config.settings import get_settings

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     CARDANO DEX ARBITRAGE SCANNER v{__version__:<21}      ║
║                                                               ║
║     Cross-venue price gaps, fee-adjusted and ranked           ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nCheck DEXARB_* environment variables and your .env file.")
        return 1

    use_uvloop = settings.use_uvloop and UVLOOP_AVAILABLE

    print("Configuration:")
    print(f"  Venues:         {', '.join(settings.enabled_venues)}")
    print(f"  Interval:       {settings.scan_interval_seconds:.0f}s")
    print(f"  Cooldown:       {settings.scan_cooldown_seconds:.0f}s")
    print(f"  Storage:        {settings.storage_path}")
    print(f"  uvloop:         {'Enabled' if use_uvloop else 'Disabled'}")
    print()

    if use_uvloop:
        return uvloop.run(run_scanner())
    return asyncio.run(run_scanner())


if __name__ == "__main__":
    sys.exit(main())
