"""Core module containing the scan orchestrator, event bus, and type definitions."""

from dexarb.core.event_bus import Event, EventBus, EventType
from dexarb.core.types import (
    Confidence,
    MarketQuote,
    OpportunityCandidate,
    OpportunitySink,
    PriceFeed,
    PriceObservation,
    ScanState,
    ScanThresholds,
    VenueFees,
)


__all__ = [
    "Confidence",
    "Event",
    "EventBus",
    "EventType",
    "MarketQuote",
    "OpportunityCandidate",
    "OpportunitySink",
    "PriceFeed",
    "PriceObservation",
    "ScanState",
    "ScanThresholds",
    "VenueFees",
]
