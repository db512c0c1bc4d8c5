"""Opportunity persistence sinks."""

from dexarb.storage.store import (
    InMemoryOpportunityStore,
    JsonFileOpportunityStore,
    OpportunityRecord,
    PerformanceSummary,
    StorageError,
)


__all__ = [
    "InMemoryOpportunityStore",
    "JsonFileOpportunityStore",
    "OpportunityRecord",
    "PerformanceSummary",
    "StorageError",
]
