"""Mock implementations for testing."""

from tests.mocks.feed import FailingSink, MockPriceFeed, RecordingSink


__all__ = [
    "FailingSink",
    "MockPriceFeed",
    "RecordingSink",
]
