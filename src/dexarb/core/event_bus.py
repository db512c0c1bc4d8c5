"""
Internal event bus for scan notifications.

Lets the API layer, loggers and tests observe scans without the
orchestrator knowing who listens.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from dexarb.utils.time import get_timestamp_us


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Scanner event types."""

    # Scan lifecycle
    SCAN_STARTED = auto()
    SCAN_COMPLETED = auto()
    SCAN_FAILED = auto()
    SCAN_REJECTED = auto()

    # Results
    OPPORTUNITY_FOUND = auto()

    # Periodic scanning
    SCANNER_STARTED = auto()
    SCANNER_STOPPED = auto()


T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """Scanner notification with a typed payload."""

    type: EventType
    payload: T
    timestamp_us: int = 0
    source: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp_us:
            self.timestamp_us = get_timestamp_us()


# Type alias for event handlers
EventHandler = Callable[[Event[Any]], Awaitable[None]]
SyncEventHandler = Callable[[Event[Any]], None]


class EventBus:
    """
    Publish/subscribe bus with per-handler error isolation.

    Sync handlers run before async ones; within each kind, higher
    priority runs first. A failing handler is logged and never stops
    delivery to the others or reaches the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[tuple[int, EventHandler]]] = defaultdict(list)
        self._sync_handlers: dict[EventType, list[tuple[int, SyncEventHandler]]] = defaultdict(list)

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
        priority: int = 0,
    ) -> None:
        """Subscribe an async handler; higher priority runs earlier."""
        self._handlers[event_type].append((priority, handler))
        self._handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def subscribe_sync(
        self,
        event_type: EventType,
        handler: SyncEventHandler,
        priority: int = 0,
    ) -> None:
        """Subscribe a sync handler to an event type."""
        self._sync_handlers[event_type].append((priority, handler))
        self._sync_handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def unsubscribe(
        self,
        event_type: EventType,
        handler: EventHandler | SyncEventHandler,
    ) -> bool:
        """Remove a handler; returns False when it was not subscribed."""
        for handlers in (self._handlers[event_type], self._sync_handlers[event_type]):
            for i, (_, registered) in enumerate(handlers):
                # Bound methods are new objects on each access
                if registered == handler:
                    handlers.pop(i)
                    return True
        return False

    async def publish(self, event: Event[Any]) -> None:
        """Deliver an event to every handler of its type."""
        for _, sync_handler in self._sync_handlers[event.type]:
            try:
                sync_handler(event)
            except Exception as e:
                logger.error(f"Sync handler error for {event.type.name}: {e}")

        for _, async_handler in self._handlers[event.type]:
            try:
                await async_handler(event)
            except Exception as e:
                logger.error(f"Async handler error for {event.type.name}: {e}")

    def handler_count(self, event_type: EventType) -> int:
        """Number of handlers subscribed to an event type."""
        return len(self._handlers[event_type]) + len(self._sync_handlers[event_type])
