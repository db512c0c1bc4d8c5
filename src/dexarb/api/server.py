"""
FastAPI control surface for the scanner.

Exposes the scan-now and start/stop verbs over HTTP, plus read-only
views of status, latest results, stored performance and a websocket
stream of scan events.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import asdict, is_dataclass
from typing import Any

import orjson
from fastapi import FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from dexarb import __version__
from dexarb.core.event_bus import Event, EventType
from dexarb.core.scanner import ScanOrchestrator
from dexarb.core.types import OpportunityCandidate
from dexarb.storage.store import InMemoryOpportunityStore
from dexarb.strategy.simulation import simulate_execution
from dexarb.telemetry.metrics import ScanSummary
from dexarb.utils.time import utc_now


logger = logging.getLogger(__name__)


# Events forwarded to websocket clients
BROADCAST_EVENTS = (
    EventType.SCAN_STARTED,
    EventType.SCAN_COMPLETED,
    EventType.SCAN_FAILED,
    EventType.OPPORTUNITY_FOUND,
)


def _default(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        to_dict = getattr(obj, "to_dict", None)
        return to_dict() if to_dict else asdict(obj)
    raise TypeError


def dumps(content: Any) -> bytes:
    """Serialize with orjson, understanding the scanner's dataclasses."""
    return orjson.dumps(
        content,
        default=_default,
        option=orjson.OPT_NON_STR_KEYS | orjson.OPT_PASSTHROUGH_DATACLASS,
    )


class OrjsonResponse(JSONResponse):
    """JSON response rendered with orjson."""

    def render(self, content: Any) -> bytes:
        return dumps(content)


class EventBroadcaster:
    """Pushes scan events to connected websocket clients."""

    def __init__(self) -> None:
        self._clients: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.append(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._clients:
            self._clients.remove(websocket)

    async def on_event(self, event: Event[Any]) -> None:
        """Event bus handler: fan an event out to every client."""
        if not self._clients:
            return

        message = dumps({"type": event.type.name.lower(), "data": event.payload}).decode()
        dead: list[WebSocket] = []

        for client in self._clients:
            try:
                await client.send_text(message)
            except Exception as e:
                logger.debug(f"Dropping websocket client: {e}")
                dead.append(client)

        for client in dead:
            self.disconnect(client)

    @property
    def client_count(self) -> int:
        return len(self._clients)


def _orchestrator(request: Request) -> ScanOrchestrator:
    return request.app.state.orchestrator  # type: ignore[no-any-return]


def _serialize(opportunities: list[OpportunityCandidate]) -> list[dict[str, Any]]:
    return [o.to_dict() for o in opportunities]


def create_app(
    orchestrator: ScanOrchestrator,
    store: InMemoryOpportunityStore | None = None,
    on_shutdown: Sequence[Callable[[], Awaitable[None]]] = (),
) -> FastAPI:
    """
    Build the API around an orchestrator.

    Args:
        orchestrator: Scanner driven by the control routes.
        store: Optional store backing the performance view.
        on_shutdown: Coroutines run after scanning stops on shutdown.

    Returns:
        FastAPI application. Scan events reach websocket clients while
        the app is running; periodic scanning is stopped on shutdown.
    """
    broadcaster = EventBroadcaster()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        for event_type in BROADCAST_EVENTS:
            orchestrator.event_bus.subscribe(event_type, broadcaster.on_event)
        yield
        for event_type in BROADCAST_EVENTS:
            orchestrator.event_bus.unsubscribe(event_type, broadcaster.on_event)
        await orchestrator.stop()
        for callback in on_shutdown:
            await callback()

    app = FastAPI(
        title="Cardano DEX Arbitrage Scanner",
        version=__version__,
        lifespan=lifespan,
        default_response_class=OrjsonResponse,
    )
    app.state.orchestrator = orchestrator
    app.state.store = store
    app.state.broadcaster = broadcaster

    app.post("/api/scan")(scan_now)
    app.post("/api/start")(start_scanning)
    app.post("/api/stop")(stop_scanning)
    app.get("/api/status")(get_status)
    app.get("/api/opportunities")(get_opportunities)
    app.get("/api/performance")(get_performance)
    app.post("/api/simulate/{opportunity_id:path}")(simulate)
    app.websocket("/ws")(websocket_endpoint)
    return app


# =============================================================================
# Control Routes
# =============================================================================


async def scan_now(request: Request) -> dict[str, Any]:
    result = await _orchestrator(request).request_scan()

    if not result.ran:
        status = "skipped"
    elif result.failed:
        status = "failed"
    else:
        status = "completed"
    return {
        "status": status,
        "count": len(result.opportunities),
        "opportunities": _serialize(result.opportunities),
    }


async def start_scanning(
    request: Request,
    interval: float | None = Query(default=None, gt=0, le=3600),
) -> dict[str, Any]:
    orchestrator = _orchestrator(request)
    if not orchestrator.start(interval):
        return {"status": "already_running"}
    return {"status": "started", "interval_seconds": orchestrator.status()["interval_seconds"]}


async def stop_scanning(request: Request) -> dict[str, Any]:
    if not await _orchestrator(request).stop():
        return {"status": "not_running"}
    return {"status": "stopped"}


# =============================================================================
# Read Routes
# =============================================================================


async def get_status(request: Request) -> dict[str, Any]:
    return _orchestrator(request).status()


async def get_opportunities(request: Request) -> dict[str, Any]:
    orchestrator = _orchestrator(request)
    opportunities = orchestrator.last_results
    return {
        "opportunities": _serialize(opportunities),
        "summary": ScanSummary.from_opportunities(opportunities).to_dict(),
    }


async def get_performance(
    request: Request,
    days: int = Query(default=7, ge=1, le=365),
) -> dict[str, Any]:
    store: InMemoryOpportunityStore | None = request.app.state.store
    if store is None:
        raise HTTPException(status_code=404, detail="No opportunity store configured")

    expired = store.deactivate_expired()
    if expired:
        logger.debug(f"Deactivated {expired} expired opportunities")
    return {"days": days, **store.performance(days).to_dict()}


async def simulate(request: Request, opportunity_id: str) -> dict[str, Any]:
    candidate = _orchestrator(request).find(opportunity_id, now=utc_now())
    if candidate is None:
        raise HTTPException(status_code=404, detail="Unknown or expired opportunity")
    return simulate_execution(candidate).to_dict()


async def websocket_endpoint(websocket: WebSocket) -> None:
    broadcaster: EventBroadcaster = websocket.app.state.broadcaster
    orchestrator: ScanOrchestrator = websocket.app.state.orchestrator

    await broadcaster.connect(websocket)
    await websocket.send_text(dumps({"type": "init", "data": orchestrator.status()}).decode())

    try:
        while True:
            msg = orjson.loads(await websocket.receive_text())
            action = msg.get("action") if isinstance(msg, dict) else None
            if action == "scan":
                await orchestrator.scan_now()
            elif action == "start":
                orchestrator.start()
            elif action == "stop":
                await orchestrator.stop()
    except WebSocketDisconnect:
        pass
    except orjson.JSONDecodeError as e:
        logger.debug(f"Closing websocket after invalid message: {e}")
        await websocket.close(code=1003)
    finally:
        broadcaster.disconnect(websocket)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Serve the API against the live venue feed."""
    import uvicorn

    from dexarb.config.settings import get_settings
    from dexarb.feeds.adapters import build_adapters
    from dexarb.feeds.aggregate import MultiVenueFeed
    from dexarb.feeds.client import VenueHttpClient
    from dexarb.feeds.rate_limiter import VenueRateLimiter
    from dexarb.storage.store import JsonFileOpportunityStore
    from dexarb.telemetry.logger import setup_logging

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
    app = create_app(orchestrator, store, on_shutdown=[feed.close])

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║           CARDANO DEX ARBITRAGE SCANNER - API                 ║
╚═══════════════════════════════════════════════════════════════╝

API: http://{settings.api_host}:{settings.api_port}/api/status
Press Ctrl+C to stop.
    """
    )
    try:
        uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level="warning")
    finally:
        async_logger.stop()


if __name__ == "__main__":
    main()
