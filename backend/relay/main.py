"""FastAPI application wiring for the price relay."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import RelaySettings
from .market import (
    BroadcastHub,
    EventNotifier,
    PriceStore,
    create_price_feed,
    create_stream_router,
)
from .market.sink import EventSink, log_price_event

logger = logging.getLogger(__name__)


def create_app(settings: RelaySettings | None = None, sink: EventSink = log_price_event) -> FastAPI:
    """Build the relay app. Components start and stop with the app lifespan."""
    settings = settings or RelaySettings.from_env()

    store = PriceStore(settings.registry)
    hub = BroadcastHub(store, send_timeout=settings.send_timeout)
    notifier = EventNotifier(sink, maxsize=settings.sink_queue_size)
    feed = create_price_feed(settings, store, hub, notifier)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await notifier.start()
        await feed.start()
        logger.info("Price relay ready: %s", ", ".join(settings.registry))
        try:
            yield
        finally:
            await feed.stop()
            await notifier.stop()

    app = FastAPI(title="Price Relay", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store
    app.state.hub = hub
    app.state.feed = feed
    app.include_router(create_stream_router(hub, store, feed))
    return app


def run() -> None:
    """Console entry point: serve the relay with uvicorn."""
    import uvicorn

    settings = RelaySettings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
