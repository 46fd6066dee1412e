"""WebSocket and REST endpoints for downstream price consumers."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from .hub import BroadcastHub
from .interface import PriceFeed
from .store import PriceStore

logger = logging.getLogger(__name__)


def create_stream_router(
    hub: BroadcastHub,
    store: PriceStore,
    feed: PriceFeed | None = None,
) -> APIRouter:
    """Create the streaming router bound to the given hub and store.

    This factory pattern lets us inject the relay components without globals.
    """
    router = APIRouter()

    @router.websocket("/ws")
    async def stream_prices(websocket: WebSocket) -> None:
        """Live price stream.

        The first message is always the full snapshot:

            {"type": "initial", "data": {"AAPL": {"symbol": "AAPL", "price": 190.5, ...}}}

        followed by one message per price change:

            {"symbol": "AAPL", "price": "190.52"}
        """
        await websocket.accept()
        try:
            subscriber = await hub.connect(websocket)
        except Exception:
            return  # already dropped and logged by the hub
        try:
            # Clients send nothing meaningful; reading is how the disconnect shows up
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        except WebSocketDisconnect:
            pass
        finally:
            hub.disconnect(subscriber)

    @router.get("/api/prices")
    async def get_prices() -> dict:
        """Current last-known price of every instrument."""
        return store.to_dict()

    @router.get("/api/health")
    async def health() -> dict:
        return {
            "feed": feed.state if feed else None,
            "reconnect_attempts": getattr(feed, "reconnect_attempts", 0),
            "subscribers": hub.subscriber_count,
            "instruments": len(store),
        }

    return router
