"""Fan-out of price updates to downstream WebSocket subscribers."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field

from fastapi import WebSocket

from .store import PriceStore

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Subscriber:
    """One downstream client connection."""

    websocket: WebSocket
    connected_since: float = field(default_factory=time.time)
    # Serializes sends on this one socket so the initial snapshot always goes first
    _send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def client(self) -> str:
        client = getattr(self.websocket, "client", None)
        return client.host if client else "unknown"

    async def send(self, payload: str) -> None:
        async with self._send_lock:
            await self.websocket.send_text(payload)


def initial_message(store: PriceStore) -> str:
    return json.dumps({"type": "initial", "data": store.to_dict()})


def update_message(instrument: str, price: float) -> str:
    return json.dumps({"symbol": instrument, "price": f"{price:.2f}"})


class BroadcastHub:
    """Holds the active subscriber set and pushes updates to it.

    New subscribers get the full store snapshot as their first message, then
    every incremental update as it happens. Delivery is best-effort: a
    subscriber whose send fails or does not finish within `send_timeout`
    seconds is dropped and its socket closed, without affecting the others.
    """

    def __init__(self, store: PriceStore, send_timeout: float = 5.0) -> None:
        self._store = store
        self._send_timeout = send_timeout
        self._subscribers: set[Subscriber] = set()
        self._closing: set[asyncio.Task] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def connect(self, websocket: WebSocket) -> Subscriber:
        """Register an accepted connection and send it the initial snapshot.

        The send lock is held across registration and the snapshot send, so
        any publish racing with the connect queues up behind the snapshot.
        """
        subscriber = Subscriber(websocket=websocket)
        async with subscriber._send_lock:
            self._subscribers.add(subscriber)
            payload = initial_message(self._store)
            try:
                await asyncio.wait_for(websocket.send_text(payload), self._send_timeout)
            except Exception as e:
                logger.warning("Initial snapshot to %s failed: %s", subscriber.client, e)
                self._subscribers.discard(subscriber)
                raise
        logger.info(
            "Subscriber connected: %s (%d active)", subscriber.client, len(self._subscribers)
        )
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        """Remove a subscriber. Safe to call more than once."""
        if subscriber in self._subscribers:
            self._subscribers.discard(subscriber)
            logger.info(
                "Subscriber disconnected: %s (%d active)",
                subscriber.client,
                len(self._subscribers),
            )

    async def publish(self, instrument: str, price: float) -> None:
        """Send one incremental update to every active subscriber."""
        if not self._subscribers:
            return
        payload = update_message(instrument, price)
        targets = list(self._subscribers)
        results = await asyncio.gather(
            *(asyncio.wait_for(s.send(payload), self._send_timeout) for s in targets),
            return_exceptions=True,
        )
        for subscriber, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Dropping subscriber %s after send failure: %r", subscriber.client, result
                )
                self.disconnect(subscriber)
                self._close_later(subscriber)

    def _close_later(self, subscriber: Subscriber) -> None:
        """Close a dropped socket in the background; a stalled peer must not hold up publish."""
        task = asyncio.create_task(self._close(subscriber))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _close(self, subscriber: Subscriber) -> None:
        try:
            await asyncio.wait_for(subscriber.websocket.close(code=1011), self._send_timeout)
        except Exception as e:
            logger.debug("Closing dropped subscriber %s failed: %s", subscriber.client, e)
