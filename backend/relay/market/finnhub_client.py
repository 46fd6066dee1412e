"""Finnhub streaming client for real market data."""

from __future__ import annotations

import asyncio
import json
import logging
import math
from enum import Enum

import aiohttp

from .hub import BroadcastHub
from .interface import PriceFeed
from .sink import EventNotifier
from .store import PriceStore

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "YOUR_FINNHUB_API_KEY_HERE"


class FeedConfigurationError(ValueError):
    """The upstream feed cannot run with the configured settings. Not retried."""


def validate_api_key(api_key: str) -> str:
    """Return the key if usable, else raise FeedConfigurationError."""
    key = (api_key or "").strip()
    if not key or key == PLACEHOLDER_API_KEY or len(key) < 5:
        raise FeedConfigurationError("FINNHUB_API_KEY is missing or a placeholder")
    return key


class FeedState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"
    BACKOFF = "backoff"
    DISABLED = "disabled"  # configuration error, never retried


class FinnhubDataSource(PriceFeed):
    """PriceFeed backed by the Finnhub trade stream.

    One supervising task owns the whole connection lifecycle:

        CONNECTING   quote snapshot per instrument (parallel, best-effort)
        SUBSCRIBING  WebSocket open, one subscribe frame per instrument
        STREAMING    trade frames applied in arrival order
        BACKOFF      fixed delay after any error or close, then CONNECTING

    The previous WebSocket is always closed before the next one is opened, so
    only one upstream session ever writes to the store. Retries never stop.
    """

    def __init__(
        self,
        api_key: str,
        store: PriceStore,
        hub: BroadcastHub,
        notifier: EventNotifier,
        reconnect_delay: float = 15.0,
        quote_timeout: float = 10.0,
        ws_url: str = "wss://ws.finnhub.io",
        rest_url: str = "https://finnhub.io/api/v1",
    ) -> None:
        super().__init__(store, hub, notifier)
        self._api_key = api_key
        self._reconnect_delay = reconnect_delay
        self._quote_timeout = quote_timeout
        self._ws_url = ws_url
        self._rest_url = rest_url.rstrip("/")
        self._registry = store.registry
        self._state = FeedState.DISCONNECTED
        self._reconnect_attempts = 0
        self._task: asyncio.Task | None = None
        self._session: aiohttp.ClientSession | None = None

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        """Number of times the feed has entered BACKOFF."""
        return self._reconnect_attempts

    async def start(self) -> None:
        try:
            key = validate_api_key(self._api_key)
        except FeedConfigurationError as e:
            # Permanent: no connection is ever attempted with a bad credential
            self._state = FeedState.DISABLED
            logger.error("Finnhub feed disabled: %s", e)
            return

        logger.debug("Using Finnhub API key starting with [%s...]", key[:4])
        self._api_key = key
        self._session = aiohttp.ClientSession()
        self._task = asyncio.create_task(self._run(), name="finnhub-feed")
        logger.info(
            "Finnhub feed started: %d instruments, %.1fs reconnect delay",
            len(self._registry),
            self._reconnect_delay,
        )

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        if self._session is not None:
            await self._session.close()
            self._session = None
        if self._state is not FeedState.DISABLED:
            self._state = FeedState.DISCONNECTED
        logger.info("Finnhub feed stopped")

    # --- Connection lifecycle ---

    async def _run(self) -> None:
        """Supervisor loop: connect, stream until failure, back off, repeat."""
        while True:
            self._state = FeedState.CONNECTING
            await self._fetch_snapshots()
            try:
                await self._stream_once()
                logger.warning("Finnhub WebSocket closed by server")
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                logger.error("Finnhub WebSocket error: %s", e)
            except Exception:
                logger.exception("Unexpected failure in Finnhub feed")

            self._state = FeedState.BACKOFF
            self._reconnect_attempts += 1
            logger.info("Reconnecting to Finnhub in %.1fs", self._reconnect_delay)
            await asyncio.sleep(self._reconnect_delay)

    def _open_stream(self):
        """Async context manager yielding the upstream WebSocket."""
        return self._session.ws_connect(self._ws_url, params={"token": self._api_key})

    async def _stream_once(self) -> None:
        """Run one upstream session until the socket closes or errors."""
        async with self._open_stream() as ws:
            self._state = FeedState.SUBSCRIBING
            logger.info("Connected to Finnhub, subscribing to %d instruments", len(self._registry))
            for symbol in self._registry:
                logger.debug("Subscribing to %s", symbol)
                await ws.send_str(json.dumps({"type": "subscribe", "symbol": symbol}))

            self._state = FeedState.STREAMING
            async for msg in ws:
                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    await self.handle_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise ConnectionError(f"upstream socket error: {ws.exception()}")

    # --- Snapshot ---

    async def _fetch_snapshots(self) -> None:
        """One quote request per instrument, all at once. Failures are isolated."""
        await asyncio.gather(*(self._snapshot_one(symbol) for symbol in self._registry))

    async def _snapshot_one(self, symbol: str) -> None:
        try:
            price = await self._fetch_quote(symbol)
        except Exception as e:
            # 401 (bad key), 429 (rate limit), timeouts: skip this instrument only
            logger.error("Quote fetch failed for %s: %s", symbol, e)
            return
        if price:
            await self.ingest(symbol, price)
            logger.info("Quote %s current: %.2f", symbol, price)

    async def _fetch_quote(self, symbol: str) -> float | None:
        """GET /quote for one instrument. Returns the current price, if any."""
        async with self._session.get(
            f"{self._rest_url}/quote",
            params={"symbol": symbol, "token": self._api_key},
            timeout=aiohttp.ClientTimeout(total=self._quote_timeout),
        ) as resp:
            resp.raise_for_status()
            data = await resp.json()
        price = data.get("c") if isinstance(data, dict) else None
        if not price:
            return None
        price = float(price)
        if not math.isfinite(price):
            raise ValueError(f"non-finite quote price {price!r}")
        return price

    # --- Message handling ---

    async def handle_message(self, raw: str | bytes) -> None:
        """Classify one upstream frame and apply any trades it carries."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unparseable feed message: %.200r", raw)
            return
        if not isinstance(message, dict):
            logger.warning("Discarding non-object feed message: %.200r", raw)
            return

        kind = message.get("type")
        if kind == "ping":
            return
        if kind != "trade":
            logger.debug("Ignoring feed message of type %r", kind)
            return

        ticks = message.get("data")
        if not isinstance(ticks, list):
            logger.warning("Discarding trade message without a tick list: %.200r", raw)
            return

        logger.debug("Trade message with %d ticks", len(ticks))
        for tick in ticks:
            try:
                symbol = tick["s"]
                price = float(tick["p"])
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed tick: %.200r", tick)
                continue
            if not math.isfinite(price):
                logger.warning("Skipping non-finite price for %s", symbol)
                continue
            if not isinstance(symbol, str) or symbol not in self._registry:
                continue
            await self.ingest(symbol, price)
