"""GBM-based price simulator for running the relay without a Finnhub key."""

from __future__ import annotations

import asyncio
import logging
import math
import random

import numpy as np

from .hub import BroadcastHub
from .interface import PriceFeed
from .sink import EventNotifier
from .store import PriceStore

logger = logging.getLogger(__name__)

# Rough starting prices for the default registry
SEED_PRICES: dict[str, float] = {
    "AAPL": 190.00,
    "TSLA": 250.00,
    "NVDA": 800.00,
    "MSFT": 420.00,
    "AMZN": 185.00,
    "GOOGL": 175.00,
    "META": 500.00,
    "BINANCE:ETHUSDT": 3200.00,
}

# Annualized volatility; crypto trades around the clock and moves more
SIGMAS: dict[str, float] = {"TSLA": 0.50, "NVDA": 0.40, "BINANCE:ETHUSDT": 0.70}
DEFAULT_SIGMA = 0.25
DRIFT = 0.05


class GBMSimulator:
    """Independent Geometric Brownian Motion per instrument.

        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)
    """

    TRADING_SECONDS_PER_YEAR = 252 * 6.5 * 3600
    DEFAULT_DT = 0.5 / TRADING_SECONDS_PER_YEAR

    def __init__(self, instruments: list[str], dt: float = DEFAULT_DT) -> None:
        self._instruments = list(instruments)
        self._dt = dt
        self._prices = np.array(
            [SEED_PRICES.get(s, random.uniform(50.0, 300.0)) for s in self._instruments],
            dtype=float,
        )
        sigma = np.array([SIGMAS.get(s, DEFAULT_SIGMA) for s in self._instruments])
        self._drift = (DRIFT - 0.5 * sigma**2) * dt
        self._diffusion = sigma * math.sqrt(dt)

    def prices(self) -> dict[str, float]:
        return {s: round(float(p), 2) for s, p in zip(self._instruments, self._prices)}

    def step(self) -> dict[str, float]:
        """Advance every instrument one time step. Returns {instrument: new_price}."""
        if not self._instruments:
            return {}
        z = np.random.standard_normal(len(self._instruments))
        self._prices *= np.exp(self._drift + self._diffusion * z)
        return self.prices()


class SimulatorDataSource(PriceFeed):
    """PriceFeed that ticks a GBMSimulator every `update_interval` seconds."""

    def __init__(
        self,
        store: PriceStore,
        hub: BroadcastHub,
        notifier: EventNotifier,
        update_interval: float = 0.5,
    ) -> None:
        super().__init__(store, hub, notifier)
        self._interval = update_interval
        self._sim: GBMSimulator | None = None
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> str:
        return "streaming" if self._task and not self._task.done() else "disconnected"

    async def start(self) -> None:
        self._sim = GBMSimulator(self.get_tickers())
        # Seed the store so new subscribers see prices immediately
        for instrument, price in self._sim.prices().items():
            await self.ingest(instrument, price)
        self._task = asyncio.create_task(self._run_loop(), name="simulator-loop")
        logger.info("Simulator started with %d instruments", len(self._store.registry))

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Simulator stopped")

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                for instrument, price in self._sim.step().items():
                    await self.ingest(instrument, price)
            except Exception:
                logger.exception("Simulator step failed")
