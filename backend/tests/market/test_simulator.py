"""Tests for the GBM simulator and SimulatorDataSource."""

import asyncio

import pytest

from relay.market.simulator import SEED_PRICES, GBMSimulator, SimulatorDataSource


class TestGBMSimulator:
    """Unit tests for the GBM price simulator."""

    def test_step_returns_all_instruments(self):
        sim = GBMSimulator(["AAPL", "BINANCE:ETHUSDT"])
        assert set(sim.step()) == {"AAPL", "BINANCE:ETHUSDT"}

    def test_prices_are_positive(self):
        """GBM prices can never go negative (exp() is always positive)."""
        sim = GBMSimulator(["TSLA"])
        for _ in range(5_000):
            assert sim.step()["TSLA"] > 0

    def test_initial_prices_match_seeds(self):
        sim = GBMSimulator(["AAPL"])
        assert sim.prices()["AAPL"] == SEED_PRICES["AAPL"]

    def test_unknown_instrument_gets_random_seed(self):
        price = GBMSimulator(["ZZZZ"]).prices()["ZZZZ"]
        assert 50.0 <= price <= 300.0

    def test_prices_change_over_time(self):
        sim = GBMSimulator(["AAPL"])
        initial = sim.prices()["AAPL"]
        for _ in range(1000):
            sim.step()
        assert sim.prices()["AAPL"] != initial

    def test_empty_step(self):
        assert GBMSimulator([]).step() == {}


@pytest.mark.asyncio
class TestSimulatorDataSource:
    """Integration tests for the SimulatorDataSource."""

    async def test_start_populates_store(self, store, hub, notifier):
        source = SimulatorDataSource(store, hub, notifier, update_interval=0.1)
        await source.start()

        assert store.get("AAPL").is_known
        assert store.get("TSLA").is_known
        assert store.get_price("AAPL") == SEED_PRICES["AAPL"]
        assert source.state == "streaming"

        await source.stop()
        assert source.state == "disconnected"

    async def test_ticks_reach_subscribers(self, store, hub, notifier, make_socket, wait_until):
        ws = make_socket()
        await hub.connect(ws)
        source = SimulatorDataSource(store, hub, notifier, update_interval=0.01)
        await source.start()

        await wait_until(lambda: len(ws.sent) > 1 + 2 * 2)  # initial + seeds + some ticks

        assert ws.sent[0]["type"] == "initial"
        assert set(ws.sent[-1]) == {"symbol", "price"}
        await source.stop()

    async def test_stop_is_clean(self, store, hub, notifier):
        source = SimulatorDataSource(store, hub, notifier, update_interval=0.1)
        await source.start()
        await source.stop()
        await source.stop()  # Should not raise

    async def test_stopped_source_writes_nothing(self, store, hub, notifier):
        source = SimulatorDataSource(store, hub, notifier, update_interval=0.01)
        await source.start()
        await source.stop()

        before = store.snapshot()
        await asyncio.sleep(0.05)
        assert store.snapshot() == before
