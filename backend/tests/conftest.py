"""Pytest configuration and fixtures."""

import asyncio
import json
import time

import pytest

from relay.market.hub import BroadcastHub
from relay.market.registry import SymbolRegistry
from relay.market.sink import EventNotifier
from relay.market.store import PriceStore


class FakeWebSocket:
    """Stands in for a downstream FastAPI WebSocket."""

    def __init__(self, fail: bool = False, delay: float = 0.0, stall: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail
        self.delay = delay
        self.stall = stall
        self.client = None
        self.close_code: int | None = None

    @property
    def closed(self) -> bool:
        return self.close_code is not None

    async def close(self, code: int = 1000) -> None:
        self.close_code = code

    async def send_text(self, text: str) -> None:
        if self.stall:
            await asyncio.Event().wait()  # peer never drains
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    """Poll until predicate() is true or fail the test."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def registry() -> SymbolRegistry:
    return SymbolRegistry(["AAPL", "TSLA"])


@pytest.fixture
def store(registry) -> PriceStore:
    return PriceStore(registry)


@pytest.fixture
def hub(store) -> BroadcastHub:
    return BroadcastHub(store)


@pytest.fixture
def sink_calls() -> list:
    return []


@pytest.fixture
def notifier(sink_calls) -> EventNotifier:
    return EventNotifier(sink_calls.append)


@pytest.fixture
def make_socket():
    return FakeWebSocket


@pytest.fixture
def wait_until():
    return _wait_until
