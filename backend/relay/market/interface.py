"""Abstract interface for upstream price feeds."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .hub import BroadcastHub
from .sink import EventNotifier
from .store import PriceStore


class PriceFeed(ABC):
    """Contract for upstream price providers.

    Implementations own their connection lifecycle and push every observed
    price through ingest(), which is the single write path into the relay:
    store first, then subscribers, then the event sink.

    Lifecycle:
        feed = create_price_feed(settings, store, hub, notifier)
        await feed.start()
        # ... app runs ...
        await feed.stop()
    """

    def __init__(self, store: PriceStore, hub: BroadcastHub, notifier: EventNotifier) -> None:
        self._store = store
        self._hub = hub
        self._notifier = notifier

    @abstractmethod
    async def start(self) -> None:
        """Begin producing prices for every registered instrument.

        Starts a background task and returns without waiting for data.
        Must be called exactly once.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop the background task and release resources.

        Safe to call multiple times. After stop(), the feed will not write
        to the store again.
        """

    @property
    @abstractmethod
    def state(self) -> str:
        """Human-readable lifecycle state, reported by the health endpoint."""

    def get_tickers(self) -> list[str]:
        """Instruments this feed produces prices for."""
        return list(self._store.registry)

    async def ingest(self, instrument: str, price: float) -> None:
        """Apply one price: write the store, fan out, notify the sink."""
        self._store.set(instrument, price)
        await self._hub.publish(instrument, price)
        self._notifier.notify(self._store.snapshot())
