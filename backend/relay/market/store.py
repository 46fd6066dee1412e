"""Thread-safe canonical price store."""

from __future__ import annotations

import time
from threading import Lock

from .models import PriceState
from .registry import SymbolRegistry, UnknownInstrumentError


class PriceStore:
    """Last known price for every registered instrument.

    Writer: the active PriceFeed (one at a time).
    Readers: BroadcastHub (initial snapshots), REST endpoints, the event sink.

    Every registered instrument has an entry from construction onwards, holding
    the sentinel price until the first write. Entries are immutable and are
    swapped under the lock, so a snapshot never sees half an update.
    """

    def __init__(self, registry: SymbolRegistry) -> None:
        self._registry = registry
        self._lock = Lock()
        self._prices: dict[str, PriceState] = {
            symbol: PriceState(instrument=symbol) for symbol in registry
        }

    @property
    def registry(self) -> SymbolRegistry:
        return self._registry

    def get(self, instrument: str) -> PriceState:
        """Current state of an instrument (sentinel if nothing arrived yet)."""
        with self._lock:
            try:
                return self._prices[instrument]
            except KeyError:
                raise UnknownInstrumentError(instrument) from None

    def set(self, instrument: str, price: float, timestamp: float | None = None) -> PriceState:
        """Overwrite the price of an instrument. Last write wins.

        No comparison against the previous timestamp is made: arrival order is
        trusted as emission order. Notifying anyone else is the caller's job.
        """
        if instrument not in self._registry:
            raise UnknownInstrumentError(instrument)
        state = PriceState(
            instrument=instrument,
            price=float(price),
            last_updated=time.time() if timestamp is None else timestamp,
        )
        with self._lock:
            self._prices[instrument] = state
        return state

    def snapshot(self) -> dict[str, PriceState]:
        """Point-in-time copy of every entry, in registry order."""
        with self._lock:
            return dict(self._prices)

    def to_dict(self) -> dict[str, dict]:
        """Snapshot serialized for the wire."""
        return {symbol: state.to_dict() for symbol, state in self.snapshot().items()}

    def get_price(self, instrument: str) -> float:
        """Convenience: just the price float."""
        return self.get(instrument).price

    def __len__(self) -> int:
        return len(self._registry)

    def __contains__(self, instrument: str) -> bool:
        return instrument in self._registry
