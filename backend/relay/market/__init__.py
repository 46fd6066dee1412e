"""Market data relay subsystem.

Public API:
    SymbolRegistry      - Ordered, immutable set of tracked instruments
    PriceState          - Immutable last-known price of one instrument
    PriceStore          - Canonical in-memory price table
    BroadcastHub        - Fan-out of updates to WebSocket subscribers
    EventNotifier       - Non-blocking delivery of snapshots to an event sink
    PriceFeed           - Abstract interface for upstream providers
    create_price_feed   - Factory that selects Finnhub or the simulator
    create_stream_router - FastAPI router factory for /ws and the REST endpoints
"""

from .factory import create_price_feed
from .hub import BroadcastHub
from .interface import PriceFeed
from .models import PriceState
from .registry import SymbolRegistry, UnknownInstrumentError
from .sink import EventNotifier
from .store import PriceStore
from .stream import create_stream_router

__all__ = [
    "SymbolRegistry",
    "UnknownInstrumentError",
    "PriceState",
    "PriceStore",
    "BroadcastHub",
    "EventNotifier",
    "PriceFeed",
    "create_price_feed",
    "create_stream_router",
]
