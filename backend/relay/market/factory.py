"""Factory for creating the upstream price feed."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .hub import BroadcastHub
from .interface import PriceFeed
from .sink import EventNotifier
from .store import PriceStore

if TYPE_CHECKING:
    from ..config import RelaySettings

logger = logging.getLogger(__name__)


def create_price_feed(
    settings: RelaySettings,
    store: PriceStore,
    hub: BroadcastHub,
    notifier: EventNotifier,
) -> PriceFeed:
    """Create the feed selected by settings.feed_source.

    - 'simulator' → SimulatorDataSource (no credential needed)
    - anything else → FinnhubDataSource (a bad key disables it at start())

    Returns an unstarted feed. Caller must await feed.start().
    """
    if settings.feed_source == "simulator":
        from .simulator import SimulatorDataSource

        logger.info("Price feed: GBM simulator")
        return SimulatorDataSource(store=store, hub=hub, notifier=notifier)

    from .finnhub_client import FinnhubDataSource

    logger.info("Price feed: Finnhub (real data)")
    return FinnhubDataSource(
        api_key=settings.api_key,
        store=store,
        hub=hub,
        notifier=notifier,
        reconnect_delay=settings.reconnect_delay,
        quote_timeout=settings.quote_timeout,
        ws_url=settings.ws_url,
        rest_url=settings.rest_url,
    )
