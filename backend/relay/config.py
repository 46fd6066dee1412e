"""Runtime settings, read once from the environment."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field

from .market.registry import DEFAULT_SYMBOLS, SymbolRegistry

FEED_SOURCES = ("finnhub", "simulator")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive number, got {raw!r}")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class RelaySettings:
    """Everything the relay needs to know at startup."""

    api_key: str = ""
    registry: SymbolRegistry = field(default_factory=SymbolRegistry)
    feed_source: str = "finnhub"
    reconnect_delay: float = 15.0
    quote_timeout: float = 10.0
    send_timeout: float = 5.0
    sink_queue_size: int = 100
    ws_url: str = "wss://ws.finnhub.io"
    rest_url: str = "https://finnhub.io/api/v1"
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> RelaySettings:
        """Build settings from environment variables.

        - FINNHUB_API_KEY        access token (validated when the feed starts)
        - RELAY_SYMBOLS          comma-separated instruments
        - RELAY_FEED_SOURCE      'finnhub' (default) or 'simulator'
        - RELAY_RECONNECT_DELAY  seconds between reconnect attempts
        - RELAY_SEND_TIMEOUT     seconds a subscriber send may take before it is dropped
        - RELAY_CORS_ORIGINS     comma-separated allowed origins, default "*"
        """
        source = os.environ.get("RELAY_FEED_SOURCE", "finnhub").strip().lower() or "finnhub"
        if source not in FEED_SOURCES:
            raise ValueError(f"RELAY_FEED_SOURCE must be one of {FEED_SOURCES}, got {source!r}")

        origins = os.environ.get("RELAY_CORS_ORIGINS", "").split(",")
        cors_origins = tuple(o.strip() for o in origins if o.strip()) or ("*",)

        symbols = os.environ.get("RELAY_SYMBOLS", "").strip()
        registry = SymbolRegistry.from_string(symbols) if symbols else SymbolRegistry(DEFAULT_SYMBOLS)

        return cls(
            api_key=os.environ.get("FINNHUB_API_KEY", "").strip(),
            registry=registry,
            feed_source=source,
            reconnect_delay=_env_float("RELAY_RECONNECT_DELAY", 15.0),
            quote_timeout=_env_float("RELAY_QUOTE_TIMEOUT", 10.0),
            send_timeout=_env_float("RELAY_SEND_TIMEOUT", 5.0),
            sink_queue_size=_env_int("RELAY_SINK_QUEUE_SIZE", 100),
            ws_url=os.environ.get("FINNHUB_WS_URL", "").strip() or "wss://ws.finnhub.io",
            rest_url=(os.environ.get("FINNHUB_REST_URL", "").strip() or "https://finnhub.io/api/v1").rstrip("/"),
            host=os.environ.get("RELAY_HOST", "").strip() or "0.0.0.0",
            port=_env_int("RELAY_PORT", 3001),
            log_level=os.environ.get("RELAY_LOG_LEVEL", "").strip().upper() or "INFO",
            cors_origins=cors_origins,
        )
