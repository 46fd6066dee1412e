"""Data models for market data."""

from __future__ import annotations

from dataclasses import dataclass

# Price held for an instrument before any data has arrived for it
UNKNOWN_PRICE = 0.0


@dataclass(frozen=True, slots=True)
class PriceState:
    """Immutable last-known price of a single instrument."""

    instrument: str
    price: float = UNKNOWN_PRICE
    last_updated: float | None = None  # Unix seconds; None until the first write

    @property
    def is_known(self) -> bool:
        """True once a real price has been written."""
        return self.last_updated is not None

    @property
    def formatted_price(self) -> str:
        """Price with exactly two decimals, as sent to subscribers."""
        return f"{self.price:.2f}"

    def to_dict(self) -> dict:
        """Serialize for JSON / WebSocket transmission."""
        return {
            "symbol": self.instrument,
            "price": round(self.price, 2),
            "last_updated": self.last_updated,
        }
