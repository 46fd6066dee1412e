"""Static set of instruments the relay tracks."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

DEFAULT_SYMBOLS: tuple[str, ...] = (
    "AAPL",
    "TSLA",
    "NVDA",
    "MSFT",
    "AMZN",
    "GOOGL",
    "META",
    "BINANCE:ETHUSDT",
)


class UnknownInstrumentError(KeyError):
    """Raised when an instrument outside the registry is looked up."""


class SymbolRegistry:
    """Ordered, immutable set of instrument identifiers.

    Built once at startup. Drives the initial price table and the upstream
    subscription handshake (subscriptions go out in registry order).
    """

    __slots__ = ("_symbols", "_members")

    def __init__(self, symbols: Iterable[str] = DEFAULT_SYMBOLS) -> None:
        ordered: list[str] = []
        for raw in symbols:
            symbol = raw.strip()
            if symbol and symbol not in ordered:
                ordered.append(symbol)
        if not ordered:
            raise ValueError("Symbol registry needs at least one instrument")
        self._symbols = tuple(ordered)
        self._members = frozenset(ordered)

    @classmethod
    def from_string(cls, value: str) -> SymbolRegistry:
        """Parse a comma-separated list, e.g. ``"AAPL, TSLA"``."""
        return cls(value.split(","))

    @property
    def symbols(self) -> tuple[str, ...]:
        return self._symbols

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._members

    def __repr__(self) -> str:
        return f"SymbolRegistry({list(self._symbols)!r})"
