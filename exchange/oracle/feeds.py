"""Price feed provider interface.

A feed reports a USD reference price as a fixed-decimal integer: a price of
41_000_000 with 8 decimals means $0.41.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from exchange.constants import DEFAULT_FEED_DECIMALS


@dataclass(frozen=True)
class PriceQuote:
    """Most recent answer of a price feed.

    Attributes:
        price: Raw integer price (may be non-positive if the feed is broken)
        decimals: Number of decimals in price
        timestamp: Unix time the price was last updated
    """

    price: int
    decimals: int
    timestamp: int


@runtime_checkable
class PriceFeed(Protocol):
    """Protocol for an external price feed."""

    def latest_quote(self) -> PriceQuote:
        """Return the most recent quote."""
        ...

    def decimals(self) -> int:
        """Decimals the feed reports prices in."""
        ...


class StaticPriceFeed:
    """Price feed holding a single, manually updated price.

    Used by tests and by the HTTP service, where an administrator posts
    prices directly.
    """

    def __init__(
        self,
        price: int,
        decimals: int = DEFAULT_FEED_DECIMALS,
        timestamp: int | None = None,
    ) -> None:
        if decimals < 0:
            raise ValueError(f"decimals cannot be negative: {decimals}")
        self._decimals = decimals
        self._lock = threading.Lock()
        self._quote = PriceQuote(
            price=price,
            decimals=decimals,
            timestamp=timestamp if timestamp is not None else int(time.time()),
        )

    def update(self, price: int, timestamp: int | None = None) -> None:
        """Publish a new price."""
        with self._lock:
            self._quote = PriceQuote(
                price=price,
                decimals=self._decimals,
                timestamp=timestamp if timestamp is not None else int(time.time()),
            )

    def latest_quote(self) -> PriceQuote:
        with self._lock:
            return self._quote

    def decimals(self) -> int:
        return self._decimals
