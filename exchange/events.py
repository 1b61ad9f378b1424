"""Bounded log of committed exchange and oracle operations."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

# Events kept before the oldest are dropped
DEFAULT_EVENT_LOG_SIZE = 10_000


class EventKind(str, Enum):
    """Kinds of state changes recorded in the event log."""

    PAIR_CREATED = "pair_created"
    LIQUIDITY_ADDED = "liquidity_added"
    LIQUIDITY_REMOVED = "liquidity_removed"
    SWAP = "swap"
    PRICE_FEED_SET = "price_feed_set"
    BASE_PRICE_FEED_UPDATED = "base_price_feed_updated"


@dataclass(frozen=True)
class ExchangeEvent:
    """Record of a committed operation."""

    kind: EventKind
    asset: str
    caller: str
    amounts: dict[str, int] = field(default_factory=dict)


class EventLog:
    """Thread-safe ring buffer of ExchangeEvents.

    One log can be shared by an Exchange and a PriceOracle so a service
    sees a single ordered history.
    """

    def __init__(self, maxlen: int = DEFAULT_EVENT_LOG_SIZE) -> None:
        if maxlen <= 0:
            raise ValueError(f"maxlen must be positive, got {maxlen}")
        self._events: deque[ExchangeEvent] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    @property
    def maxlen(self) -> int:
        return self._events.maxlen or 0

    def record(self, kind: EventKind, asset: str, caller: str, **amounts: int) -> ExchangeEvent:
        event = ExchangeEvent(kind=kind, asset=asset, caller=caller, amounts=amounts)
        with self._lock:
            self._events.append(event)
        return event

    def snapshot(self) -> list[ExchangeEvent]:
        """Events currently held, oldest first."""
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
