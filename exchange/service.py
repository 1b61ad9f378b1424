"""Wiring of ledger, engine and oracle into one service instance."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from exchange.access import OwnerAccessControl
from exchange.config import ExchangeConfig
from exchange.engine import Exchange
from exchange.events import EventLog
from exchange.ledger import AssetLedger, InMemoryLedger
from exchange.oracle.adapter import PriceOracle


@dataclass
class ExchangeService:
    """Everything one market needs, built from a single config."""

    config: ExchangeConfig
    ledger: AssetLedger
    exchange: Exchange
    oracle: PriceOracle
    events: EventLog

    @classmethod
    def build(
        cls,
        config: ExchangeConfig | None = None,
        ledger: AssetLedger | None = None,
    ) -> ExchangeService:
        """Build a service, defaulting to an in-memory ledger.

        The exchange and oracle share one event log.
        """
        config = config or ExchangeConfig()
        ledger = ledger if ledger is not None else InMemoryLedger()
        events = EventLog(config.event_log_size)
        return cls(
            config=config,
            ledger=ledger,
            exchange=Exchange(ledger, config=config, event_log=events),
            oracle=PriceOracle(
                OwnerAccessControl(config.owner), config=config, event_log=events
            ),
            events=events,
        )


@lru_cache(maxsize=1)
def get_default_service() -> ExchangeService:
    """Process-wide service for the HTTP API, configured from the environment."""
    return ExchangeService.build(ExchangeConfig.from_env())
