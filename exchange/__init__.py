"""Constant product exchange with price-oracle USD conversion."""

from exchange.engine import Exchange, SwapResult
from exchange.events import EventLog, ExchangeEvent
from exchange.oracle import PriceOracle, StaticPriceFeed

__version__ = "0.1.0"
__all__ = ["Exchange", "EventLog", "ExchangeEvent", "SwapResult", "PriceOracle", "StaticPriceFeed", "__version__"]
