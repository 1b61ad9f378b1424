"""Price feeds and USD conversion."""

from exchange.oracle.adapter import LatestPrice, PriceOracle
from exchange.oracle.feeds import PriceFeed, PriceQuote, StaticPriceFeed

__all__ = [
    "PriceOracle",
    "LatestPrice",
    "PriceFeed",
    "PriceQuote",
    "StaticPriceFeed",
]
