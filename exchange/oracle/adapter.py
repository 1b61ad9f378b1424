"""Price oracle adapter: feed bindings and decimal-safe USD conversion.

Token amounts use 18 decimals and USD values use 18 - 10 = 8, whatever the
feed's own decimals. Conversion in LEGACY mode drops the 10 low-order digits of
the token amount before multiplying by the price, reproducing values the
deployed exchange has already published:

    usd   = (amount // 10**10) * price // 10**decimals
    token = usd * 10**10 * 10**decimals // price

EXACT mode multiplies first and divides once, losing nothing but the final
truncation:

    usd   = amount * price // 10**(10 + decimals)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

import structlog

from exchange.access import AccessControl
from exchange.config import DEFAULT_EXCHANGE_CONFIG, ConversionMode, ExchangeConfig
from exchange.errors import InvalidArgument, InvalidPrice, PriceFeedNotFound, Unauthorized
from exchange.events import EventKind, EventLog, ExchangeEvent
from exchange.log import short
from exchange.models.types import is_valid_address, is_zero_address, normalize_address
from exchange.oracle.feeds import PriceFeed
from exchange.safe_int import S

logger = structlog.get_logger()


@dataclass(frozen=True)
class LatestPrice:
    """A validated (strictly positive) price.

    Attributes:
        price: Raw integer price
        decimals: Number of decimals in price
        timestamp: Unix time the feed last updated
    """

    price: int
    decimals: int
    timestamp: int


class PriceOracle:
    """Binds assets to price feeds and converts between tokens and USD.

    Reads are synchronous and never retried; a feed that reports a
    non-positive price fails the read with InvalidPrice.

    Args:
        access: Decides who may rebind feeds
        config: Conversion mode and pre-scale exponent
        event_log: Where feed bindings are recorded (a private log if None)
    """

    def __init__(
        self,
        access: AccessControl,
        config: ExchangeConfig = DEFAULT_EXCHANGE_CONFIG,
        event_log: EventLog | None = None,
    ) -> None:
        self.config = config
        self._events = event_log if event_log is not None else EventLog(config.event_log_size)
        self._access = access
        self._feeds: dict[str, PriceFeed] = {}
        self._base_feed: PriceFeed | None = None
        self._lock = threading.Lock()

    @property
    def events(self) -> list[ExchangeEvent]:
        """Most recent feed bindings (and, when shared, exchange operations)."""
        return self._events.snapshot()

    # --- Administration ---

    def _require_owner(self, caller: str) -> None:
        if not self._access.is_owner(caller):
            logger.warning("price_feed_update_unauthorized", caller=short(caller))
            raise Unauthorized(f"{caller} may not change price feeds")

    @staticmethod
    def _require_asset(asset: str) -> str:
        if not isinstance(asset, str) or not is_valid_address(normalize_address(asset)):
            raise InvalidArgument(f"Invalid asset address: {asset!r}")
        key = normalize_address(asset)
        if is_zero_address(key):
            raise InvalidArgument("asset cannot be the zero address")
        return key

    def set_price_feed(self, caller: str, asset: str, feed: PriceFeed) -> None:
        """Bind (or rebind) asset to feed. Takes effect immediately.

        Raises:
            Unauthorized: caller is not the owner
            InvalidArgument: bad asset address or missing feed
        """
        self._require_owner(caller)
        key = self._require_asset(asset)
        if feed is None:
            raise InvalidArgument("feed is required")
        with self._lock:
            replaced = key in self._feeds
            self._feeds[key] = feed
        logger.info("price_feed_set", asset=short(key), replaced=replaced)
        self._events.record(
            EventKind.PRICE_FEED_SET,
            key,
            normalize_address(caller),
            decimals=feed.decimals(),
        )

    def update_base_price_feed(self, caller: str, feed: PriceFeed) -> None:
        """Bind (or rebind) the settlement asset's USD feed.

        Raises:
            Unauthorized: caller is not the owner
            InvalidArgument: missing feed
        """
        self._require_owner(caller)
        if feed is None:
            raise InvalidArgument("feed is required")
        with self._lock:
            self._base_feed = feed
        logger.info("base_price_feed_updated")
        self._events.record(
            EventKind.BASE_PRICE_FEED_UPDATED,
            normalize_address(self.config.native_asset),
            normalize_address(caller),
            decimals=feed.decimals(),
        )

    def has_price_feed(self, asset: str) -> bool:
        with self._lock:
            return normalize_address(asset) in self._feeds

    def bound_assets(self) -> list[str]:
        """Assets that currently have a feed."""
        with self._lock:
            return list(self._feeds)

    # --- Reads ---

    def _feed_for(self, asset: str) -> PriceFeed:
        key = self._require_asset(asset)
        with self._lock:
            feed = self._feeds.get(key)
        if feed is None:
            raise PriceFeedNotFound(f"No price feed for asset {key}")
        return feed

    @staticmethod
    def _read(feed: PriceFeed, label: str) -> LatestPrice:
        quote = feed.latest_quote()
        if quote.price <= 0:
            logger.warning("invalid_price", feed=label, price=quote.price)
            raise InvalidPrice(f"Feed for {label} reported non-positive price {quote.price}")
        if quote.decimals < 0:
            raise InvalidPrice(f"Feed for {label} reported negative decimals {quote.decimals}")
        return LatestPrice(price=quote.price, decimals=quote.decimals, timestamp=quote.timestamp)

    def get_latest_price(self, asset: str) -> LatestPrice:
        """Latest USD price of asset.

        Raises:
            PriceFeedNotFound: asset has no feed
            InvalidPrice: the feed's price is not strictly positive
        """
        feed = self._feed_for(asset)
        return self._read(feed, normalize_address(asset))

    def get_latest_base_price(self) -> LatestPrice:
        """Latest USD price of the settlement asset.

        Raises:
            PriceFeedNotFound: no base feed is bound
            InvalidPrice: the feed's price is not strictly positive
        """
        with self._lock:
            feed = self._base_feed
        if feed is None:
            raise PriceFeedNotFound("No price feed for the settlement asset")
        return self._read(feed, "base")

    def get_price_feed_decimals(self, asset: str) -> int:
        """Decimals reported by the asset's feed."""
        return self._feed_for(asset).decimals()

    # --- Conversion ---

    @staticmethod
    def _require_amount(name: str, amount: int) -> int:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise InvalidArgument(f"{name} must be an integer, got {type(amount).__name__}")
        if not S(amount).is_uint256():
            raise InvalidArgument(f"{name} out of uint256 range: {amount}")
        return amount

    def convert_token_to_usd(self, asset: str, amount: int) -> int:
        """Value of an 18-decimal token amount in 8-decimal USD."""
        self._require_amount("amount", amount)
        latest = self.get_latest_price(asset)
        prescale = self.config.usd_prescale_decimals

        if self.config.conversion_mode is ConversionMode.EXACT:
            usd = S(amount) * latest.price // S(1).pow10(prescale + latest.decimals)
        else:
            usd = S(amount) // S(1).pow10(prescale) * latest.price // S(1).pow10(latest.decimals)
        return usd.value

    def convert_usd_to_token(self, asset: str, usd_amount: int) -> int:
        """18-decimal token amount worth usd_amount (8-decimal USD)."""
        self._require_amount("usd_amount", usd_amount)
        latest = self.get_latest_price(asset)
        prescale = self.config.usd_prescale_decimals
        return (S(usd_amount).pow10(prescale + latest.decimals) // latest.price).value
