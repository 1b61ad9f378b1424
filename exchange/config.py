"""Exchange configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from exchange.constants import (
    EXCHANGE_ADDRESS,
    FEE_DENOMINATOR,
    FEE_NUMERATOR,
    NATIVE_ASSET,
    RATE_SCALE,
    USD_PRESCALE_DECIMALS,
)
from exchange.events import DEFAULT_EVENT_LOG_SIZE
from exchange.models.types import normalize_address


class ConversionMode(str, Enum):
    """How token amounts are converted to USD values."""

    # Drop USD_PRESCALE_DECIMALS digits before multiplying (matches values
    # already computed by the deployed exchange)
    LEGACY = "legacy"
    # Multiply first, divide once at the end
    EXACT = "exact"


@dataclass(frozen=True)
class ExchangeConfig:
    """Centralized configuration for the exchange engine and price oracle.

    Attributes:
        fee_numerator: Portion of the input that trades (default: 997)
        fee_denominator: Fee base (default: 1000)
        rate_scale: Fixed-point scale of get_exchange_rate (default: 1e18)
        usd_prescale_decimals: Digits dropped by legacy USD conversion (default: 10)
        conversion_mode: LEGACY (bit-compatible) or EXACT
        lock_timeout_seconds: How long a mutating call waits for its pair lock
        event_log_size: Events kept in memory before the oldest are dropped
        exchange_address: Ledger holder of pooled reserves
        native_asset: Ledger identifier of the settlement asset
        owner: Address allowed to rebind price feeds, or None for no owner
    """

    fee_numerator: int = FEE_NUMERATOR
    fee_denominator: int = FEE_DENOMINATOR
    rate_scale: int = RATE_SCALE
    usd_prescale_decimals: int = USD_PRESCALE_DECIMALS
    conversion_mode: ConversionMode = ConversionMode.LEGACY
    lock_timeout_seconds: float = 5.0
    event_log_size: int = DEFAULT_EVENT_LOG_SIZE
    exchange_address: str = EXCHANGE_ADDRESS
    native_asset: str = NATIVE_ASSET
    owner: str | None = None

    def __post_init__(self) -> None:
        if not 0 < self.fee_numerator <= self.fee_denominator:
            raise ValueError(
                f"fee_numerator must be in (0, {self.fee_denominator}], got {self.fee_numerator}"
            )
        if self.rate_scale <= 0:
            raise ValueError(f"rate_scale must be positive, got {self.rate_scale}")
        if self.usd_prescale_decimals < 0:
            raise ValueError(
                f"usd_prescale_decimals cannot be negative, got {self.usd_prescale_decimals}"
            )
        if self.lock_timeout_seconds <= 0:
            raise ValueError(
                f"lock_timeout_seconds must be positive, got {self.lock_timeout_seconds}"
            )
        if self.event_log_size <= 0:
            raise ValueError(f"event_log_size must be positive, got {self.event_log_size}")

    @property
    def fee_bps(self) -> int:
        """Fee in basis points (30 for the standard 997/1000)."""
        return (self.fee_denominator - self.fee_numerator) * 10_000 // self.fee_denominator

    @classmethod
    def from_env(cls) -> ExchangeConfig:
        """Build a config from EXCHANGE_* environment variables.

        - EXCHANGE_CONVERSION_MODE: "legacy" or "exact" (default: legacy)
        - EXCHANGE_LOCK_TIMEOUT: seconds (default: 5.0)
        - EXCHANGE_ADDRESS: reserve holder address
        - EXCHANGE_OWNER: admin address for price feed rebinding
        - EXCHANGE_EVENT_LOG_SIZE: events kept in memory (default: 10000)
        """
        owner = os.environ.get("EXCHANGE_OWNER")
        return cls(
            conversion_mode=ConversionMode(
                os.environ.get("EXCHANGE_CONVERSION_MODE", ConversionMode.LEGACY.value).lower()
            ),
            lock_timeout_seconds=float(os.environ.get("EXCHANGE_LOCK_TIMEOUT", "5.0")),
            event_log_size=int(
                os.environ.get("EXCHANGE_EVENT_LOG_SIZE", str(DEFAULT_EVENT_LOG_SIZE))
            ),
            exchange_address=normalize_address(
                os.environ.get("EXCHANGE_ADDRESS", EXCHANGE_ADDRESS), validate=True
            ),
            owner=normalize_address(owner, validate=True) if owner else None,
        )


# Default configuration instance
DEFAULT_EXCHANGE_CONFIG = ExchangeConfig()
