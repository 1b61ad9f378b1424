"""Protocol constants for the exchange.

Centralizes fee parameters, fixed-point scales and well-known identifiers.
"""

from exchange.models.types import is_valid_address

# Swap fee: 0.3% taken from the input side (997 of every 1000 units trade)
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000

# Fixed-point scale for get_exchange_rate (asset units per base unit)
RATE_SCALE = 10**18

# Token amounts use 18 decimals; USD values use 18 - USD_PRESCALE_DECIMALS.
# Legacy conversion drops this many low-order digits before multiplying.
USD_PRESCALE_DECIMALS = 10

# Decimals most price feeds report
DEFAULT_FEED_DECIMALS = 8


def _validate_address(name: str, address: str) -> str:
    """Validate and return a well-known address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# The all-zero address is never a valid asset or caller
ZERO_ADDRESS = _validate_address("zero", "0x" + "0" * 40)

# Ledger identifier for the native settlement asset (the "base" side of every pair)
NATIVE_ASSET = _validate_address("native", "0x" + "e" * 40)

# Default ledger holder for pooled reserves
EXCHANGE_ADDRESS = _validate_address("exchange", "0x" + "0" * 36 + "face")
