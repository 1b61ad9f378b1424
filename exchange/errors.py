"""Exchange error classes.

Every check that can raise one of these runs before any reserve, share or
balance is touched, so catching an ExchangeError always means "nothing
happened". The ``code`` attribute is the stable identifier used on the wire.
"""


class ExchangeError(Exception):
    """Base error for exchange and oracle operations."""

    code = "exchange_error"


class InvalidArgument(ExchangeError):
    """Zero or malformed address, non-positive or out-of-range amount."""

    code = "invalid_argument"


class PairAlreadyExists(ExchangeError):
    """A pair for this asset has already been created."""

    code = "pair_already_exists"


class PairNotFound(ExchangeError):
    """No pair exists for this asset."""

    code = "pair_not_found"


class InsufficientLiquidity(ExchangeError):
    """Share balance too low, empty reserves, or an amount that rounds to zero."""

    code = "insufficient_liquidity"


class SlippageExceeded(ExchangeError):
    """Swap output fell below the caller's minimum."""

    code = "slippage_exceeded"

    def __init__(self, amount_out: int, min_amount_out: int) -> None:
        super().__init__(f"Output {amount_out} below minimum {min_amount_out}")
        self.amount_out = amount_out
        self.min_amount_out = min_amount_out


class PriceFeedNotFound(ExchangeError):
    """No price feed is bound for this asset."""

    code = "price_feed_not_found"


class InvalidPrice(ExchangeError):
    """Price feed reported a non-positive price."""

    code = "invalid_price"


class TransferFailed(ExchangeError):
    """The asset ledger refused a transfer; the operation was rolled back."""

    code = "transfer_failed"


class Unauthorized(ExchangeError):
    """Caller is not allowed to perform an administrative operation."""

    code = "unauthorized"


class ExchangeBusy(ExchangeError):
    """Timed out waiting for another operation on the same pair."""

    code = "exchange_busy"


class ReentrantCall(ExchangeError):
    """A transfer hook tried to mutate a pair that is mid-operation."""

    code = "reentrant_call"
