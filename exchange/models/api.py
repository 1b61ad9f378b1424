"""Pydantic models for the exchange HTTP API.

Amounts travel as uint256 decimal strings so JSON clients never round them.
"""

from pydantic import BaseModel, Field

from exchange.models.types import Address, Uint256


class CreatePairRequest(BaseModel):
    """Create a pair and seed it with initial liquidity."""

    asset: Address
    asset_amount: Uint256 = Field(alias="assetAmount")
    base_amount: Uint256 = Field(alias="baseAmount")

    model_config = {"populate_by_name": True}


class AddLiquidityRequest(BaseModel):
    """Deposit into an existing pair at its current ratio."""

    asset_amount: Uint256 = Field(alias="assetAmount")
    base_amount_offered: Uint256 = Field(
        alias="baseAmountOffered",
        description="Upper bound on base pulled; unused base is never taken.",
    )

    model_config = {"populate_by_name": True}


class RemoveLiquidityRequest(BaseModel):
    """Burn liquidity shares."""

    shares: Uint256


class SwapRequest(BaseModel):
    """Exact-input swap with a minimum output."""

    amount_in: Uint256 = Field(alias="amountIn")
    min_amount_out: Uint256 = Field(default="0", alias="minAmountOut")

    model_config = {"populate_by_name": True}


class SetPriceFeedRequest(BaseModel):
    """Publish a static USD price for an asset (or the settlement asset)."""

    price: int = Field(description="Raw integer price; non-positive prices are stored but unreadable.")
    decimals: int = Field(default=8, ge=0, le=77)


class DepositResponse(BaseModel):
    """Amounts used and refunded by a deposit, and shares minted."""

    asset_used: Uint256 = Field(alias="assetUsed")
    base_used: Uint256 = Field(alias="baseUsed")
    asset_refund: Uint256 = Field(alias="assetRefund")
    base_refund: Uint256 = Field(alias="baseRefund")
    shares_minted: Uint256 = Field(alias="sharesMinted")

    model_config = {"populate_by_name": True}


class WithdrawalResponse(BaseModel):
    """Amounts paid out for burned shares."""

    asset_out: Uint256 = Field(alias="assetOut")
    base_out: Uint256 = Field(alias="baseOut")

    model_config = {"populate_by_name": True}


class SwapResponse(BaseModel):
    """Executed swap."""

    asset: Address
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class PairResponse(BaseModel):
    """Reserve state of a pair."""

    asset: Address
    asset_reserve: Uint256 = Field(alias="assetReserve")
    base_reserve: Uint256 = Field(alias="baseReserve")
    total_shares: Uint256 = Field(alias="totalShares")
    exchange_rate: Uint256 | None = Field(
        default=None,
        alias="exchangeRate",
        description="Asset units per base unit, scaled by 1e18. Absent for empty pairs.",
    )

    model_config = {"populate_by_name": True}


class SharesResponse(BaseModel):
    """A provider's share balance."""

    provider: Address
    shares: Uint256


class QuoteResponse(BaseModel):
    """Output a swap would yield against current reserves."""

    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class PriceResponse(BaseModel):
    """Latest oracle price."""

    price: Uint256
    decimals: int
    timestamp: int


class ConversionResponse(BaseModel):
    """Result of a token/USD conversion."""

    amount: Uint256
    result: Uint256


class ErrorResponse(BaseModel):
    """Error body for every failed request."""

    error: str
    detail: str
