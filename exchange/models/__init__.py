"""Pydantic models for exchange data structures."""

from exchange.models.api import (
    AddLiquidityRequest,
    ConversionResponse,
    CreatePairRequest,
    DepositResponse,
    ErrorResponse,
    PairResponse,
    PriceResponse,
    QuoteResponse,
    RemoveLiquidityRequest,
    SetPriceFeedRequest,
    SharesResponse,
    SwapRequest,
    SwapResponse,
    WithdrawalResponse,
)
from exchange.models.types import Address, Uint256

__all__ = [
    # Types
    "Address",
    "Uint256",
    # Requests
    "CreatePairRequest",
    "AddLiquidityRequest",
    "RemoveLiquidityRequest",
    "SwapRequest",
    "SetPriceFeedRequest",
    # Responses
    "DepositResponse",
    "WithdrawalResponse",
    "SwapResponse",
    "PairResponse",
    "SharesResponse",
    "QuoteResponse",
    "PriceResponse",
    "ConversionResponse",
    "ErrorResponse",
]
