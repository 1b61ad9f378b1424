"""API endpoints for the exchange and price oracle."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Header, Query

from exchange.models.api import (
    AddLiquidityRequest,
    ConversionResponse,
    CreatePairRequest,
    DepositResponse,
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
from exchange.oracle.adapter import LatestPrice
from exchange.oracle.feeds import StaticPriceFeed
from exchange.pairs.liquidity import LiquidityDeposit
from exchange.service import ExchangeService, get_default_service

logger = structlog.get_logger()

router = APIRouter()

Caller = Annotated[str, Header(alias="X-Caller", description="Address acting on the exchange")]
Amount = Annotated[int, Query(ge=0, description="Amount in the input's smallest unit")]


def get_service() -> ExchangeService:
    """Dependency provider for the service instance.

    Override this in tests to inject an isolated market:
        app.dependency_overrides[get_service] = lambda: service
    """
    return get_default_service()


Service = Annotated[ExchangeService, Depends(get_service)]


def _deposit_response(deposit: LiquidityDeposit) -> DepositResponse:
    return DepositResponse(
        asset_used=deposit.asset_used,
        base_used=deposit.base_used,
        asset_refund=deposit.asset_refund,
        base_refund=deposit.base_refund,
        shares_minted=deposit.shares_minted,
    )


def _price_response(latest: LatestPrice) -> PriceResponse:
    return PriceResponse(price=latest.price, decimals=latest.decimals, timestamp=latest.timestamp)


# --- Pairs ---


@router.post("/pairs", status_code=201)
def create_pair(request: CreatePairRequest, caller: Caller, service: Service) -> DepositResponse:
    """Create a pair and seed it with the caller's liquidity."""
    deposit = service.exchange.create_pair(
        caller, request.asset, int(request.asset_amount), int(request.base_amount)
    )
    return _deposit_response(deposit)


@router.get("/pairs")
def list_pairs(service: Service) -> list[PairResponse]:
    """All active pairs."""
    return [_pair_response(service, pair.asset) for pair in service.exchange.list_pairs()]


def _pair_response(service: ExchangeService, asset: str) -> PairResponse:
    pair, rate = service.exchange.get_pair_view(asset)
    return PairResponse(
        asset=pair.asset,
        asset_reserve=pair.asset_reserve,
        base_reserve=pair.base_reserve,
        total_shares=pair.total_shares,
        exchange_rate=rate,
    )


@router.get("/pairs/{asset}")
def get_pair(asset: str, service: Service) -> PairResponse:
    """Reserves, share supply and exchange rate of a pair."""
    return _pair_response(service, asset)


@router.post("/pairs/{asset}/liquidity")
def add_liquidity(
    asset: str, request: AddLiquidityRequest, caller: Caller, service: Service
) -> DepositResponse:
    """Deposit at the current ratio."""
    deposit = service.exchange.add_liquidity(
        caller, asset, int(request.asset_amount), int(request.base_amount_offered)
    )
    return _deposit_response(deposit)


@router.post("/pairs/{asset}/liquidity/remove")
def remove_liquidity(
    asset: str, request: RemoveLiquidityRequest, caller: Caller, service: Service
) -> WithdrawalResponse:
    """Burn shares for a proportional payout."""
    withdrawal = service.exchange.remove_liquidity(caller, asset, int(request.shares))
    return WithdrawalResponse(asset_out=withdrawal.asset_out, base_out=withdrawal.base_out)


@router.get("/pairs/{asset}/shares/{provider}")
def get_shares(asset: str, provider: str, service: Service) -> SharesResponse:
    """Share balance of a provider."""
    shares = service.exchange.get_shares(asset, provider)
    return SharesResponse(provider=provider.lower(), shares=shares)


# --- Swaps and quotes ---


@router.post("/pairs/{asset}/swap/base-for-asset")
def swap_base_for_asset(
    asset: str, request: SwapRequest, caller: Caller, service: Service
) -> SwapResponse:
    """Sell settlement asset for the paired asset."""
    result = service.exchange.swap_base_for_asset(
        caller, asset, int(request.amount_in), int(request.min_amount_out)
    )
    return SwapResponse(
        asset=result.asset,
        token_in=result.token_in,
        token_out=result.token_out,
        amount_in=result.amount_in,
        amount_out=result.amount_out,
    )


@router.post("/pairs/{asset}/swap/asset-for-base")
def swap_asset_for_base(
    asset: str, request: SwapRequest, caller: Caller, service: Service
) -> SwapResponse:
    """Sell the paired asset for settlement asset."""
    result = service.exchange.swap_asset_for_base(
        caller, asset, int(request.amount_in), int(request.min_amount_out)
    )
    return SwapResponse(
        asset=result.asset,
        token_in=result.token_in,
        token_out=result.token_out,
        amount_in=result.amount_in,
        amount_out=result.amount_out,
    )


@router.get("/pairs/{asset}/quote/base-for-asset")
def quote_base_for_asset(asset: str, amount: Amount, service: Service) -> QuoteResponse:
    """Asset out for an exact base input."""
    amount_out = service.exchange.get_asset_out_for_base(asset, amount)
    return QuoteResponse(amount_in=amount, amount_out=amount_out)


@router.get("/pairs/{asset}/quote/asset-for-base")
def quote_asset_for_base(asset: str, amount: Amount, service: Service) -> QuoteResponse:
    """Base out for an exact asset input."""
    amount_out = service.exchange.get_base_out_for_asset(asset, amount)
    return QuoteResponse(amount_in=amount, amount_out=amount_out)


@router.get("/pairs/{asset}/quote/base-for-exact-asset")
def quote_base_for_exact_asset(asset: str, amount: Amount, service: Service) -> QuoteResponse:
    """Base needed to buy at least `amount` of the asset.

    amountIn is 2**256 - 1 when the reserve cannot supply `amount`.
    """
    amount_in = service.exchange.get_base_in_for_asset_out(asset, amount)
    return QuoteResponse(amount_in=amount_in, amount_out=amount)


@router.get("/pairs/{asset}/quote/asset-for-exact-base")
def quote_asset_for_exact_base(asset: str, amount: Amount, service: Service) -> QuoteResponse:
    """Asset needed to buy at least `amount` of base."""
    amount_in = service.exchange.get_asset_in_for_base_out(asset, amount)
    return QuoteResponse(amount_in=amount_in, amount_out=amount)


# --- Oracle ---
# Routes for the settlement asset are declared before their {asset} twins.


@router.get("/oracle/base/price")
def get_latest_base_price(service: Service) -> PriceResponse:
    """Latest USD price of the settlement asset."""
    return _price_response(service.oracle.get_latest_base_price())


@router.get("/oracle/{asset}/price")
def get_latest_price(asset: str, service: Service) -> PriceResponse:
    """Latest USD price of an asset."""
    return _price_response(service.oracle.get_latest_price(asset))


@router.get("/oracle/{asset}/to-usd")
def convert_token_to_usd(asset: str, amount: Amount, service: Service) -> ConversionResponse:
    """8-decimal USD value of an 18-decimal token amount."""
    return ConversionResponse(
        amount=amount, result=service.oracle.convert_token_to_usd(asset, amount)
    )


@router.get("/oracle/{asset}/from-usd")
def convert_usd_to_token(asset: str, amount: Amount, service: Service) -> ConversionResponse:
    """18-decimal token amount worth an 8-decimal USD value."""
    return ConversionResponse(
        amount=amount, result=service.oracle.convert_usd_to_token(asset, amount)
    )


@router.put("/oracle/feeds/base", status_code=204)
def update_base_price_feed(
    request: SetPriceFeedRequest, caller: Caller, service: Service
) -> None:
    """Bind the settlement asset to a static price."""
    service.oracle.update_base_price_feed(
        caller, StaticPriceFeed(request.price, decimals=request.decimals)
    )


@router.put("/oracle/feeds/{asset}", status_code=204)
def set_price_feed(
    asset: str, request: SetPriceFeedRequest, caller: Caller, service: Service
) -> None:
    """Bind an asset to a static price."""
    service.oracle.set_price_feed(
        caller, asset, StaticPriceFeed(request.price, decimals=request.decimals)
    )
    logger.debug("static_price_published", asset=asset[-8:], price=request.price)
