"""Liquidity share math.

Pure functions with explicit rounding: every division truncates, and every
truncation favours the pool, so a provider can never withdraw more than
their proportional claim.
"""

from __future__ import annotations

from dataclasses import dataclass

from exchange.safe_int import S


@dataclass(frozen=True)
class LiquidityDeposit:
    """Outcome of matching a deposit to the current reserve ratio.

    The refund fields are the parts of the offer that are never pulled
    from the provider.
    """

    asset_used: int
    base_used: int
    asset_refund: int
    base_refund: int
    shares_minted: int


@dataclass(frozen=True)
class LiquidityWithdrawal:
    """Amounts paid out for burning shares."""

    asset_out: int
    base_out: int


def initial_shares(asset_amount: int, base_amount: int) -> int:
    """Shares minted to the first provider of a pair.

    The first deposit mints exactly asset_amount shares. base_amount does
    not take part; it only fixes the starting price.
    """
    if asset_amount <= 0 or base_amount <= 0:
        raise ValueError("initial amounts must be positive")
    return asset_amount


def match_deposit(
    *,
    asset_reserve: int,
    base_reserve: int,
    total_shares: int,
    asset_amount: int,
    base_offered: int,
) -> LiquidityDeposit:
    """Fit a deposit to the pair's current ratio and compute minted shares.

    If the offered base covers what asset_amount needs, only the needed base
    is used and the rest is refunded. Otherwise the offered base is the
    binding side and asset_amount shrinks to match it.

    A pair whose supply has been burned to zero is reseeded at the offered
    ratio, minting shares the same way initial_shares does.

    Raises:
        ValueError: If either amount is not positive
        DivisionByZero: If total_shares > 0 but a reserve is empty
    """
    if asset_amount <= 0 or base_offered <= 0:
        raise ValueError("deposit amounts must be positive")

    if total_shares == 0:
        return LiquidityDeposit(
            asset_used=asset_amount,
            base_used=base_offered,
            asset_refund=0,
            base_refund=0,
            shares_minted=initial_shares(asset_amount, base_offered),
        )

    base_needed = (S(asset_amount) * base_reserve // asset_reserve).value
    if base_offered >= base_needed:
        asset_used = asset_amount
        base_used = base_needed
    else:
        asset_used = (S(base_offered) * asset_reserve // base_reserve).value
        base_used = base_offered

    shares = (S(asset_used) * total_shares // asset_reserve).value

    return LiquidityDeposit(
        asset_used=asset_used,
        base_used=base_used,
        asset_refund=asset_amount - asset_used,
        base_refund=base_offered - base_used,
        shares_minted=shares,
    )


def burn_shares(
    *,
    asset_reserve: int,
    base_reserve: int,
    total_shares: int,
    share_amount: int,
) -> LiquidityWithdrawal:
    """Proportional payout for share_amount of total_shares.

    Raises:
        ValueError: If share_amount is not in (0, total_shares]
        DivisionByZero: If total_shares is zero
    """
    if share_amount <= 0:
        raise ValueError("share amount must be positive")
    if share_amount > total_shares:
        raise ValueError(f"share amount {share_amount} exceeds supply {total_shares}")

    return LiquidityWithdrawal(
        asset_out=(S(share_amount) * asset_reserve // total_shares).value,
        base_out=(S(share_amount) * base_reserve // total_shares).value,
    )
