"""Pair state and liquidity share accounting."""

from exchange.pairs.liquidity import (
    LiquidityDeposit,
    LiquidityWithdrawal,
    burn_shares,
    initial_shares,
    match_deposit,
)
from exchange.pairs.registry import Pair, PairRegistry, PairSnapshot

__all__ = [
    "Pair",
    "PairRegistry",
    "PairSnapshot",
    "LiquidityDeposit",
    "LiquidityWithdrawal",
    "initial_shares",
    "match_deposit",
    "burn_shares",
]
