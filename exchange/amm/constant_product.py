"""Constant product AMM math.

The exchange prices every pair with the x * y = k invariant, taking the fee
from the input before it enters the product:

    effective_in = amount_in * fee_numerator
    amount_out   = effective_in * reserve_out / (reserve_in * fee_denominator + effective_in)

All divisions truncate. The quote functions and the swap execution path
both call get_amount_out, so a quote is exactly what a swap against
unchanged reserves pays out.
"""

from __future__ import annotations

from exchange.constants import FEE_DENOMINATOR, FEE_NUMERATOR
from exchange.safe_int import UINT256_MAX, S


class ConstantProduct:
    """Constant product math with an input-side fee.

    Formula: amount_out = (in * 997 * res_out) / (res_in * 1000 + in * 997)
    """

    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
        fee_numerator: int = FEE_NUMERATOR,
        fee_denominator: int = FEE_DENOMINATOR,
    ) -> int:
        """Calculate output amount for an exact input.

        Args:
            amount_in: Input amount
            reserve_in: Reserve of the input side
            reserve_out: Reserve of the output side
            fee_numerator: Portion of the input that trades (default 997)
            fee_denominator: Fee base (default 1000)

        Returns:
            Output amount, always strictly below reserve_out. Zero for
            non-positive input or empty reserves.
        """
        if amount_in <= 0:
            return 0
        if reserve_in <= 0 or reserve_out <= 0:
            return 0

        effective_in = S(amount_in) * fee_numerator
        numerator = effective_in * reserve_out
        denominator = S(reserve_in) * fee_denominator + effective_in

        return (numerator // denominator).value

    def get_amount_in(
        self,
        amount_out: int,
        reserve_in: int,
        reserve_out: int,
        fee_numerator: int = FEE_NUMERATOR,
        fee_denominator: int = FEE_DENOMINATOR,
    ) -> int:
        """Calculate the smallest input that yields at least amount_out.

        Formula: amount_in = (res_in * out * 1000) / ((res_out - out) * 997) + 1

        Returns:
            Required input amount, or UINT256_MAX when amount_out cannot be
            reached (it would drain the reserve).
        """
        if amount_out <= 0:
            return 0
        if reserve_in <= 0 or reserve_out <= 0:
            return 0
        if amount_out >= reserve_out:
            return UINT256_MAX

        numerator = S(reserve_in) * amount_out * fee_denominator
        denominator = (S(reserve_out) - amount_out) * fee_numerator

        return ((numerator // denominator) + 1).value

    def effective_rate(self, reserve_in: int, reserve_out: int, scale: int) -> int:
        """Spot rate reserve_out / reserve_in as a fixed-point integer (no fee).

        Raises:
            DivisionByZero: If reserve_in is zero
        """
        return (S(reserve_out) * scale // reserve_in).value


# Singleton instance
constant_product = ConstantProduct()
