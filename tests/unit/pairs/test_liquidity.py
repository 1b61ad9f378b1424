"""Tests for liquidity share math."""

import pytest

from exchange.pairs.liquidity import burn_shares, initial_shares, match_deposit
from exchange.safe_int import DivisionByZero

E18 = 10**18


class TestInitialShares:
    def test_mints_asset_amount(self):
        assert initial_shares(10_000 * E18, 5 * E18) == 10_000 * E18

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            initial_shares(0, 5)
        with pytest.raises(ValueError):
            initial_shares(5, 0)


class TestMatchDeposit:
    """Tests for ratio matching against a 10,000 / 5 pool."""

    def _match(self, asset_amount: int, base_offered: int):
        return match_deposit(
            asset_reserve=10_000 * E18,
            base_reserve=5 * E18,
            total_shares=10_000 * E18,
            asset_amount=asset_amount,
            base_offered=base_offered,
        )

    def test_excess_base_is_refunded(self):
        deposit = self._match(1_000 * E18, E18)

        assert deposit.asset_used == 1_000 * E18
        assert deposit.base_used == E18 // 2
        assert deposit.base_refund == E18 // 2
        assert deposit.asset_refund == 0
        assert deposit.shares_minted == 1_000 * E18

    def test_short_base_shrinks_asset(self):
        deposit = self._match(1_000 * E18, E18 // 5)

        assert deposit.base_used == E18 // 5
        assert deposit.asset_used == 400 * E18
        assert deposit.asset_refund == 600 * E18
        assert deposit.base_refund == 0
        assert deposit.shares_minted == 400 * E18

    def test_exact_ratio(self):
        deposit = self._match(2_000 * E18, E18)
        assert deposit.base_used == E18
        assert deposit.base_refund == 0
        assert deposit.asset_refund == 0

    def test_dust_rounds_down(self):
        """One unit of asset needs zero base at this ratio."""
        deposit = self._match(1, 1)
        assert deposit.base_used == 0
        assert deposit.shares_minted == 1

    def test_reseed_after_full_burn(self):
        deposit = match_deposit(
            asset_reserve=0,
            base_reserve=0,
            total_shares=0,
            asset_amount=300,
            base_offered=7,
        )
        assert deposit.asset_used == 300
        assert deposit.base_used == 7
        assert deposit.shares_minted == 300

    def test_empty_reserve_with_supply_raises(self):
        with pytest.raises(DivisionByZero):
            match_deposit(
                asset_reserve=0,
                base_reserve=5,
                total_shares=10,
                asset_amount=1,
                base_offered=1,
            )

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            self._match(0, E18)


class TestBurnShares:
    def test_half_supply_returns_half(self):
        withdrawal = burn_shares(
            asset_reserve=10_000 * E18,
            base_reserve=5 * E18,
            total_shares=10_000 * E18,
            share_amount=5_000 * E18,
        )
        assert withdrawal.asset_out == 5_000 * E18
        assert withdrawal.base_out == 5 * E18 // 2

    def test_rounds_down(self):
        withdrawal = burn_shares(asset_reserve=10, base_reserve=7, total_shares=3, share_amount=1)
        assert withdrawal.asset_out == 3
        assert withdrawal.base_out == 2

    def test_full_supply_returns_everything(self):
        withdrawal = burn_shares(asset_reserve=10, base_reserve=7, total_shares=3, share_amount=3)
        assert (withdrawal.asset_out, withdrawal.base_out) == (10, 7)

    def test_rejects_more_than_supply(self):
        with pytest.raises(ValueError):
            burn_shares(asset_reserve=10, base_reserve=7, total_shares=3, share_amount=4)

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            burn_shares(asset_reserve=10, base_reserve=7, total_shares=3, share_amount=0)
