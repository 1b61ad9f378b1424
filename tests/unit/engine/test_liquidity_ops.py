"""Tests for adding and removing liquidity."""

import pytest

from exchange.engine import EventKind
from exchange.errors import InsufficientLiquidity, InvalidArgument
from tests.helpers import ALICE, BASE, BOB, E18, FUNDING, TOKEN, make_pool


class TestAddLiquidity:
    """Tests for Exchange.add_liquidity on a 10,000 / 5 pool."""

    def test_excess_base_is_not_pulled(self, pool):
        exchange, ledger = pool

        deposit = exchange.add_liquidity(BOB, TOKEN, 1_000 * E18, E18)

        assert deposit.asset_used == 1_000 * E18
        assert deposit.base_used == E18 // 2
        assert deposit.base_refund == E18 // 2
        assert deposit.shares_minted == 1_000 * E18
        assert exchange.get_liquidity(TOKEN) == (11_000 * E18, 5 * E18 + E18 // 2)
        assert ledger.balance_of(BASE, BOB) == FUNDING - E18 // 2
        assert ledger.balance_of(TOKEN, BOB) == FUNDING - 1_000 * E18

    def test_short_base_binds(self, pool):
        exchange, ledger = pool

        deposit = exchange.add_liquidity(BOB, TOKEN, 1_000 * E18, E18 // 5)

        assert deposit.asset_used == 400 * E18
        assert deposit.asset_refund == 600 * E18
        assert deposit.shares_minted == 400 * E18
        assert ledger.balance_of(TOKEN, BOB) == FUNDING - 400 * E18

    def test_shares_credited(self, pool):
        exchange, _ = pool
        exchange.add_liquidity(BOB, TOKEN, 1_000 * E18, E18)

        assert exchange.get_shares(TOKEN, BOB) == 1_000 * E18
        assert exchange.get_total_shares(TOKEN) == 11_000 * E18

    def test_rate_unchanged(self, pool):
        exchange, _ = pool
        rate = exchange.get_exchange_rate(TOKEN)
        exchange.add_liquidity(BOB, TOKEN, 1_000 * E18, E18)
        assert exchange.get_exchange_rate(TOKEN) == rate

    def test_dust_deposit_rejected(self, pool):
        exchange, ledger = pool
        with pytest.raises(InvalidArgument):
            exchange.add_liquidity(BOB, TOKEN, 1, 1)
        assert exchange.get_liquidity(TOKEN) == (10_000 * E18, 5 * E18)
        assert ledger.balance_of(TOKEN, BOB) == FUNDING

    @pytest.mark.parametrize("asset_amount,base_amount", [(0, E18), (E18, 0), (-1, E18)])
    def test_non_positive_rejected(self, pool, asset_amount, base_amount):
        exchange, _ = pool
        with pytest.raises(InvalidArgument):
            exchange.add_liquidity(BOB, TOKEN, asset_amount, base_amount)

    def test_records_event(self, pool):
        exchange, _ = pool
        exchange.add_liquidity(BOB, TOKEN, 1_000 * E18, E18)
        event = exchange.events[-1]
        assert event.kind is EventKind.LIQUIDITY_ADDED
        assert event.amounts == {
            "asset_amount": 1_000 * E18,
            "base_amount": E18 // 2,
            "shares": 1_000 * E18,
        }


class TestRemoveLiquidity:
    """Tests for Exchange.remove_liquidity."""

    def test_remove_half(self, pool):
        exchange, ledger = pool

        withdrawal = exchange.remove_liquidity(ALICE, TOKEN, 5_000 * E18)

        assert withdrawal.asset_out == 5_000 * E18
        assert withdrawal.base_out == 5 * E18 // 2
        assert exchange.get_liquidity(TOKEN) == (5_000 * E18, 5 * E18 // 2)
        assert exchange.get_shares(TOKEN, ALICE) == 5_000 * E18
        assert exchange.get_total_shares(TOKEN) == 5_000 * E18
        assert ledger.balance_of(TOKEN, ALICE) == FUNDING - 5_000 * E18
        assert ledger.balance_of(BASE, ALICE) == FUNDING - 5 * E18 // 2

    def test_more_than_held(self, pool):
        exchange, _ = pool
        with pytest.raises(InsufficientLiquidity):
            exchange.remove_liquidity(BOB, TOKEN, 1)
        with pytest.raises(InsufficientLiquidity):
            exchange.remove_liquidity(ALICE, TOKEN, 10_000 * E18 + 1)
        assert exchange.get_total_shares(TOKEN) == 10_000 * E18

    def test_zero_shares_rejected(self, pool):
        exchange, _ = pool
        with pytest.raises(InvalidArgument):
            exchange.remove_liquidity(ALICE, TOKEN, 0)

    def test_payout_rounding_to_nothing(self):
        """One share of 1000 over reserves of (501, 2) pays nothing."""
        exchange, _ = make_pool(1000, 1)
        assert exchange.swap_base_for_asset(BOB, TOKEN, 1, 0).amount_out == 499
        assert exchange.get_liquidity(TOKEN) == (501, 2)

        with pytest.raises(InsufficientLiquidity):
            exchange.remove_liquidity(ALICE, TOKEN, 1)
        assert exchange.get_shares(TOKEN, ALICE) == 1000

    def test_remove_all_then_reseed(self, pool):
        exchange, _ = pool
        exchange.remove_liquidity(ALICE, TOKEN, 10_000 * E18)
        assert exchange.get_liquidity(TOKEN) == (0, 0)
        assert exchange.get_total_shares(TOKEN) == 0

        deposit = exchange.add_liquidity(BOB, TOKEN, 300 * E18, E18)

        assert deposit.shares_minted == 300 * E18
        assert deposit.base_used == E18
        assert exchange.get_liquidity(TOKEN) == (300 * E18, E18)
        assert exchange.get_exchange_rate(TOKEN) == 300 * E18

    def test_round_trip_never_profits(self, pool):
        exchange, _ = pool
        deposit = exchange.add_liquidity(BOB, TOKEN, 333 * E18 + 7, E18)

        withdrawal = exchange.remove_liquidity(BOB, TOKEN, deposit.shares_minted)

        assert withdrawal.asset_out <= deposit.asset_used
        assert withdrawal.base_out <= deposit.base_used

    def test_fees_accrue_to_providers(self, pool):
        exchange, _ = pool
        exchange.swap_base_for_asset(BOB, TOKEN, E18, 0)
        exchange.swap_asset_for_base(BOB, TOKEN, 2_000 * E18, 0)

        asset_reserve, base_reserve = exchange.get_liquidity(TOKEN)
        assert asset_reserve * base_reserve > 10_000 * E18 * 5 * E18

    def test_records_event(self, pool):
        exchange, _ = pool
        exchange.remove_liquidity(ALICE, TOKEN, 1_000 * E18)
        event = exchange.events[-1]
        assert event.kind is EventKind.LIQUIDITY_REMOVED
        assert event.amounts["shares"] == 1_000 * E18
