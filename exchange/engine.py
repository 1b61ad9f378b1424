"""Constant product exchange engine.

Exchange owns the reserve and share state of one market (a PairRegistry)
and runs every operation against it as an indivisible transaction:

1. Validate arguments and compute the outcome from current reserves
2. Pull inbound assets from the caller
3. Commit reserve and share bookkeeping
4. Push outbound assets to the caller

Steps 2-4 run under the pair's lock. If any transfer fails the pair is
restored from a snapshot and completed transfers are reversed, so callers
only ever observe the full effect or none of it.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import structlog

from exchange.amm.constant_product import ConstantProduct, constant_product
from exchange.config import DEFAULT_EXCHANGE_CONFIG, ExchangeConfig
from exchange.errors import (
    ExchangeBusy,
    InsufficientLiquidity,
    InvalidArgument,
    PairAlreadyExists,
    PairNotFound,
    ReentrantCall,
    SlippageExceeded,
    TransferFailed,
)
from exchange.events import EventKind, EventLog, ExchangeEvent
from exchange.ledger import AssetLedger
from exchange.log import short
from exchange.models.types import UINT256_MAX, is_valid_address, is_zero_address, normalize_address
from exchange.pairs.liquidity import (
    LiquidityDeposit,
    LiquidityWithdrawal,
    burn_shares,
    initial_shares,
    match_deposit,
)
from exchange.pairs.registry import Pair, PairRegistry, PairSnapshot
from exchange.safe_int import S, SafeIntError, Uint256Overflow

logger = structlog.get_logger()


@dataclass(frozen=True)
class SwapResult:
    """Result of an executed swap."""

    asset: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int


class _Settlement:
    """Transfers made on behalf of one operation, reversible as a unit."""

    def __init__(self, ledger: AssetLedger, holder: str, caller: str) -> None:
        self._ledger = ledger
        self._holder = holder
        self._caller = caller
        self._done: list[tuple[str, str, str, int]] = []

    def pull(self, asset: str, amount: int) -> None:
        self._move(asset, self._caller, self._holder, amount)

    def push(self, asset: str, amount: int) -> None:
        self._move(asset, self._holder, self._caller, amount)

    def _move(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        if amount == 0:
            return
        if not self._ledger.transfer(asset, sender, recipient, amount):
            raise TransferFailed(
                f"Transfer of {amount} {asset} from {sender} to {recipient} failed"
            )
        self._done.append((asset, sender, recipient, amount))

    def unwind(self) -> None:
        """Reverse completed transfers, newest first."""
        while self._done:
            asset, sender, recipient, amount = self._done.pop()
            if not self._ledger.transfer(asset, recipient, sender, amount):
                logger.error(
                    "settlement_unwind_failed",
                    asset=short(asset),
                    sender=short(sender),
                    recipient=short(recipient),
                    amount=amount,
                )


class Exchange:
    """Constant product exchange of many assets against one settlement asset.

    Each instance is an independent market with its own registry and locks.
    Only the event log may be shared, with the PriceOracle of the same
    service.

    Args:
        ledger: Asset transfer ledger used to move funds
        config: Fee, scale and locking parameters
        registry: Existing pair state (a fresh registry if None)
        amm: Pricing math (the module singleton if None)
        event_log: Where committed operations are recorded (a private
            log of config.event_log_size entries if None)
    """

    def __init__(
        self,
        ledger: AssetLedger,
        config: ExchangeConfig = DEFAULT_EXCHANGE_CONFIG,
        registry: PairRegistry | None = None,
        amm: ConstantProduct | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self.config = config
        self._ledger = ledger
        self._registry = registry if registry is not None else PairRegistry()
        self._amm = amm or constant_product
        self._holder = normalize_address(config.exchange_address)
        self._base = normalize_address(config.native_asset)
        self._events = event_log if event_log is not None else EventLog(config.event_log_size)
        # Locks exist only for registered pairs; creation is serialised separately
        self._pair_locks: dict[str, threading.Lock] = {}
        self._pair_locks_guard = threading.Lock()
        self._create_lock = threading.RLock()
        self._local = threading.local()

    @property
    def registry(self) -> PairRegistry:
        return self._registry

    @property
    def base_asset(self) -> str:
        """Ledger identifier of the settlement asset."""
        return self._base

    @property
    def event_log(self) -> EventLog:
        return self._events

    @property
    def events(self) -> list[ExchangeEvent]:
        """Most recent committed operations, oldest first."""
        return self._events.snapshot()

    # --- Locking ---

    def _active_pairs(self) -> set[str]:
        active = getattr(self._local, "active", None)
        if active is None:
            active = set()
            self._local.active = active
        return active

    def _lock_for(self, key: str) -> threading.Lock:
        """Lock of a registered pair.

        Raises:
            PairNotFound: If no pair exists for key
        """
        with self._pair_locks_guard:
            lock = self._pair_locks.get(key)
            if lock is None:
                if key not in self._registry:
                    raise PairNotFound(f"No pair for asset {key}")
                lock = threading.Lock()
                self._pair_locks[key] = lock
            return lock

    @contextmanager
    def _pair_operation(self, key: str, *, creating: bool = False) -> Iterator[None]:
        """Hold the pair's lock for a mutating operation.

        With creating=True the registry-wide creation lock is held instead,
        since the pair has no lock of its own yet.

        Raises:
            ReentrantCall: If this thread is already mutating the pair
            PairNotFound: If the pair does not exist (and is not being created)
            ExchangeBusy: If the lock is not acquired within the timeout
        """
        active = self._active_pairs()
        if key in active:
            logger.warning("reentrant_call_blocked", asset=short(key))
            raise ReentrantCall(f"Pair {key} is already being modified")

        lock = self._create_lock if creating else self._lock_for(key)
        if not lock.acquire(timeout=self.config.lock_timeout_seconds):
            raise ExchangeBusy(f"Timed out waiting for pair {key}")
        active.add(key)
        try:
            yield
        finally:
            active.discard(key)
            lock.release()

    @contextmanager
    def _pair_read(self, key: str) -> Iterator[None]:
        """Hold the pair's lock for a consistent read.

        Reads from inside an operation on the same pair (a transfer hook)
        see the state the operation has committed so far.

        Raises:
            PairNotFound: If the pair does not exist
        """
        if key in self._active_pairs():
            yield
            return
        lock = self._lock_for(key)
        if not lock.acquire(timeout=self.config.lock_timeout_seconds):
            raise ExchangeBusy(f"Timed out waiting for pair {key}")
        try:
            yield
        finally:
            lock.release()

    # --- Validation ---

    def _require_address(self, name: str, value: str) -> str:
        if not isinstance(value, str) or not is_valid_address(normalize_address(value)):
            raise InvalidArgument(f"Invalid {name} address: {value!r}")
        address = normalize_address(value)
        if is_zero_address(address):
            raise InvalidArgument(f"{name} cannot be the zero address")
        return address

    def _require_asset(self, asset: str) -> str:
        key = self._require_address("asset", asset)
        if key == self._base:
            raise InvalidArgument("The settlement asset cannot be paired with itself")
        return key

    @staticmethod
    def _require_amount(name: str, amount: int, *, allow_zero: bool = False) -> int:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise InvalidArgument(f"{name} must be an integer, got {type(amount).__name__}")
        if amount < 0 or (amount == 0 and not allow_zero):
            raise InvalidArgument(f"{name} must be positive, got {amount}")
        if amount > UINT256_MAX:
            raise InvalidArgument(f"{name} exceeds uint256: {amount}")
        return amount

    @staticmethod
    def _require_funded(pair: Pair) -> None:
        if not pair.is_funded:
            raise InsufficientLiquidity(f"Pair {pair.asset} has empty reserves")

    # --- Settlement ---

    def _settle(
        self,
        snapshot: PairSnapshot,
        caller: str,
        pulls: list[tuple[str, int]],
        commit: Callable[[], None],
        pushes: list[tuple[str, int]],
    ) -> None:
        settlement = _Settlement(self._ledger, self._holder, caller)
        try:
            for asset, amount in pulls:
                settlement.pull(asset, amount)
            commit()
            for asset, amount in pushes:
                settlement.push(asset, amount)
        except Exception as err:
            self._registry.restore(snapshot)
            settlement.unwind()
            logger.warning(
                "settlement_rolled_back",
                asset=short(snapshot.asset),
                caller=short(caller),
                error=type(err).__name__,
            )
            raise

    def _record(self, kind: EventKind, asset: str, caller: str, **amounts: int) -> None:
        self._events.record(kind, asset, caller, **amounts)

    # --- Pair lifecycle and liquidity ---

    def create_pair(
        self,
        caller: str,
        asset: str,
        initial_asset_amount: int,
        initial_base_amount: int,
    ) -> LiquidityDeposit:
        """Create the pair for asset and seed it with the caller's liquidity.

        The caller receives initial_asset_amount shares.

        Raises:
            InvalidArgument: Bad address or non-positive amount
            PairAlreadyExists: The asset already has a pair
            TransferFailed: The caller could not fund the deposit
        """
        caller = self._require_address("caller", caller)
        key = self._require_asset(asset)
        self._require_amount("initial_asset_amount", initial_asset_amount)
        self._require_amount("initial_base_amount", initial_base_amount)
        shares = initial_shares(initial_asset_amount, initial_base_amount)

        with self._pair_operation(key, creating=True):
            if key in self._registry:
                raise PairAlreadyExists(f"Pair already exists for asset {key}")
            snapshot = self._registry.snapshot(key)

            def commit() -> None:
                self._registry.add(
                    Pair(
                        asset=key,
                        asset_reserve=initial_asset_amount,
                        base_reserve=initial_base_amount,
                    )
                )
                self._registry.mint(key, caller, shares)

            self._settle(
                snapshot,
                caller,
                pulls=[(key, initial_asset_amount), (self._base, initial_base_amount)],
                commit=commit,
                pushes=[],
            )

        logger.info(
            "pair_created",
            asset=short(key),
            caller=short(caller),
            asset_reserve=initial_asset_amount,
            base_reserve=initial_base_amount,
            shares=shares,
        )
        self._record(
            EventKind.PAIR_CREATED,
            key,
            caller,
            asset_amount=initial_asset_amount,
            base_amount=initial_base_amount,
            shares=shares,
        )
        return LiquidityDeposit(
            asset_used=initial_asset_amount,
            base_used=initial_base_amount,
            asset_refund=0,
            base_refund=0,
            shares_minted=shares,
        )

    def add_liquidity(
        self,
        caller: str,
        asset: str,
        asset_amount: int,
        base_amount_offered: int,
    ) -> LiquidityDeposit:
        """Deposit both sides at the current reserve ratio.

        Only the ratio-matching amounts are pulled from the caller; the
        refund fields of the result report what was left untouched.

        Raises:
            InvalidArgument: Bad address, non-positive amount, or a deposit
                too small to mint a share
            PairNotFound: No pair for asset
            InsufficientLiquidity: The pair has shares but an empty reserve
            TransferFailed: The caller could not fund the deposit
        """
        caller = self._require_address("caller", caller)
        key = self._require_asset(asset)
        self._require_amount("asset_amount", asset_amount)
        self._require_amount("base_amount_offered", base_amount_offered)

        with self._pair_operation(key):
            pair = self._registry.require(key)
            if pair.total_shares > 0:
                self._require_funded(pair)

            try:
                deposit = match_deposit(
                    asset_reserve=pair.asset_reserve,
                    base_reserve=pair.base_reserve,
                    total_shares=pair.total_shares,
                    asset_amount=asset_amount,
                    base_offered=base_amount_offered,
                )
                new_asset_reserve = (S(pair.asset_reserve) + deposit.asset_used).to_uint256()
                new_base_reserve = (S(pair.base_reserve) + deposit.base_used).to_uint256()
                (S(pair.total_shares) + deposit.shares_minted).to_uint256()
            except Uint256Overflow as err:
                raise InvalidArgument(f"Deposit overflows pair {key}: {err}") from err
            except SafeIntError as err:
                raise InsufficientLiquidity(f"Pair {key} cannot price a deposit: {err}") from err

            if deposit.shares_minted == 0 or deposit.asset_used == 0 or deposit.base_used == 0:
                raise InvalidArgument(
                    f"Deposit of {asset_amount} asset / {base_amount_offered} base "
                    "is too small to mint shares"
                )

            snapshot = self._registry.snapshot(key)

            def commit() -> None:
                pair.asset_reserve = new_asset_reserve
                pair.base_reserve = new_base_reserve
                self._registry.mint(key, caller, deposit.shares_minted)

            self._settle(
                snapshot,
                caller,
                pulls=[(key, deposit.asset_used), (self._base, deposit.base_used)],
                commit=commit,
                pushes=[],
            )

        logger.info(
            "liquidity_added",
            asset=short(key),
            caller=short(caller),
            asset_used=deposit.asset_used,
            base_used=deposit.base_used,
            base_refund=deposit.base_refund,
            shares=deposit.shares_minted,
        )
        self._record(
            EventKind.LIQUIDITY_ADDED,
            key,
            caller,
            asset_amount=deposit.asset_used,
            base_amount=deposit.base_used,
            shares=deposit.shares_minted,
        )
        return deposit

    def remove_liquidity(self, caller: str, asset: str, share_amount: int) -> LiquidityWithdrawal:
        """Burn shares and pay out the proportional part of both reserves.

        Raises:
            InvalidArgument: Bad address or non-positive share amount
            PairNotFound: No pair for asset
            InsufficientLiquidity: Caller holds too few shares, the pair has
                no supply, or the payout rounds to nothing
            TransferFailed: A payout transfer failed
        """
        caller = self._require_address("caller", caller)
        key = self._require_asset(asset)
        self._require_amount("share_amount", share_amount)

        with self._pair_operation(key):
            pair = self._registry.require(key)
            balance = self._registry.shares_of(key, caller)
            if balance < share_amount:
                raise InsufficientLiquidity(
                    f"Caller holds {balance} shares of {key}, cannot remove {share_amount}"
                )
            if pair.total_shares == 0:
                raise InsufficientLiquidity(f"Pair {key} has no share supply")

            withdrawal = burn_shares(
                asset_reserve=pair.asset_reserve,
                base_reserve=pair.base_reserve,
                total_shares=pair.total_shares,
                share_amount=share_amount,
            )
            if withdrawal.asset_out == 0 and withdrawal.base_out == 0:
                raise InsufficientLiquidity(f"Burning {share_amount} shares pays out nothing")

            snapshot = self._registry.snapshot(key)

            def commit() -> None:
                pair.asset_reserve -= withdrawal.asset_out
                pair.base_reserve -= withdrawal.base_out
                self._registry.burn(key, caller, share_amount)

            self._settle(
                snapshot,
                caller,
                pulls=[],
                commit=commit,
                pushes=[(key, withdrawal.asset_out), (self._base, withdrawal.base_out)],
            )

        logger.info(
            "liquidity_removed",
            asset=short(key),
            caller=short(caller),
            shares=share_amount,
            asset_out=withdrawal.asset_out,
            base_out=withdrawal.base_out,
        )
        self._record(
            EventKind.LIQUIDITY_REMOVED,
            key,
            caller,
            shares=share_amount,
            asset_amount=withdrawal.asset_out,
            base_amount=withdrawal.base_out,
        )
        return withdrawal

    # --- Swaps ---

    def swap_base_for_asset(
        self, caller: str, asset: str, base_in: int, min_asset_out: int
    ) -> SwapResult:
        """Sell exactly base_in of the settlement asset for the paired asset.

        Raises:
            SlippageExceeded: Output would be below min_asset_out
        """
        return self._swap(caller, asset, base_in, min_asset_out, base_to_asset=True)

    def swap_asset_for_base(
        self, caller: str, asset: str, asset_in: int, min_base_out: int
    ) -> SwapResult:
        """Sell exactly asset_in of the paired asset for the settlement asset.

        Raises:
            SlippageExceeded: Output would be below min_base_out
        """
        return self._swap(caller, asset, asset_in, min_base_out, base_to_asset=False)

    def _swap(
        self,
        caller: str,
        asset: str,
        amount_in: int,
        min_amount_out: int,
        *,
        base_to_asset: bool,
    ) -> SwapResult:
        caller = self._require_address("caller", caller)
        key = self._require_asset(asset)
        self._require_amount("amount_in", amount_in)
        self._require_amount("min_amount_out", min_amount_out, allow_zero=True)
        token_in, token_out = (self._base, key) if base_to_asset else (key, self._base)

        with self._pair_operation(key):
            pair = self._registry.require(key)
            self._require_funded(pair)
            if base_to_asset:
                reserve_in, reserve_out = pair.base_reserve, pair.asset_reserve
            else:
                reserve_in, reserve_out = pair.asset_reserve, pair.base_reserve

            amount_out = self._amount_out(amount_in, reserve_in, reserve_out)
            if amount_out < min_amount_out:
                logger.info(
                    "swap_rejected_slippage",
                    asset=short(key),
                    token_in=short(token_in),
                    amount_in=amount_in,
                    amount_out=amount_out,
                    min_amount_out=min_amount_out,
                )
                raise SlippageExceeded(amount_out, min_amount_out)

            try:
                new_reserve_in = (S(reserve_in) + amount_in).to_uint256()
            except Uint256Overflow as err:
                raise InvalidArgument(f"Swap overflows pair {key}: {err}") from err
            new_reserve_out = (S(reserve_out) - amount_out).value

            snapshot = self._registry.snapshot(key)

            def commit() -> None:
                if base_to_asset:
                    pair.base_reserve, pair.asset_reserve = new_reserve_in, new_reserve_out
                else:
                    pair.asset_reserve, pair.base_reserve = new_reserve_in, new_reserve_out

            self._settle(
                snapshot,
                caller,
                pulls=[(token_in, amount_in)],
                commit=commit,
                pushes=[(token_out, amount_out)],
            )

        logger.info(
            "swap_executed",
            asset=short(key),
            caller=short(caller),
            token_in=short(token_in),
            amount_in=amount_in,
            amount_out=amount_out,
        )
        self._record(
            EventKind.SWAP,
            key,
            caller,
            amount_in=amount_in,
            amount_out=amount_out,
            base_to_asset=int(base_to_asset),
        )
        return SwapResult(
            asset=key,
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
        )

    def _amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        return self._amm.get_amount_out(
            amount_in,
            reserve_in,
            reserve_out,
            self.config.fee_numerator,
            self.config.fee_denominator,
        )

    # --- Quotes ---

    def get_asset_out_for_base(self, asset: str, base_in: int) -> int:
        """Asset a swap of base_in would pay out right now."""
        return self._quote_out(asset, base_in, base_to_asset=True)

    def get_base_out_for_asset(self, asset: str, asset_in: int) -> int:
        """Base a swap of asset_in would pay out right now."""
        return self._quote_out(asset, asset_in, base_to_asset=False)

    def _quote_out(self, asset: str, amount_in: int, *, base_to_asset: bool) -> int:
        key = self._require_asset(asset)
        self._require_amount("amount_in", amount_in, allow_zero=True)
        with self._pair_read(key):
            pair = self._registry.require(key)
            self._require_funded(pair)
            if base_to_asset:
                return self._amount_out(amount_in, pair.base_reserve, pair.asset_reserve)
            return self._amount_out(amount_in, pair.asset_reserve, pair.base_reserve)

    def get_base_in_for_asset_out(self, asset: str, asset_out: int) -> int:
        """Smallest base input that buys at least asset_out.

        Returns UINT256_MAX if asset_out would drain the reserve.
        """
        return self._quote_in(asset, asset_out, base_to_asset=True)

    def get_asset_in_for_base_out(self, asset: str, base_out: int) -> int:
        """Smallest asset input that buys at least base_out."""
        return self._quote_in(asset, base_out, base_to_asset=False)

    def _quote_in(self, asset: str, amount_out: int, *, base_to_asset: bool) -> int:
        key = self._require_asset(asset)
        self._require_amount("amount_out", amount_out, allow_zero=True)
        with self._pair_read(key):
            pair = self._registry.require(key)
            self._require_funded(pair)
            if base_to_asset:
                reserve_in, reserve_out = pair.base_reserve, pair.asset_reserve
            else:
                reserve_in, reserve_out = pair.asset_reserve, pair.base_reserve
            return self._amm.get_amount_in(
                amount_out,
                reserve_in,
                reserve_out,
                self.config.fee_numerator,
                self.config.fee_denominator,
            )

    # --- Reads ---

    def get_liquidity(self, asset: str) -> tuple[int, int]:
        """Current (asset_reserve, base_reserve) of the pair."""
        key = self._require_asset(asset)
        with self._pair_read(key):
            pair = self._registry.require(key)
            return pair.asset_reserve, pair.base_reserve

    def get_exchange_rate(self, asset: str) -> int:
        """Asset units per base unit, scaled by config.rate_scale and truncated.

        Raises:
            InsufficientLiquidity: If the base reserve is empty
        """
        key = self._require_asset(asset)
        with self._pair_read(key):
            pair = self._registry.require(key)
            if pair.base_reserve == 0:
                raise InsufficientLiquidity(f"Pair {key} has an empty base reserve")
            return self._amm.effective_rate(
                pair.base_reserve, pair.asset_reserve, self.config.rate_scale
            )

    def get_shares(self, asset: str, provider: str) -> int:
        """Share balance of provider in the asset's pair."""
        key = self._require_asset(asset)
        provider = self._require_address("provider", provider)
        with self._pair_read(key):
            self._registry.require(key)
            return self._registry.shares_of(key, provider)

    def get_total_shares(self, asset: str) -> int:
        """Total share supply of the asset's pair."""
        key = self._require_asset(asset)
        with self._pair_read(key):
            return self._registry.require(key).total_shares

    def get_pair(self, asset: str) -> Pair:
        """Copy of the pair's current state."""
        key = self._require_asset(asset)
        with self._pair_read(key):
            return Pair(**vars(self._registry.require(key)))

    def get_pair_view(self, asset: str) -> tuple[Pair, int | None]:
        """Copy of the pair and its exchange rate, read under one lock.

        The rate is None while the base reserve is empty.
        """
        key = self._require_asset(asset)
        with self._pair_read(key):
            pair = Pair(**vars(self._registry.require(key)))
            if pair.base_reserve == 0:
                return pair, None
            rate = self._amm.effective_rate(
                pair.base_reserve, pair.asset_reserve, self.config.rate_scale
            )
            return pair, rate

    def list_pairs(self) -> list[Pair]:
        """Copies of all active pairs."""
        return [Pair(**vars(pair)) for pair in self._registry.pairs() if pair.exists]
