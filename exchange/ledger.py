"""Asset transfer ledger interface and an in-memory implementation.

The exchange never keeps balances itself; it asks a ledger to move assets
between callers and its own holder address. Real deployments plug in a
token ledger; tests and the HTTP service use InMemoryLedger.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

import structlog

from exchange.log import short
from exchange.models.types import normalize_address

logger = structlog.get_logger()

# Called after every successful transfer: (asset, sender, recipient, amount)
TransferHook = Callable[[str, str, str, int], None]


@runtime_checkable
class AssetLedger(Protocol):
    """Protocol for the external asset transfer ledger.

    Transfers are atomic: they either move the full amount or nothing, and
    report failure by returning False.
    """

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> bool:
        """Move amount of asset from sender to recipient."""
        ...

    def balance_of(self, asset: str, holder: str) -> int:
        """Current balance of holder in asset."""
        ...


class InMemoryLedger:
    """Dictionary-backed ledger.

    Args:
        on_transfer: Optional hook invoked after each successful transfer,
            outside the ledger's own lock. Receiving contracts in a real
            ledger can run code at this point, so the hook is how tests
            exercise re-entrant callbacks.
    """

    def __init__(self, on_transfer: TransferHook | None = None) -> None:
        self._balances: dict[tuple[str, str], int] = {}
        self._lock = threading.Lock()
        self.on_transfer = on_transfer

    def mint(self, asset: str, holder: str, amount: int) -> None:
        """Credit holder with freshly created units (test and dev funding)."""
        if amount < 0:
            raise ValueError(f"Cannot mint negative amount: {amount}")
        key = (normalize_address(asset), normalize_address(holder))
        with self._lock:
            self._balances[key] = self._balances.get(key, 0) + amount

    def balance_of(self, asset: str, holder: str) -> int:
        key = (normalize_address(asset), normalize_address(holder))
        with self._lock:
            return self._balances.get(key, 0)

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0:
            return False
        asset_key = normalize_address(asset)
        sender_key = (asset_key, normalize_address(sender))
        recipient_key = (asset_key, normalize_address(recipient))
        with self._lock:
            balance = self._balances.get(sender_key, 0)
            if balance < amount:
                logger.debug(
                    "ledger_transfer_rejected",
                    asset=short(asset_key),
                    sender=short(sender_key[1]),
                    balance=balance,
                    amount=amount,
                )
                return False
            self._balances[sender_key] = balance - amount
            self._balances[recipient_key] = self._balances.get(recipient_key, 0) + amount

        if self.on_transfer is not None:
            try:
                self.on_transfer(asset_key, sender_key[1], recipient_key[1], amount)
            except Exception:
                # A failing hook fails the whole transfer
                with self._lock:
                    self._balances[recipient_key] -= amount
                    self._balances[sender_key] = self._balances.get(sender_key, 0) + amount
                raise
        return True
