"""Pair registry: reserve state and liquidity positions for every pair.

The registry is plain state. It does not lock, transfer or price anything;
the engine owns one registry per market and serialises access to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from exchange.errors import PairAlreadyExists, PairNotFound
from exchange.log import short
from exchange.models.types import normalize_address

logger = structlog.get_logger()


@dataclass
class Pair:
    """One tradable market: a fungible asset against the settlement asset."""

    asset: str
    asset_reserve: int
    base_reserve: int
    total_shares: int = 0
    exists: bool = True

    @property
    def is_funded(self) -> bool:
        """True if both reserves are non-empty."""
        return self.asset_reserve > 0 and self.base_reserve > 0


@dataclass(frozen=True)
class PairSnapshot:
    """Copy of a pair and its positions, used to roll back a failed operation."""

    asset: str
    pair: Pair | None
    positions: dict[str, int] = field(default_factory=dict)


class PairRegistry:
    """Registry of pairs keyed by normalized asset address.

    Liquidity positions are kept per pair as provider -> share balance.
    A position that drops to zero stays in the map.
    """

    def __init__(self) -> None:
        self._pairs: dict[str, Pair] = {}
        self._positions: dict[str, dict[str, int]] = {}

    def __contains__(self, asset: str) -> bool:
        return normalize_address(asset) in self._pairs

    @property
    def pair_count(self) -> int:
        """Number of pairs ever created."""
        return len(self._pairs)

    def get(self, asset: str) -> Pair | None:
        """Get the pair for an asset, or None if it was never created."""
        return self._pairs.get(normalize_address(asset))

    def require(self, asset: str) -> Pair:
        """Get the pair for an asset.

        Raises:
            PairNotFound: If no pair exists for the asset
        """
        pair = self.get(asset)
        if pair is None or not pair.exists:
            raise PairNotFound(f"No pair for asset {asset}")
        return pair

    def add(self, pair: Pair) -> None:
        """Register a new pair.

        Raises:
            PairAlreadyExists: If the asset already has a pair
        """
        key = normalize_address(pair.asset)
        if key in self._pairs:
            raise PairAlreadyExists(f"Pair already exists for asset {pair.asset}")
        pair.asset = key
        self._pairs[key] = pair
        self._positions[key] = {}
        logger.debug("pair_registered", asset=short(key))

    def pairs(self) -> list[Pair]:
        """All pairs in creation order."""
        return list(self._pairs.values())

    # --- Positions ---

    def shares_of(self, asset: str, provider: str) -> int:
        """Share balance of provider in the asset's pair (0 if none)."""
        positions = self._positions.get(normalize_address(asset), {})
        return positions.get(normalize_address(provider), 0)

    def positions(self, asset: str) -> dict[str, int]:
        """Copy of all provider balances for a pair."""
        return dict(self._positions.get(normalize_address(asset), {}))

    def mint(self, asset: str, provider: str, shares: int) -> None:
        """Credit shares to provider and grow the pair's supply."""
        pair = self.require(asset)
        positions = self._positions[pair.asset]
        provider_key = normalize_address(provider)
        positions[provider_key] = positions.get(provider_key, 0) + shares
        pair.total_shares += shares

    def burn(self, asset: str, provider: str, shares: int) -> None:
        """Debit shares from provider and shrink the pair's supply.

        Raises:
            ValueError: If provider holds fewer than shares
        """
        pair = self.require(asset)
        positions = self._positions[pair.asset]
        provider_key = normalize_address(provider)
        balance = positions.get(provider_key, 0)
        if balance < shares:
            raise ValueError(f"Provider holds {balance} shares, cannot burn {shares}")
        positions[provider_key] = balance - shares
        pair.total_shares -= shares

    # --- Rollback ---

    def snapshot(self, asset: str) -> PairSnapshot:
        """Capture the pair (or its absence) and its positions."""
        key = normalize_address(asset)
        pair = self._pairs.get(key)
        return PairSnapshot(
            asset=key,
            pair=Pair(**vars(pair)) if pair is not None else None,
            positions=dict(self._positions.get(key, {})),
        )

    def restore(self, snapshot: PairSnapshot) -> None:
        """Put a pair back exactly as it was when snapshot was taken."""
        if snapshot.pair is None:
            self._pairs.pop(snapshot.asset, None)
            self._positions.pop(snapshot.asset, None)
        else:
            self._pairs[snapshot.asset] = Pair(**vars(snapshot.pair))
            self._positions[snapshot.asset] = dict(snapshot.positions)
        logger.debug("pair_restored", asset=short(snapshot.asset))
