"""Access control for administrative operations."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from exchange.models.types import normalize_address


@runtime_checkable
class AccessControl(Protocol):
    """Protocol for the external access control collaborator."""

    def is_owner(self, caller: str) -> bool:
        """True if caller may perform administrative operations."""
        ...


class OwnerAccessControl:
    """Single-owner access control.

    With owner=None nobody is the owner and every admin call is refused.
    """

    def __init__(self, owner: str | None) -> None:
        self.owner = normalize_address(owner, validate=True) if owner else None

    def is_owner(self, caller: str) -> bool:
        return self.owner is not None and normalize_address(caller) == self.owner
