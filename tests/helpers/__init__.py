"""Test helpers module for shared test utilities.

- constants: Asset/account addresses and common amounts
- factories: Funded exchange and pool factories
"""

from tests.helpers.constants import (
    ALICE,
    BASE,
    BOB,
    CAROL,
    E18,
    FUNDING,
    OTHER_TOKEN,
    OWNER,
    TOKEN,
)
from tests.helpers.factories import fund, make_exchange, make_pool

__all__ = [
    # Constants
    "TOKEN",
    "OTHER_TOKEN",
    "BASE",
    "ALICE",
    "BOB",
    "CAROL",
    "OWNER",
    "E18",
    "FUNDING",
    # Factories
    "fund",
    "make_exchange",
    "make_pool",
]
