"""Pytest configuration and fixtures."""

import pytest

from exchange.access import OwnerAccessControl
from exchange.config import ExchangeConfig
from exchange.engine import Exchange
from exchange.ledger import InMemoryLedger
from exchange.oracle import PriceOracle
from tests.helpers import E18, OWNER, make_exchange, make_pool


@pytest.fixture
def funded_exchange() -> tuple[Exchange, InMemoryLedger]:
    """Empty exchange with ALICE and BOB funded."""
    return make_exchange()


@pytest.fixture
def exchange(funded_exchange: tuple[Exchange, InMemoryLedger]) -> Exchange:
    """Empty exchange with ALICE and BOB funded."""
    return funded_exchange[0]


@pytest.fixture
def pool() -> tuple[Exchange, InMemoryLedger]:
    """Exchange with a 10,000 TOKEN / 5 BASE pair created by ALICE."""
    return make_pool(10_000 * E18, 5 * E18)


@pytest.fixture
def oracle() -> PriceOracle:
    """Price oracle administered by OWNER, with no feeds bound."""
    return PriceOracle(OwnerAccessControl(OWNER), config=ExchangeConfig(owner=OWNER))
