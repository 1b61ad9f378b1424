"""Tests for StaticPriceFeed."""

import pytest

from exchange.oracle import PriceFeed, StaticPriceFeed


def test_reports_initial_quote():
    feed = StaticPriceFeed(41_000_000, timestamp=100)
    quote = feed.latest_quote()
    assert (quote.price, quote.decimals, quote.timestamp) == (41_000_000, 8, 100)
    assert feed.decimals() == 8


def test_update_replaces_quote():
    feed = StaticPriceFeed(41_000_000, decimals=6, timestamp=100)
    feed.update(42_000_000, timestamp=200)
    quote = feed.latest_quote()
    assert (quote.price, quote.decimals, quote.timestamp) == (42_000_000, 6, 200)


def test_default_timestamp_is_now(monkeypatch):
    monkeypatch.setattr("exchange.oracle.feeds.time.time", lambda: 1_700_000_000.5)
    assert StaticPriceFeed(1).latest_quote().timestamp == 1_700_000_000


def test_negative_decimals_rejected():
    with pytest.raises(ValueError):
        StaticPriceFeed(1, decimals=-1)


def test_satisfies_protocol():
    assert isinstance(StaticPriceFeed(1), PriceFeed)
