"""Shared fixtures for trade_journal tests."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from trade_journal.models.trade import Trade, TradeOutcome, TradePartial, TradeType
from trade_journal.planned_value_cache import PlannedValueCache
from trade_journal.state_machine import TradeStateMachine


def make_trade(**overrides) -> Trade:
    defaults = {
        "id": "t-1",
        "account_id": "acc-1",
        "symbol": "EURUSD",
        "type": TradeType.LONG,
        "entry_price": 1.1000,
        "stop_loss": 1.0950,
        "take_profit": 1.1100,
        "quantity": 1.0,
        "fees": 0.0,
        "outcome": TradeOutcome.OPEN,
    }
    defaults.update(overrides)
    return Trade(**defaults)


def make_partial(pnl: float, quantity: float = 0.5, price: float | None = None) -> TradePartial:
    return TradePartial(quantity=quantity, pnl=pnl, price=price)


@pytest.fixture
def open_trade() -> Trade:
    return make_trade()


@pytest.fixture
def fx_provider():
    return AsyncMock(return_value=0.0067)


@pytest.fixture
def planned_cache(fx_provider) -> PlannedValueCache:
    return PlannedValueCache(fx_provider)


@pytest.fixture
def state_machine(planned_cache) -> TradeStateMachine:
    return TradeStateMachine(planned_cache=planned_cache)


@pytest.fixture
def trade_factory():
    return make_trade


@pytest.fixture
def partial_factory():
    return make_partial
