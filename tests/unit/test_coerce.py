"""Unit tests for lenient numeric coercion."""

from __future__ import annotations

from decimal import Decimal

import pytest

from trade_journal.coerce import to_number, to_number_or_zero
from trade_journal.models.trade import Trade


@pytest.mark.parametrize(
    "value,expected",
    [
        (1, 1.0),
        (2.5, 2.5),
        (Decimal("95.00"), 95.0),
        (" 1.1050 ", 1.105),
        ("-3", -3.0),
    ],
)
def test_numeric_values(value, expected):
    assert to_number(value) == expected


@pytest.mark.parametrize(
    "value", [None, "", "   ", "abc", "1.2.3", float("nan"), float("inf"), True, [1], {}]
)
def test_absent_values(value):
    assert to_number(value) is None
    assert to_number_or_zero(value) == 0.0


def test_trade_fields_never_raise_on_bad_numbers():
    trade = Trade(entry_price="n/a", quantity="", fees=None, main_pnl="12.5")
    assert trade.entry_price is None
    assert trade.quantity == 0.0
    assert trade.fees == 0.0
    assert trade.main_pnl == 12.5
