"""Unit tests for new-trade form metrics and position sizing."""

from __future__ import annotations

import pytest

from trade_journal.models.trade import TradeType
from trade_journal.trade_metrics import (
    calculate_quantity,
    calculate_risk_percentage,
    compute_trade_metrics,
)


class TestComputeTradeMetrics:
    def test_long_limit_order(self):
        m = compute_trade_metrics(
            "EURUSD", 1.1, take_profit=1.11, stop_loss=1.095, quantity=1, leverage=100,
            current_price=1.105,
        )
        assert m.direction == TradeType.LONG
        assert m.order_type_label == "Buy Limit"
        assert m.risk_quote == pytest.approx(500.0)
        assert m.risk_usd == pytest.approx(500.0)
        assert m.reward_quote == pytest.approx(1000.0)
        assert m.rr == pytest.approx(2.0)
        assert m.margin_quote == pytest.approx(1100.0)
        assert m.sl_pips == pytest.approx(50.0)
        assert m.tp_pips == pytest.approx(100.0)
        assert m.is_valid

    def test_long_stop_order(self):
        m = compute_trade_metrics("EURUSD", 1.1, 1.11, 1.095, current_price=1.09)
        assert m.order_type_label == "Buy Stop"

    def test_short_market_order(self):
        m = compute_trade_metrics("EURUSD", 1.1, take_profit=1.09, stop_loss=1.105)
        assert m.direction == TradeType.SHORT
        assert m.order_type_label == "Market Sell"

    def test_short_limit_order(self):
        m = compute_trade_metrics("EURUSD", 1.1, 1.09, 1.105, current_price=1.095)
        assert m.order_type_label == "Sell Limit"

    def test_conflicting_levels_invalid(self):
        m = compute_trade_metrics("EURUSD", 1.1, take_profit=1.11, stop_loss=1.12)
        assert m.direction is None
        assert m.is_valid is False
        assert m.validation_errors

    def test_single_level_needs_validation(self):
        m = compute_trade_metrics("EURUSD", 1.1, take_profit=1.11)
        assert m.direction == TradeType.LONG
        assert m.needs_sl_tp_for_validation is True

    def test_non_usd_without_rate(self):
        m = compute_trade_metrics("USDJPY", 150.0, 151.0, 149.5, quantity=1)
        assert m.quote_currency == "JPY"
        assert m.risk_quote == pytest.approx(50_000.0)
        assert m.risk_usd is None
        assert m.margin_usd is None

    def test_non_usd_with_rate(self):
        m = compute_trade_metrics("USDJPY", 150.0, 151.0, 149.5, quantity=1, fx_rate_to_usd=0.0067)
        assert m.risk_usd == pytest.approx(335.0)

    def test_unknown_symbol_defaults(self):
        m = compute_trade_metrics("FOOBAR", 1.0, 2.0, 0.5, quantity=1)
        assert m.direction is None
        assert m.risk_quote == 0.0

    def test_missing_entry(self):
        m = compute_trade_metrics("EURUSD", "", 1.11, 1.095)
        assert m.direction is None
        assert m.rr == 0.0


class TestSizing:
    def test_risk_percentage(self):
        pct = calculate_risk_percentage(1.1, 1.095, 1, "EURUSD", 10_000, 1.0)
        assert pct == pytest.approx(5.0)

    def test_quantity_from_risk(self):
        qty = calculate_quantity(1.1, 1.095, 5, "EURUSD", 10_000, 1.0)
        assert qty == pytest.approx(1.0)

    def test_quantity_with_fx(self):
        qty = calculate_quantity(150.0, 149.5, 1, "USDJPY", 10_000, 0.0067)
        # 100 USD risk -> ~14925 JPY over 0.5 * 100000
        assert qty == pytest.approx(100 / 0.0067 / 50_000)

    @pytest.mark.parametrize(
        "args",
        [
            (1.1, 1.1, 5, "EURUSD", 10_000, 1.0),
            (1.1, 1.095, 5, "FOOBAR", 10_000, 1.0),
            (1.1, 1.095, 5, "EURUSD", 10_000, None),
            ("x", 1.095, 5, "EURUSD", 10_000, 1.0),
        ],
    )
    def test_quantity_invalid_inputs(self, args):
        assert calculate_quantity(*args) == 0.0

    def test_risk_percentage_zero_balance(self):
        assert calculate_risk_percentage(1.1, 1.095, 1, "EURUSD", 0, 1.0) == 0.0
