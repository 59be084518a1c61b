"""Unit tests for BalanceReconciler: signed deltas across transitions."""

from __future__ import annotations

import pytest

from trade_journal.balance_reconciler import BalanceReconciler, balance_effect
from trade_journal.models.trade import TradeOutcome


@pytest.fixture
def reconciler():
    return BalanceReconciler()


@pytest.fixture
def applied(trade_factory):
    return trade_factory(outcome=TradeOutcome.CLOSED, pnl=95.0, is_balance_updated=True)


class TestBalanceEffect:
    def test_applied_trade(self, applied):
        assert balance_effect(applied) == 95.0

    def test_not_applied(self, applied):
        assert balance_effect(applied.with_updates(is_balance_updated=False)) == 0.0

    def test_no_previous(self):
        assert balance_effect(None) == 0.0


class TestCloseDelta:
    def test_first_close(self, reconciler, open_trade):
        assert reconciler.close_delta(open_trade, 95.0, affect_balance=True) == 95.0

    def test_first_close_without_balance(self, reconciler, open_trade):
        assert reconciler.close_delta(open_trade, 95.0, affect_balance=False) == 0.0

    def test_reclose_same_pnl_is_zero(self, reconciler, applied):
        assert reconciler.close_delta(applied, 95.0, affect_balance=True) == 0.0

    def test_reclose_applies_difference(self, reconciler, applied):
        assert reconciler.close_delta(applied, 45.0, affect_balance=True) == pytest.approx(-50.0)

    def test_reclose_turning_balance_off_reverts(self, reconciler, applied):
        assert reconciler.close_delta(applied, 95.0, affect_balance=False) == -95.0

    def test_loss(self, reconciler, open_trade):
        assert reconciler.close_delta(open_trade, -30.0, affect_balance=True) == -30.0


class TestReversal:
    def test_reverts_applied(self, reconciler, applied):
        assert reconciler.reversal_delta(applied) == -95.0

    def test_nothing_applied(self, reconciler, open_trade):
        assert reconciler.reversal_delta(open_trade) == 0.0

    def test_autosave_never_moves_money(self, reconciler):
        assert reconciler.autosave_delta() == 0.0


class TestBatch:
    def test_trash_reverts_applied_only(self, reconciler, applied, open_trade, trade_factory):
        other = trade_factory(
            id="t-2", outcome=TradeOutcome.CLOSED, pnl=-20.0, is_balance_updated=True
        )
        assert reconciler.trash_delta([applied, open_trade, other]) == pytest.approx(-75.0)

    def test_trash_skips_already_deleted(self, reconciler, applied):
        assert reconciler.trash_delta([applied.with_updates(is_deleted=True)]) == 0.0

    def test_restore_reapplies_deleted(self, reconciler, applied):
        assert reconciler.restore_delta([applied.with_updates(is_deleted=True)]) == 95.0

    def test_restore_skips_live_trades(self, reconciler, applied):
        assert reconciler.restore_delta([applied]) == 0.0

    def test_mixed_accounts_rejected(self, reconciler, applied):
        other = applied.with_updates(id="t-2", account_id="acc-2")
        with pytest.raises(ValueError, match="multiple accounts"):
            reconciler.trash_delta([applied, other])
