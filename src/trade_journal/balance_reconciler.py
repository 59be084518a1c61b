"""Signed balance deltas for trade outcome transitions.

Every save emits ``new_effect - old_effect`` where
``effect(trade) = trade.pnl if trade.is_balance_updated else 0``, so a
re-save only ever applies the difference. The account balance itself is
never read here.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from trade_journal.models.trade import Trade

logger = structlog.get_logger()


def balance_effect(trade: Trade | None) -> float:
    if trade is None or not trade.is_balance_updated:
        return 0.0
    return trade.pnl


class BalanceReconciler:
    def close_delta(self, previous: Trade | None, net_pnl: float, affect_balance: bool) -> float:
        """Close or re-close: apply the new effect, revert the old one."""
        new_effect = net_pnl if affect_balance else 0.0
        return new_effect - balance_effect(previous)

    def reversal_delta(self, previous: Trade | None) -> float:
        """Reopen / mark missed: undo whatever is currently applied."""
        return 0.0 - balance_effect(previous)

    def autosave_delta(self) -> float:
        return 0.0

    def trash_delta(self, trades: Iterable[Trade]) -> float:
        """Soft-delete a batch of trades from one account."""
        trades = list(trades)
        self._check_single_account(trades)
        return -sum(balance_effect(t) for t in trades if not t.is_deleted)

    def restore_delta(self, trades: Iterable[Trade]) -> float:
        trades = list(trades)
        self._check_single_account(trades)
        return sum(balance_effect(t) for t in trades if t.is_deleted)

    @staticmethod
    def _check_single_account(trades: list[Trade]) -> None:
        accounts = {t.account_id for t in trades}
        if len(accounts) > 1:
            logger.warning("batch_spans_accounts", accounts=sorted(accounts))
            raise ValueError("Selected trades span multiple accounts.")
