"""Trade outcome state machine: OPEN / CLOSED / MISSED.

| From               | To     | Command      | Balance delta              |
|--------------------|--------|--------------|----------------------------|
| OPEN/CLOSED/MISSED | CLOSED | CloseTrade   | new effect - old effect    |
| CLOSED/MISSED      | OPEN   | ReopenTrade  | -old effect                |
| OPEN/CLOSED/MISSED | MISSED | MarkMissed   | -old effect                |
| any                | same   | UpdateField  | 0 (auto-save)              |

``status`` is recomputed from (outcome, sign of net P&L) on every save.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from trade_journal.auto_tags import calculate_auto_tags
from trade_journal.balance_reconciler import BalanceReconciler
from trade_journal.financial_calculator import compute_financials, derive_status, round_money
from trade_journal.models.commands import (
    CloseTrade,
    MarkMissed,
    ReopenTrade,
    TradeCommand,
    TransitionResult,
    UpdateField,
)
from trade_journal.models.trade import Trade, TradeOutcome, TradeStatus

if TYPE_CHECKING:
    from trade_journal.planned_value_cache import PlannedValueCache

logger = structlog.get_logger()

# Owned by the state machine; never set through UpdateField.
PROTECTED_FIELDS = {"id", "outcome", "status", "pnl", "is_balance_updated"}
PNL_INPUT_FIELDS = {"main_pnl", "partials", "fees"}


class InvalidTransition(ValueError):
    pass


class TradeEvent(enum.Enum):
    EDITED = "edited"
    CLOSED = "closed"
    REOPENED = "reopened"
    MISSED = "missed"


class TradeStateMachine:
    def __init__(
        self,
        planned_cache: PlannedValueCache,
        reconciler: BalanceReconciler | None = None,
    ) -> None:
        self.planned_cache = planned_cache
        self.reconciler = reconciler or BalanceReconciler()

    async def handle(
        self,
        trade: Trade,
        command: TradeCommand,
        persisted: Trade | None = None,
    ) -> TransitionResult:
        """Apply ``command`` to ``trade``; ``persisted`` is the last saved record."""
        if persisted is None:
            persisted = trade
        if isinstance(command, UpdateField):
            return await self.autosave(self.apply_edit(trade, command), persisted)
        if isinstance(command, CloseTrade):
            return await self.close(trade, command, persisted)
        if isinstance(command, ReopenTrade):
            return await self.reopen(trade, persisted)
        if isinstance(command, MarkMissed):
            return await self.mark_missed(trade, persisted)
        raise InvalidTransition(f"Unknown command: {type(command).__name__}")

    def apply_edit(self, trade: Trade, command: UpdateField) -> Trade:
        """Apply a field edit in memory. No derivation, no I/O."""
        field = command.field
        if field in PROTECTED_FIELDS:
            raise InvalidTransition(f"'{field}' cannot be edited directly")
        if field not in Trade.model_fields:
            raise InvalidTransition(f"Unknown trade field '{field}'")
        if field in PNL_INPUT_FIELDS:
            if trade.outcome == TradeOutcome.MISSED and field != "fees":
                raise InvalidTransition("A missed trade has no P&L; close it first")
            if trade.outcome == TradeOutcome.CLOSED and trade.is_balance_updated:
                raise InvalidTransition(
                    "P&L of a trade applied to the balance can only change by closing it again"
                )
        try:
            return trade.with_updates(**{field: command.value})
        except ValidationError as e:
            raise InvalidTransition(f"Invalid value for '{field}': {e.errors()[0]['msg']}") from e

    async def autosave(self, trade: Trade, persisted: Trade | None) -> TransitionResult:
        """Recompute derived fields for a non-outcome edit. Never moves money."""
        derived = await self._derive(trade, persisted)
        return self._result(TradeEvent.EDITED, derived, self.reconciler.autosave_delta())

    async def close(
        self, trade: Trade, command: CloseTrade, persisted: Trade | None
    ) -> TransitionResult:
        changes = {
            "outcome": TradeOutcome.CLOSED,
            "exit_price": command.exit_price,
            "exit_date": command.exit_date,
            "exit_time": command.exit_time,
            "main_pnl": command.main_pnl,
            "fees": command.fees,
            "final_stop_loss": command.final_stop_loss,
            "final_take_profit": command.final_take_profit,
            "is_balance_updated": command.affect_balance,
        }
        if command.tags is not None:
            changes["tags"] = command.tags
        if command.partials is not None:
            changes["partials"] = [p.model_dump() for p in command.partials]

        derived = await self._derive(trade.with_updates(**changes), persisted)
        delta = self.reconciler.close_delta(persisted, derived.pnl, command.affect_balance)
        return self._result(TradeEvent.CLOSED, derived, delta, should_close=command.close_editor)

    async def reopen(self, trade: Trade, persisted: Trade | None) -> TransitionResult:
        if trade.outcome == TradeOutcome.OPEN:
            raise InvalidTransition("Trade is already open")

        reopened = trade.with_updates(outcome=TradeOutcome.OPEN, is_balance_updated=False)
        derived = await self._derive(reopened, persisted)
        derived = derived.with_updates(pnl=0.0, status=TradeStatus.OPEN)
        return self._result(TradeEvent.REOPENED, derived, self.reconciler.reversal_delta(persisted))

    async def mark_missed(self, trade: Trade, persisted: Trade | None) -> TransitionResult:
        missed = trade.with_updates(
            outcome=TradeOutcome.MISSED,
            main_pnl=None,
            partials=[],
            is_balance_updated=False,
        )
        derived = await self._derive(missed, persisted)
        return self._result(TradeEvent.MISSED, derived, self.reconciler.reversal_delta(persisted))

    async def _derive(self, trade: Trade, persisted: Trade | None) -> Trade:
        """pnl, status, auto tags and planned values for a snapshot."""
        pnl = round_money(compute_financials(trade).net_pnl_value)
        tags = calculate_auto_tags(
            trade.tags,
            trade.type,
            entry_price=trade.entry_price,
            exit_price=trade.exit_price,
            take_profit=trade.take_profit,
            stop_loss=trade.stop_loss,
            partials=trade.partials,
        )
        planned = await self.planned_cache.resolve(trade, persisted)
        return trade.with_updates(
            pnl=pnl,
            status=derive_status(trade.outcome, pnl),
            tags=tags,
            **planned.model_dump(),
        )

    @staticmethod
    def _result(
        event: TradeEvent, trade: Trade, delta: float, should_close: bool = False
    ) -> TransitionResult:
        log = logger.debug if event == TradeEvent.EDITED else logger.info
        log(
            "trade_transition",
            transition=event.value,
            trade_id=trade.id,
            outcome=trade.outcome.value,
            status=trade.status.value,
            pnl=trade.pnl,
            balance_delta=delta,
        )
        return TransitionResult(trade=trade, balance_delta=delta, should_close=should_close)
