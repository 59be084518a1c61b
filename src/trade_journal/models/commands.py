"""Editor commands consumed by TradeStateMachine."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from trade_journal.models.trade import Number, OptionalNumber, Trade, TradePartial


class UpdateField(BaseModel):
    field: str
    value: Any = None


class CloseTrade(BaseModel):
    exit_price: OptionalNumber = None
    exit_date: str | None = None
    exit_time: str | None = None
    main_pnl: OptionalNumber = None
    fees: Number = 0.0
    affect_balance: bool = True
    tags: list[str] | None = None
    partials: list[TradePartial] | None = None
    final_stop_loss: OptionalNumber = None
    final_take_profit: OptionalNumber = None
    close_editor: bool = False


class ReopenTrade(BaseModel):
    pass


class MarkMissed(BaseModel):
    pass


TradeCommand = UpdateField | CloseTrade | ReopenTrade | MarkMissed


class TransitionResult(BaseModel):
    trade: Trade
    balance_delta: float = 0.0
    should_close: bool = False
