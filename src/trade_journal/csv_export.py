"""CSV export of journal trades."""

from __future__ import annotations

import csv
import io
from collections.abc import Callable, Iterable

from trade_journal.assets import get_asset
from trade_journal.financial_calculator import partials_total, planned_reward, reward_to_risk
from trade_journal.models.trade import Trade, TradeOutcome, TradeType


def _rr(trade: Trade) -> str:
    return f"{reward_to_risk(trade.entry_price, trade.stop_loss, trade.take_profit):.2f}"


def _planned_reward(trade: Trade) -> str:
    return f"{planned_reward(trade, get_asset(trade.symbol)):.2f}"


def _outcome(trade: Trade) -> str:
    if trade.outcome == TradeOutcome.CLOSED:
        return trade.status.value
    if trade.outcome == TradeOutcome.MISSED:
        return "MISSED"
    return "OPEN"


def _sl_filled(trade: Trade) -> str:
    if trade.outcome != TradeOutcome.CLOSED or trade.stop_loss is None or trade.exit_price is None:
        return "No"
    if trade.type == TradeType.LONG:
        hit = trade.exit_price <= trade.stop_loss
    else:
        hit = trade.exit_price >= trade.stop_loss
    return "Yes" if hit else "No"


def _tp_filled(trade: Trade) -> str:
    if trade.outcome != TradeOutcome.CLOSED or trade.take_profit is None or trade.exit_price is None:
        return "No"
    if trade.type == TradeType.LONG:
        hit = trade.exit_price >= trade.take_profit
    else:
        hit = trade.exit_price <= trade.take_profit
    return "Yes" if hit else "No"


# (label, field name or derived getter)
COLUMNS: list[tuple[str, str | Callable[[Trade], object]]] = [
    ("Asset Pair", "symbol"),
    ("Log Time", "created_at"),
    ("Direction", lambda t: t.type.value),
    ("Entry Price", "entry_price"),
    ("Entry Time", "entry_time"),
    ("Exit Price", "exit_price"),
    ("Exit Time", "exit_time"),
    ("Entry SL", "stop_loss"),
    ("Entry TP", "take_profit"),
    ("Final SL", "final_stop_loss"),
    ("Final TP", "final_take_profit"),
    ("Stop Loss Filled", _sl_filled),
    ("Take Profit Filled", _tp_filled),
    ("Lot Size", "quantity"),
    ("RR Ratio", _rr),
    ("Planned Reward", _planned_reward),
    ("Outcome", _outcome),
    ("Strategy", "setup"),
    ("Partials", lambda t: len(t.partials)),
    ("Partial Profits", lambda t: f"{partials_total(t):.2f}"),
    ("Core P&L", "main_pnl"),
    ("Fees", "fees"),
    ("Net P&L", "pnl"),
    ("Technical Notes", "notes"),
    ("Emotional Notes", "emotional_notes"),
    ("Tags", "tags"),
    ("Screenshots", lambda t: len(t.screenshots)),
]


def _cell(trade: Trade, source: str | Callable[[Trade], object]) -> str:
    value = source(trade) if callable(source) else getattr(trade, source)
    if value is None:
        return ""
    if isinstance(value, list):
        return "|".join(str(v) for v in value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def export_trades_csv(trades: Iterable[Trade]) -> str:
    """Render trades as CSV text (header row first). Empty input gives ''."""
    trades = list(trades)
    if not trades:
        return ""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([label for label, _ in COLUMNS])
    for trade in trades:
        writer.writerow([_cell(trade, source) for _, source in COLUMNS])
    return buffer.getvalue()
