"""Net P&L, planned reward, RR and pip distances for a trade snapshot.

Pure functions: missing or non-numeric inputs are treated as absent and
degrade to zero / unknown outputs instead of raising.
"""

from __future__ import annotations

from pydantic import BaseModel

from trade_journal.assets import Asset, get_asset, quote_currency_for
from trade_journal.coerce import to_number
from trade_journal.models.trade import Trade, TradeOutcome, TradeStatus


class FinancialSummary(BaseModel):
    partials_total: float = 0.0
    fees_value: float = 0.0
    net_pnl_value: float = 0.0
    # None means "not yet known"; distinct from a real 0.0 (break-even).
    net_pnl_display: float | None = None
    planned_reward: float = 0.0
    rr: float = 0.0
    sl_pips: float | None = None
    tp_pips: float | None = None
    quote_currency: str = "USD"

    @property
    def is_net_pnl_known(self) -> bool:
        return self.net_pnl_display is not None

    def format_net_pnl(self) -> str:
        return format_money(self.net_pnl_display)


def format_money(value: float | None) -> str:
    """'-' for unknown, otherwise a signed dollar amount."""
    if value is None:
        return "-"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


# Money columns are stored with 2 decimals; pnl and deltas use the stored value.
MONEY_DECIMALS = 2


def round_money(value: float) -> float:
    return round(value, MONEY_DECIMALS) + 0.0


def partials_total(trade: Trade) -> float:
    return sum(p.pnl for p in trade.partials)


def net_pnl(trade: Trade) -> float | None:
    """mainPnl + partials - fees, or None when neither mainPnl nor partials exist."""
    total = partials_total(trade)
    if trade.main_pnl is not None:
        return trade.main_pnl + total - trade.fees
    if trade.partials:
        return total - trade.fees
    return None


def pip_distance(level, entry, asset: Asset | None) -> float | None:
    level = to_number(level)
    entry = to_number(entry)
    if asset is None or level is None or entry is None or not asset.pip:
        return None
    return abs(level - entry) / asset.pip


def planned_reward(trade: Trade, asset: Asset | None) -> float:
    if asset is None or trade.entry_price is None or trade.take_profit is None:
        return 0.0
    return abs(trade.take_profit - trade.entry_price) * asset.contract_size * trade.quantity


def reward_to_risk(entry, stop_loss, take_profit) -> float:
    entry = to_number(entry)
    stop_loss = to_number(stop_loss)
    take_profit = to_number(take_profit)
    if entry is None or stop_loss is None or take_profit is None:
        return 0.0
    risk = abs(entry - stop_loss)
    if risk <= 0:
        return 0.0
    return abs(take_profit - entry) / risk


def compute_financials(trade: Trade, asset: Asset | None = None) -> FinancialSummary:
    if asset is None:
        asset = get_asset(trade.symbol)

    net = net_pnl(trade)
    return FinancialSummary(
        partials_total=partials_total(trade),
        fees_value=trade.fees,
        net_pnl_value=0.0 if net is None else net,
        net_pnl_display=net,
        planned_reward=planned_reward(trade, asset),
        rr=reward_to_risk(trade.entry_price, trade.stop_loss, trade.take_profit),
        sl_pips=pip_distance(trade.stop_loss, trade.entry_price, asset),
        tp_pips=pip_distance(trade.take_profit, trade.entry_price, asset),
        quote_currency=quote_currency_for(trade.symbol),
    )


def derive_status(outcome: TradeOutcome, net_pnl_value: float) -> TradeStatus:
    if outcome == TradeOutcome.MISSED:
        return TradeStatus.MISSED
    if outcome == TradeOutcome.CLOSED:
        if net_pnl_value > 0:
            return TradeStatus.WIN
        if net_pnl_value < 0:
            return TradeStatus.LOSS
        return TradeStatus.BREAK_EVEN
    return TradeStatus.OPEN
