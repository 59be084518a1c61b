"""New-trade form metrics: direction, order type, risk/reward, margin, sizing."""

from __future__ import annotations

from pydantic import BaseModel

from trade_journal.assets import get_asset, quote_currency_for
from trade_journal.coerce import to_number
from trade_journal.models.trade import TradeType


class TradeMetrics(BaseModel):
    direction: TradeType | None = None
    order_type_label: str = "Market"
    risk_quote: float = 0.0
    risk_usd: float | None = None
    reward_quote: float = 0.0
    reward_usd: float | None = None
    rr: float = 0.0
    margin_quote: float = 0.0
    margin_usd: float | None = None
    tp_points: float = 0.0
    tp_pips: float = 0.0
    sl_points: float = 0.0
    sl_pips: float = 0.0
    validation_errors: list[str] = []
    is_valid: bool = True
    needs_sl_tp_for_validation: bool = False
    quote_currency: str = "USD"


def _infer_direction(entry: float, tp: float | None, sl: float | None, metrics: TradeMetrics) -> TradeType | None:
    if tp is not None and sl is not None:
        if tp > entry and sl < entry:
            return TradeType.LONG
        if tp < entry and sl > entry:
            return TradeType.SHORT
        metrics.validation_errors.append(
            "Invalid TP/SL for direction. TP and SL imply opposite directions."
        )
        metrics.is_valid = False
        return None
    if tp is not None:
        metrics.needs_sl_tp_for_validation = True
        return TradeType.LONG if tp > entry else TradeType.SHORT
    if sl is not None:
        metrics.needs_sl_tp_for_validation = True
        return TradeType.LONG if sl < entry else TradeType.SHORT
    return None


def _order_type_label(direction: TradeType, entry: float, current: float | None) -> str:
    if direction == TradeType.LONG:
        if current is None or entry == current:
            return "Market Buy"
        return "Buy Limit" if entry < current else "Buy Stop"
    if current is None or entry == current:
        return "Market Sell"
    return "Sell Limit" if entry > current else "Sell Stop"


def compute_trade_metrics(
    symbol: str,
    entry_price,
    take_profit=None,
    stop_loss=None,
    quantity=None,
    leverage=None,
    current_price=None,
    fx_rate_to_usd: float | None = None,
) -> TradeMetrics:
    metrics = TradeMetrics()
    asset = get_asset(symbol)
    if asset is None:
        return metrics
    metrics.quote_currency = quote_currency_for(symbol)

    entry = to_number(entry_price)
    if entry is None:
        return metrics
    tp = to_number(take_profit)
    sl = to_number(stop_loss)
    qty = to_number(quantity)
    lev = to_number(leverage) or 1.0
    current = to_number(current_price)

    direction = _infer_direction(entry, tp, sl, metrics)
    if direction is not None:
        metrics.direction = direction
        metrics.order_type_label = _order_type_label(direction, entry, current)
    elif metrics.is_valid and (tp is not None or sl is not None):
        metrics.validation_errors.append("Cannot determine direction from price levels.")

    if tp is not None:
        metrics.tp_points = abs(tp - entry)
        metrics.tp_pips = metrics.tp_points / asset.pip
    if sl is not None:
        metrics.sl_points = abs(sl - entry)
        metrics.sl_pips = metrics.sl_points / asset.pip

    rate = 1.0 if metrics.quote_currency == "USD" else fx_rate_to_usd

    if qty is not None:
        if sl is not None:
            metrics.risk_quote = metrics.sl_points * asset.contract_size * qty
            if rate is not None:
                metrics.risk_usd = metrics.risk_quote * rate
        if tp is not None:
            metrics.reward_quote = metrics.tp_points * asset.contract_size * qty
            if rate is not None:
                metrics.reward_usd = metrics.reward_quote * rate
        if entry > 0:
            metrics.margin_quote = entry * asset.contract_size * qty / lev
            if rate is not None:
                metrics.margin_usd = metrics.margin_quote * rate

    if metrics.risk_quote > 0:
        metrics.rr = metrics.reward_quote / metrics.risk_quote
    return metrics


def calculate_risk_percentage(entry, stop_loss, quantity, symbol: str, balance, fx_rate: float | None) -> float:
    """Risk of a position as % of balance; 0 on any invalid input."""
    asset = get_asset(symbol)
    entry, stop_loss = to_number(entry), to_number(stop_loss)
    quantity, balance = to_number(quantity), to_number(balance)
    if asset is None or None in (entry, stop_loss, quantity, balance) or not balance or fx_rate is None:
        return 0.0
    risk_usd = abs(entry - stop_loss) * asset.contract_size * quantity * fx_rate
    return risk_usd / balance * 100


def calculate_quantity(entry, stop_loss, risk_percentage, symbol: str, balance, fx_rate: float | None) -> float:
    """Position size risking ``risk_percentage`` % of balance; 0 on any invalid input."""
    asset = get_asset(symbol)
    entry, stop_loss = to_number(entry), to_number(stop_loss)
    risk_percentage, balance = to_number(risk_percentage), to_number(balance)
    if asset is None or None in (entry, stop_loss, risk_percentage, balance) or not fx_rate:
        return 0.0
    distance = abs(entry - stop_loss)
    if distance == 0:
        return 0.0
    risk_quote = balance * (risk_percentage / 100) / fx_rate
    return risk_quote / (distance * asset.contract_size)
