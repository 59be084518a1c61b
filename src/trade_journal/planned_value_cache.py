"""Reuse or recompute FX-converted planned risk/reward values on save."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from pydantic import BaseModel

from trade_journal.assets import get_asset, quote_currency_for
from trade_journal.coerce import to_number_or_zero
from trade_journal.models.trade import Trade

logger = structlog.get_logger()

FxRateProvider = Callable[[str], Awaitable[float | None]]

DIRTY_FIELDS = ("entry_price", "stop_loss", "take_profit", "quantity")


class PlannedValues(BaseModel):
    quote_currency: str | None = None
    fx_rate_to_usd: float | None = None
    planned_risk_quote: float | None = None
    planned_reward_quote: float | None = None
    planned_risk_usd: float | None = None
    planned_reward_usd: float | None = None

    @classmethod
    def from_trade(cls, trade: Trade) -> PlannedValues:
        return cls(**{name: getattr(trade, name) for name in cls.model_fields})


def compute_planned_values(trade: Trade, fx_rate: float | None) -> PlannedValues:
    """Planned risk/reward in quote currency, plus USD when the rate is known."""
    quote_currency = quote_currency_for(trade.symbol)
    rate = 1.0 if quote_currency == "USD" else fx_rate
    result = PlannedValues(quote_currency=quote_currency, fx_rate_to_usd=rate)

    asset = get_asset(trade.symbol)
    if asset is None or trade.entry_price is None:
        return result

    size = asset.contract_size * trade.quantity
    if trade.stop_loss is not None:
        result.planned_risk_quote = abs(trade.entry_price - trade.stop_loss) * size
        if rate is not None:
            result.planned_risk_usd = result.planned_risk_quote * rate
    if trade.take_profit is not None:
        result.planned_reward_quote = abs(trade.take_profit - trade.entry_price) * size
        if rate is not None:
            result.planned_reward_usd = result.planned_reward_quote * rate
    return result


class PlannedValueCache:
    def __init__(self, fx_provider: FxRateProvider) -> None:
        self.fx_provider = fx_provider

    @staticmethod
    def is_dirty(previous: Trade | None, current: Trade) -> bool:
        """True if nothing is stored yet, or symbol or any sizing level differs (absent = 0)."""
        if previous is None or previous.quote_currency is None:
            return True
        if previous.symbol != current.symbol:
            return True
        return any(
            to_number_or_zero(getattr(previous, name)) != to_number_or_zero(getattr(current, name))
            for name in DIRTY_FIELDS
        )

    async def resolve(self, current: Trade, previous: Trade | None) -> PlannedValues:
        if not self.is_dirty(previous, current):
            return PlannedValues.from_trade(previous)

        quote_currency = quote_currency_for(current.symbol)
        if quote_currency == "USD":
            rate = 1.0
        elif (
            previous is not None
            and previous.symbol == current.symbol
            and previous.fx_rate_to_usd is not None
            and previous.fx_rate_to_usd > 0
        ):
            # Price/quantity edit only: keep the stored rate.
            rate = previous.fx_rate_to_usd
        else:
            rate = await self._fetch_rate(quote_currency)

        return compute_planned_values(current, rate)

    async def _fetch_rate(self, quote_currency: str) -> float | None:
        try:
            rate = await self.fx_provider(quote_currency)
        except Exception:
            logger.exception("fx_provider_error", currency=quote_currency)
            return None
        if rate is None or rate <= 0:
            logger.warning("fx_rate_unavailable", currency=quote_currency)
            return None
        return rate
