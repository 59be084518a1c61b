"""Trade, TradePartial Pydantic models."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from trade_journal.coerce import to_number, to_number_or_zero

# Non-numeric input is stored as "absent" rather than rejected.
OptionalNumber = Annotated[float | None, BeforeValidator(to_number)]
Number = Annotated[float, BeforeValidator(to_number_or_zero)]


def new_id(prefix: str | None = None) -> str:
    value = str(uuid.uuid4())
    return f"{prefix}_{value}" if prefix else value


class TradeType(str, enum.Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class TradeOutcome(str, enum.Enum):
    OPEN = "Open"
    CLOSED = "Closed"
    MISSED = "Missed"


class TradeStatus(str, enum.Enum):
    WIN = "WIN"
    LOSS = "LOSS"
    BREAK_EVEN = "BREAK_EVEN"
    OPEN = "OPEN"
    MISSED = "MISSED"


class TradePartial(BaseModel):
    id: str = Field(default_factory=lambda: new_id("partial"))
    quantity: Number = 0.0
    price: OptionalNumber = None
    pnl: Number = 0.0
    date: str | None = None


class Trade(BaseModel):
    id: str = Field(default_factory=new_id)
    account_id: str = ""
    symbol: str = ""
    type: TradeType = TradeType.LONG

    # Dates & times
    created_at: datetime | None = None
    entry_date: str | None = None
    entry_time: str | None = None
    exit_date: str | None = None
    exit_time: str | None = None

    # Pricing
    entry_price: OptionalNumber = None
    exit_price: OptionalNumber = None
    stop_loss: OptionalNumber = None
    take_profit: OptionalNumber = None
    final_stop_loss: OptionalNumber = None  # SL at close, informational
    final_take_profit: OptionalNumber = None  # TP at close, informational

    # Sizing
    quantity: Number = 0.0
    leverage: OptionalNumber = None

    # Lifecycle
    outcome: TradeOutcome = TradeOutcome.OPEN
    status: TradeStatus = TradeStatus.OPEN

    # Financials
    fees: Number = 0.0
    main_pnl: OptionalNumber = None
    partials: list[TradePartial] = []
    pnl: Number = 0.0
    is_balance_updated: bool = False

    # Journal
    setup: str = ""
    notes: str = ""
    emotional_notes: str = ""
    screenshots: list[str] = []
    tags: list[str] = []

    # Soft delete
    is_deleted: bool = False
    deleted_at: datetime | None = None

    # Stored FX conversion / planned values
    quote_currency: str | None = None
    fx_rate_to_usd: OptionalNumber = None
    planned_risk_quote: OptionalNumber = None
    planned_reward_quote: OptionalNumber = None
    planned_risk_usd: OptionalNumber = None
    planned_reward_usd: OptionalNumber = None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: list[str]) -> list[str]:
        return list(dict.fromkeys(tags))

    def with_updates(self, **changes) -> Trade:
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump()
        data.update(changes)
        return Trade.model_validate(data)
