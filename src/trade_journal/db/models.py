"""SQLAlchemy ORM models for accounts and journal trades."""

from datetime import datetime

from sqlalchemy import (
    ARRAY,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class AccountORM(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), default="USD")
    balance: Mapped[float] = mapped_column(Numeric(20, 2), default=0)
    is_demo: Mapped[bool] = mapped_column(Boolean, default=False)
    type: Mapped[str | None] = mapped_column(String(10))


class TradeORM(Base):
    __tablename__ = "trades"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    account_id: Mapped[str | None] = mapped_column(ForeignKey("accounts.id"))
    symbol: Mapped[str] = mapped_column(String(30), nullable=False)
    type: Mapped[str] = mapped_column(
        String(5),
        CheckConstraint("type IN ('LONG', 'SHORT')"),
        nullable=False,
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    entry_date: Mapped[str | None] = mapped_column(String(40))
    entry_time: Mapped[str | None] = mapped_column(String(10))
    exit_date: Mapped[str | None] = mapped_column(String(40))
    exit_time: Mapped[str | None] = mapped_column(String(10))
    entry_price: Mapped[float | None] = mapped_column(Numeric(20, 8))
    exit_price: Mapped[float | None] = mapped_column(Numeric(20, 8))
    stop_loss: Mapped[float | None] = mapped_column(Numeric(20, 8))
    take_profit: Mapped[float | None] = mapped_column(Numeric(20, 8))
    final_stop_loss: Mapped[float | None] = mapped_column(Numeric(20, 8))
    final_take_profit: Mapped[float | None] = mapped_column(Numeric(20, 8))
    quantity: Mapped[float] = mapped_column(Numeric(20, 8), default=0)
    leverage: Mapped[float | None] = mapped_column(Numeric(10, 2))
    outcome: Mapped[str] = mapped_column(
        String(10),
        CheckConstraint("outcome IN ('Open', 'Closed', 'Missed')"),
        default="Open",
    )
    status: Mapped[str] = mapped_column(String(12), default="OPEN")
    fees: Mapped[float] = mapped_column(Numeric(20, 2), default=0)
    main_pnl: Mapped[float | None] = mapped_column(Numeric(20, 2))
    partials: Mapped[list | None] = mapped_column(JSONB)
    pnl: Mapped[float] = mapped_column(Numeric(20, 2), default=0)
    is_balance_updated: Mapped[bool] = mapped_column(Boolean, default=False)
    setup: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)
    emotional_notes: Mapped[str | None] = mapped_column(Text)
    screenshots: Mapped[list[str] | None] = mapped_column(ARRAY(Text))
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(Text))
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    quote_currency: Mapped[str | None] = mapped_column(String(10))
    fx_rate_to_usd: Mapped[float | None] = mapped_column(Numeric(20, 10))
    planned_risk_quote: Mapped[float | None] = mapped_column(Numeric(20, 4))
    planned_reward_quote: Mapped[float | None] = mapped_column(Numeric(20, 4))
    planned_risk_usd: Mapped[float | None] = mapped_column(Numeric(20, 4))
    planned_reward_usd: Mapped[float | None] = mapped_column(Numeric(20, 4))

    __table_args__ = (
        Index("idx_trades_account", "account_id"),
        Index("idx_trades_symbol", "symbol"),
        Index("idx_trades_outcome", "outcome"),
    )
