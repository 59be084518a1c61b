"""DB repositories: TradeRepository, AccountRepository.

``persist_trade`` writes the trade row and applies its balance delta in a
single transaction, so a crash cannot leave ``is_balance_updated`` and the
account balance out of step.
"""

from __future__ import annotations

import enum
import math
from datetime import datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from trade_journal.balance_reconciler import BalanceReconciler
from trade_journal.config import Settings
from trade_journal.db.models import AccountORM, TradeORM
from trade_journal.models.trade import Trade

logger = structlog.get_logger()

TRADE_COLUMNS = [c.name for c in TradeORM.__table__.columns]


def open_database(settings: Settings) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Engine and session factory for the journal database, pooled per Settings."""
    engine = create_async_engine(
        settings.DATABASE_URL,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )
    # Rows stay loaded after commit.
    return engine, async_sessionmaker(engine, expire_on_commit=False)


class BalanceAdjustmentKind(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


def _trade_to_row(trade: Trade) -> dict:
    data = trade.model_dump(mode="json")
    data["created_at"] = trade.created_at
    data["deleted_at"] = trade.deleted_at
    return {name: data.get(name) for name in TRADE_COLUMNS}


def _orm_to_trade(orm: TradeORM) -> Trade:
    """Convert TradeORM to Trade; Numeric columns come back as Decimal."""
    data = {name: getattr(orm, name) for name in TRADE_COLUMNS}
    for name in ("partials", "screenshots", "tags"):
        data[name] = data[name] or []
    for name in ("account_id", "setup", "notes", "emotional_notes"):
        data[name] = data[name] or ""
    for name in ("is_balance_updated", "is_deleted"):
        data[name] = bool(data[name])
    return Trade.model_validate(data)


async def _apply_balance(session: AsyncSession, account_id: str, amount: float) -> None:
    await session.execute(
        update(AccountORM)
        .where(AccountORM.id == account_id)
        .values(balance=AccountORM.balance + amount)
    )


class TradeRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        reconciler: BalanceReconciler | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.reconciler = reconciler or BalanceReconciler()

    async def persist_trade(self, trade: Trade, should_close: bool = False, balance_delta: float = 0.0) -> Trade:
        """Upsert ``trade`` and apply ``balance_delta`` to its account atomically."""
        async with self.session_factory() as session:
            row = _trade_to_row(trade)
            orm = await session.get(TradeORM, trade.id)
            if orm is None:
                session.add(TradeORM(**row))
            else:
                for key, value in row.items():
                    setattr(orm, key, value)

            if balance_delta and trade.account_id:
                await _apply_balance(session, trade.account_id, balance_delta)

            await session.commit()
            logger.info(
                "trade_persisted",
                trade_id=trade.id,
                outcome=trade.outcome.value,
                balance_delta=balance_delta,
                should_close=should_close,
            )
            return trade

    async def __call__(self, trade: Trade, should_close: bool, balance_delta: float) -> None:
        await self.persist_trade(trade, should_close, balance_delta)

    async def get(self, trade_id: str) -> Trade | None:
        async with self.session_factory() as session:
            orm = await session.get(TradeORM, trade_id)
            return _orm_to_trade(orm) if orm is not None else None

    async def list_for_account(self, account_id: str, include_deleted: bool = False) -> list[Trade]:
        async with self.session_factory() as session:
            stmt = select(TradeORM).where(TradeORM.account_id == account_id)
            if not include_deleted:
                stmt = stmt.where(TradeORM.is_deleted.is_(False))
            stmt = stmt.order_by(TradeORM.created_at.desc())
            result = await session.execute(stmt)
            return [_orm_to_trade(t) for t in result.scalars().all()]

    async def trash(self, ids: list[str]) -> list[Trade]:
        """Soft-delete trades and reverse any balance effect they carry."""
        return await self._set_deleted(ids, deleted=True)

    async def restore(self, ids: list[str]) -> list[Trade]:
        """Undo ``trash``: restore trades and re-apply their balance effect."""
        return await self._set_deleted(ids, deleted=False)

    async def _set_deleted(self, ids: list[str], deleted: bool) -> list[Trade]:
        if not ids:
            raise ValueError("No IDs provided")
        async with self.session_factory() as session:
            stmt = (
                select(TradeORM)
                .where(TradeORM.id.in_(ids), TradeORM.is_deleted.is_(not deleted))
                .with_for_update()
            )
            result = await session.execute(stmt)
            rows = list(result.scalars().all())
            if not rows:
                return []

            trades = [_orm_to_trade(r) for r in rows]
            if deleted:
                delta = self.reconciler.trash_delta(trades)
            else:
                delta = self.reconciler.restore_delta(trades)

            now = datetime.now(timezone.utc)
            for orm in rows:
                orm.is_deleted = deleted
                orm.deleted_at = now if deleted else None

            account_id = rows[0].account_id
            if delta and account_id:
                await _apply_balance(session, account_id, delta)

            await session.commit()
            logger.info(
                "trades_trashed" if deleted else "trades_restored",
                count=len(rows),
                account_id=account_id,
                balance_delta=delta,
            )
            return [_orm_to_trade(r) for r in rows]


class AccountRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_balance(self, account_id: str) -> float:
        async with self.session_factory() as session:
            account = await session.get(AccountORM, account_id)
            if account is None:
                raise ValueError(f"Account not found: {account_id}")
            return float(account.balance)

    async def adjust_balance(self, account_id: str, amount: float, kind: BalanceAdjustmentKind) -> float:
        """Manual deposit/withdraw. Returns the new balance."""
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise ValueError("Invalid amount")
        kind = BalanceAdjustmentKind(kind)

        async with self.session_factory() as session:
            account = await session.get(AccountORM, account_id)
            if account is None:
                raise ValueError(f"Account not found: {account_id}")
            current = float(account.balance)
            if kind == BalanceAdjustmentKind.WITHDRAW and amount > current:
                raise ValueError("Insufficient funds")

            signed = amount if kind == BalanceAdjustmentKind.DEPOSIT else -amount
            await _apply_balance(session, account_id, signed)
            await session.commit()
            new_balance = current + signed
            logger.info("balance_adjusted", account_id=account_id, kind=kind.value, amount=amount)
            return new_balance
