"""Wire engine components from Settings."""

from __future__ import annotations

import structlog

from trade_journal.balance_reconciler import BalanceReconciler
from trade_journal.config import Settings
from trade_journal.db.repository import AccountRepository, TradeRepository, open_database
from trade_journal.editor import TradeEditor
from trade_journal.fx_client import FxRateClient
from trade_journal.image_guard import ImageIngestGuard
from trade_journal.models.trade import Trade
from trade_journal.planned_value_cache import PlannedValueCache
from trade_journal.screenshots import ImageStore, ScreenshotService
from trade_journal.state_machine import TradeStateMachine

logger = structlog.get_logger()


class TradeJournal:
    def __init__(self, settings: Settings, image_store: ImageStore | None = None) -> None:
        self.settings = settings
        self.fx_client = FxRateClient(settings)
        self.reconciler = BalanceReconciler()
        self.state_machine = TradeStateMachine(
            planned_cache=PlannedValueCache(self.fx_client),
            reconciler=self.reconciler,
        )
        self.image_guard = ImageIngestGuard(
            max_screenshots=settings.MAX_SCREENSHOTS_PER_TRADE,
            max_bytes=settings.MAX_SCREENSHOT_BYTES,
            max_width=settings.SCREENSHOT_MAX_WIDTH,
            max_height=settings.SCREENSHOT_MAX_HEIGHT,
        )
        self.screenshots = ScreenshotService(self.image_guard, image_store)

        self.engine, session_factory = open_database(settings)
        self.trades = TradeRepository(session_factory, self.reconciler)
        self.accounts = AccountRepository(session_factory)

    def open_editor(self, trade: Trade) -> TradeEditor:
        return TradeEditor(
            trade,
            state_machine=self.state_machine,
            persist_trade=self.trades,
            delay_seconds=self.settings.AUTOSAVE_DELAY_SECONDS,
            screenshot_service=self.screenshots,
        )

    async def aclose(self) -> None:
        await self.engine.dispose()
        logger.info("trade_journal_closed")
