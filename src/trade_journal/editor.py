"""One open trade editor: field edits auto-save, outcome changes persist immediately."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog

from trade_journal.models.commands import (
    CloseTrade,
    MarkMissed,
    ReopenTrade,
    TradeCommand,
    TransitionResult,
    UpdateField,
)
from trade_journal.save_coordinator import DEFAULT_DELAY_SECONDS, SaveCoordinator
from trade_journal.state_machine import InvalidTransition

if TYPE_CHECKING:
    from trade_journal.models.trade import Trade
    from trade_journal.screenshots import ScreenshotService
    from trade_journal.state_machine import TradeStateMachine

logger = structlog.get_logger()

# persist_trade(trade, should_close, balance_delta)
PersistTrade = Callable[["Trade", bool, float], Awaitable[None]]


class TradeEditor:
    """
    Edits made while a transition is persisting are recorded and replayed
    onto the transition's result, so an auto-save never writes a snapshot
    older than the last outcome change.
    """

    def __init__(
        self,
        trade: Trade,
        state_machine: TradeStateMachine,
        persist_trade: PersistTrade,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        screenshot_service: ScreenshotService | None = None,
    ) -> None:
        self.trade = trade
        self.persisted = trade
        self.state_machine = state_machine
        self.persist_trade = persist_trade
        self.screenshot_service = screenshot_service
        self.saver: SaveCoordinator[Trade] = SaveCoordinator(self._autosave, delay_seconds)
        self._lock = asyncio.Lock()
        self._edits_in_transition: list[UpdateField] | None = None

    async def __aenter__(self) -> TradeEditor:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close_editor()

    async def close_editor(self) -> None:
        await self.saver.flush_and_dispose()

    def update_field(self, field: str, value: Any) -> Trade:
        command = UpdateField(field=field, value=value)
        self.trade = self.state_machine.apply_edit(self.trade, command)
        if self._edits_in_transition is not None:
            self._edits_in_transition.append(command)
        self.saver.schedule(self.trade)
        return self.trade

    async def add_screenshot(self, raw: bytes) -> Trade:
        if self.screenshot_service is None:
            raise RuntimeError("No screenshot service configured")
        screenshots = await self.screenshot_service.add_image(self.trade.screenshots, raw)
        return self.update_field("screenshots", screenshots)

    async def remove_screenshot(self, index: int) -> Trade:
        if self.screenshot_service is None:
            raise RuntimeError("No screenshot service configured")
        screenshots = await self.screenshot_service.remove_image(self.trade.screenshots, index)
        return self.update_field("screenshots", screenshots)

    async def close_trade(self, command: CloseTrade) -> TransitionResult:
        return await self._transition(command)

    async def reopen(self) -> TransitionResult:
        return await self._transition(ReopenTrade())

    async def mark_missed(self) -> TransitionResult:
        return await self._transition(MarkMissed())

    async def _transition(self, command: TradeCommand) -> TransitionResult:
        # Pending edits are saved first so the transition starts from persisted state.
        await self.saver.flush()
        async with self._lock:
            self._edits_in_transition = []
            try:
                result = await self.state_machine.handle(self.trade, command, self.persisted)
                await self.persist_trade(result.trade, result.should_close, result.balance_delta)
            finally:
                late_edits, self._edits_in_transition = self._edits_in_transition, None

            self.trade = self.persisted = result.trade
            if late_edits:
                self._replay(late_edits)
            return result

    def _replay(self, edits: list[UpdateField]) -> None:
        for command in edits:
            try:
                self.trade = self.state_machine.apply_edit(self.trade, command)
            except InvalidTransition as e:
                logger.warning(
                    "edit_dropped_after_transition",
                    trade_id=self.trade.id,
                    field=command.field,
                    reason=str(e),
                )
        self.saver.schedule(self.trade)

    async def _autosave(self, _snapshot: Trade) -> None:
        async with self._lock:
            # A transition may have finished while this save waited; the
            # current draft already carries its result plus replayed edits.
            draft = self.trade
            result = await self.state_machine.autosave(draft, self.persisted)
            await self.persist_trade(result.trade, False, result.balance_delta)
            self.persisted = result.trade
            if self.trade is draft:
                # No edits arrived meanwhile: adopt derived tags/status/planned values.
                self.trade = result.trade
            logger.debug("trade_autosaved", trade_id=result.trade.id)
