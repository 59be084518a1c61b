"""Debounced auto-save with a guaranteed flush on exit."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_DELAY_SECONDS = 1.0


class SaveCoordinator(Generic[T]):
    """
    Each ``schedule()`` restarts the delay window; only the latest snapshot is
    persisted. ``flush_and_dispose()`` (also run by ``async with`` exit)
    cancels the timer and persists any unsaved snapshot immediately.
    """

    def __init__(
        self,
        persist: Callable[[T], Awaitable[None]],
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
    ) -> None:
        self.persist = persist
        self.delay_seconds = delay_seconds
        self._latest: T | None = None
        self._dirty = False
        self._disposed = False
        self._timer: asyncio.Task | None = None
        self._persisting: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def pending(self) -> bool:
        return self._dirty

    async def __aenter__(self) -> SaveCoordinator[T]:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.flush_and_dispose()

    def schedule(self, snapshot: T) -> None:
        if self._disposed:
            raise RuntimeError("SaveCoordinator has been disposed")
        self._latest = snapshot
        self._dirty = True
        self._cancel_timer()
        self._timer = asyncio.create_task(self._delayed_save())

    def cancel(self) -> None:
        """Drop the pending timer; the snapshot stays unsaved until the next flush."""
        self._cancel_timer()

    async def flush(self) -> bool:
        """Persist the latest unsaved snapshot now. Returns True if a save ran."""
        self._cancel_timer()
        if self._persisting is not None:
            await asyncio.shield(self._persisting)
        if not self._dirty:
            return False
        await self._save_latest()
        logger.debug("autosave_flushed")
        return True

    async def flush_and_dispose(self) -> None:
        try:
            await self.flush()
        finally:
            self._disposed = True

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _delayed_save(self) -> None:
        await asyncio.sleep(self.delay_seconds)
        # Past this point the save is no longer cancellable by new edits.
        self._timer = None
        self._persisting = asyncio.current_task()
        try:
            await self._save_latest()
        except Exception:
            logger.exception("autosave_failed")
        finally:
            self._persisting = None

    async def _save_latest(self) -> None:
        async with self._lock:
            snapshot = self._latest
            self._dirty = False
            try:
                await self.persist(snapshot)
            except Exception:
                # Keep it pending so the next flush retries.
                self._dirty = True
                raise
