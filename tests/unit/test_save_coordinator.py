"""Unit tests for SaveCoordinator: debounce, flush and dispose."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from trade_journal.save_coordinator import SaveCoordinator

DELAY = 0.01


@pytest.fixture
def persist():
    return AsyncMock()


@pytest.fixture
def saver(persist):
    return SaveCoordinator(persist, delay_seconds=DELAY)


async def test_burst_saves_only_latest(saver, persist):
    saver.schedule("a")
    saver.schedule("b")
    saver.schedule("c")
    await asyncio.sleep(DELAY * 5)

    persist.assert_awaited_once_with("c")
    assert saver.pending is False


async def test_nothing_saved_before_delay(persist):
    saver = SaveCoordinator(persist, delay_seconds=10)
    saver.schedule("a")
    await asyncio.sleep(0)
    persist.assert_not_awaited()
    saver.cancel()


async def test_flush_saves_immediately(persist):
    saver = SaveCoordinator(persist, delay_seconds=10)
    saver.schedule("a")

    assert await saver.flush() is True
    persist.assert_awaited_once_with("a")
    assert await saver.flush() is False


async def test_flush_without_edits_is_noop(saver, persist):
    assert await saver.flush() is False
    persist.assert_not_awaited()


async def test_context_exit_flushes(persist):
    async with SaveCoordinator(persist, delay_seconds=10) as saver:
        saver.schedule("draft")
    persist.assert_awaited_once_with("draft")


async def test_disposed_rejects_schedule(saver):
    await saver.flush_and_dispose()
    with pytest.raises(RuntimeError):
        saver.schedule("late")


async def test_cancel_keeps_snapshot_pending(saver, persist):
    saver.schedule("a")
    saver.cancel()
    await asyncio.sleep(DELAY * 5)

    persist.assert_not_awaited()
    assert saver.pending is True
    await saver.flush()
    persist.assert_awaited_once_with("a")


async def test_failed_flush_stays_pending_and_retries(saver, persist):
    persist.side_effect = [RuntimeError("db down"), None]
    saver.schedule("a")

    with pytest.raises(RuntimeError):
        await saver.flush()
    assert saver.pending is True

    assert await saver.flush() is True
    assert persist.await_count == 2


async def test_failed_timer_save_is_logged_not_raised(saver, persist):
    persist.side_effect = [RuntimeError("db down"), None]
    saver.schedule("a")
    await asyncio.sleep(DELAY * 5)

    assert saver.pending is True
    await saver.flush_and_dispose()
    assert persist.await_count == 2


async def test_flush_waits_for_in_flight_save():
    started = asyncio.Event()
    release = asyncio.Event()
    saved = []

    async def slow_persist(snapshot):
        started.set()
        await release.wait()
        saved.append(snapshot)

    saver = SaveCoordinator(slow_persist, delay_seconds=DELAY)
    saver.schedule("a")
    await started.wait()

    flush = asyncio.create_task(saver.flush())
    await asyncio.sleep(0)
    assert not flush.done()

    release.set()
    assert await flush is False
    assert saved == ["a"]
