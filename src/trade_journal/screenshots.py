"""Screenshot upload path: compress, upload, guard-add; best-effort remove."""

from __future__ import annotations

from typing import Protocol

import structlog

from trade_journal.image_guard import ImageIngestGuard
from trade_journal.models.trade import new_id

logger = structlog.get_logger()


class ImageStore(Protocol):
    async def upload(self, name: str, data_url: str) -> str: ...

    async def delete(self, urls: list[str]) -> None: ...


class ScreenshotService:
    def __init__(self, guard: ImageIngestGuard, image_store: ImageStore | None = None) -> None:
        self.guard = guard
        self.image_store = image_store

    async def add_image(self, screenshots: list[str], raw: bytes) -> list[str]:
        """
        Compress and attach one image. Without an image store the inline data
        URL is kept. Any failure leaves ``screenshots`` unchanged.
        """
        self.guard.check_capacity(screenshots)
        data_url = await self.guard.compress_async(raw)

        if self.image_store is None:
            return self.guard.add_screenshot(screenshots, data_url)

        name = f"{new_id('pasted')}.jpg"
        try:
            url = await self.image_store.upload(name, data_url)
        except Exception:
            logger.exception("screenshot_upload_failed", name=name)
            raise

        try:
            updated = self.guard.add_screenshot(screenshots, url)
        except ValueError:
            await self._delete_quietly([url])
            raise
        logger.info("screenshot_added", url=url, count=len(updated))
        return updated

    async def remove_image(self, screenshots: list[str], index: int) -> list[str]:
        if not 0 <= index < len(screenshots):
            return list(screenshots)
        target = screenshots[index]
        if self.image_store is not None and not target.startswith("data:"):
            await self._delete_quietly([target])
        return [s for i, s in enumerate(screenshots) if i != index]

    async def _delete_quietly(self, urls: list[str]) -> None:
        try:
            await self.image_store.delete(urls)
        except Exception as e:
            logger.warning("screenshot_delete_failed", urls=urls, error=str(e))
