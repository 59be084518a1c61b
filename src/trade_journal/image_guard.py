"""Screenshot count/size budgets and JPEG compression to fit them."""

from __future__ import annotations

import asyncio
import base64
import io

import structlog
from PIL import Image, UnidentifiedImageError

logger = structlog.get_logger()

MAX_SCREENSHOTS_PER_TRADE = 8
MAX_SCREENSHOT_BYTES = 750_000
MAX_WIDTH = 1920
MAX_HEIGHT = 1080

MAX_ATTEMPTS = 8
START_QUALITY = 0.82
MIN_QUALITY = 0.55
QUALITY_STEP = 0.08
MIN_SCALE = 0.5
SCALE_STEP = 0.85


class ScreenshotRejected(ValueError):
    pass


def is_inline_image(screenshot: str) -> bool:
    return isinstance(screenshot, str) and screenshot.startswith("data:image")


def estimate_base64_bytes(data_url: str) -> int:
    """Decoded size of the base64 payload of a data URL."""
    _, _, payload = data_url.partition(",")
    payload = "".join(payload.split())
    if not payload:
        return 0
    padding = 2 if payload.endswith("==") else 1 if payload.endswith("=") else 0
    return max(0, (len(payload) * 3) // 4 - padding)


def to_data_url(data: bytes, mime: str = "image/jpeg") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


class ImageIngestGuard:
    def __init__(
        self,
        max_screenshots: int = MAX_SCREENSHOTS_PER_TRADE,
        max_bytes: int = MAX_SCREENSHOT_BYTES,
        max_width: int = MAX_WIDTH,
        max_height: int = MAX_HEIGHT,
    ) -> None:
        self.max_screenshots = max_screenshots
        self.max_bytes = max_bytes
        self.max_width = max_width
        self.max_height = max_height

    def check_capacity(self, existing: list[str] | None) -> None:
        if len(existing or []) >= self.max_screenshots:
            raise ScreenshotRejected(
                f"You can add up to {self.max_screenshots} screenshots per trade."
            )

    def add_screenshot(self, existing: list[str] | None, screenshot: str) -> list[str]:
        """Return a new list with ``screenshot`` appended; ``existing`` is left as is."""
        existing = list(existing or [])
        self.check_capacity(existing)
        if is_inline_image(screenshot) and estimate_base64_bytes(screenshot) > self.max_bytes:
            raise ScreenshotRejected(
                "Screenshot is still too large after compression. Try a smaller crop."
            )
        return [*existing, screenshot]

    def compress(self, raw: bytes) -> str:
        """
        Encode ``raw`` as a JPEG data URL under ``max_bytes`` where possible.

        Fit to max bounds, then up to MAX_ATTEMPTS encodes: lower quality
        down to MIN_QUALITY first, then shrink down to MIN_SCALE. If the
        budget is never met the smallest attempt is returned.
        """
        try:
            image = Image.open(io.BytesIO(raw))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ScreenshotRejected("Unable to read image.") from e

        if image.mode != "RGB":
            image = image.convert("RGB")

        width, height = self._fit(image.width, image.height)
        scale = 1.0
        quality = START_QUALITY
        best: bytes | None = None

        for attempt in range(MAX_ATTEMPTS):
            w = max(1, round(width * scale))
            h = max(1, round(height * scale))
            encoded = self._encode(image.resize((w, h), Image.Resampling.LANCZOS), quality)

            if best is None or len(encoded) < len(best):
                best = encoded
            if len(encoded) <= self.max_bytes:
                logger.debug("image_compressed", attempt=attempt + 1, bytes=len(encoded), size=(w, h))
                return to_data_url(encoded)

            if quality > MIN_QUALITY:
                quality = max(MIN_QUALITY, quality - QUALITY_STEP)
            else:
                scale = max(MIN_SCALE, scale * SCALE_STEP)

        logger.warning("image_budget_not_met", bytes=len(best), max_bytes=self.max_bytes)
        return to_data_url(best)

    async def compress_async(self, raw: bytes) -> str:
        return await asyncio.to_thread(self.compress, raw)

    def _fit(self, width: int, height: int) -> tuple[int, int]:
        ratio = min(1.0, self.max_width / width, self.max_height / height)
        return max(1, round(width * ratio)), max(1, round(height * ratio))

    @staticmethod
    def _encode(image: Image.Image, quality: float) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=round(quality * 100))
        return buffer.getvalue()
