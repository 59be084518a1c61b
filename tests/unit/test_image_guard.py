"""Unit tests for ImageIngestGuard: screenshot budgets and compression."""

from __future__ import annotations

import base64
import io

import pytest
from PIL import Image

from trade_journal.image_guard import (
    ImageIngestGuard,
    ScreenshotRejected,
    estimate_base64_bytes,
    is_inline_image,
    to_data_url,
)


def png_bytes(size=(200, 100), color=(20, 120, 220), mode="RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def noise_png(size=(400, 300)) -> bytes:
    buffer = io.BytesIO()
    Image.effect_noise(size, 120).convert("RGB").save(buffer, format="PNG")
    return buffer.getvalue()


def decode(data_url: str) -> Image.Image:
    header, _, payload = data_url.partition(",")
    assert header == "data:image/jpeg;base64"
    return Image.open(io.BytesIO(base64.b64decode(payload)))


@pytest.fixture
def guard():
    return ImageIngestGuard()


class TestHelpers:
    def test_estimate_matches_decoded_length(self):
        for raw in (b"", b"a", b"ab", b"abc", b"abcd", b"x" * 1000):
            assert estimate_base64_bytes(to_data_url(raw)) == len(raw)

    def test_inline_detection(self):
        assert is_inline_image("data:image/png;base64,AAAA")
        assert not is_inline_image("https://cdn.example.com/a.jpg")


class TestAddScreenshot:
    def test_appends_without_mutating(self, guard):
        existing = ["https://cdn.example.com/1.jpg"]
        updated = guard.add_screenshot(existing, "https://cdn.example.com/2.jpg")
        assert updated == ["https://cdn.example.com/1.jpg", "https://cdn.example.com/2.jpg"]
        assert existing == ["https://cdn.example.com/1.jpg"]

    def test_ninth_screenshot_rejected(self, guard):
        existing = [f"https://cdn.example.com/{i}.jpg" for i in range(8)]
        with pytest.raises(ScreenshotRejected, match="up to 8 screenshots"):
            guard.add_screenshot(existing, "https://cdn.example.com/9.jpg")
        assert len(existing) == 8

    def test_oversized_inline_rejected(self, guard):
        with pytest.raises(ScreenshotRejected, match="too large"):
            guard.add_screenshot([], to_data_url(b"x" * 750_001))

    def test_inline_at_budget_accepted(self, guard):
        assert len(guard.add_screenshot([], to_data_url(b"x" * 750_000))) == 1

    def test_url_size_not_checked(self, guard):
        url = "https://cdn.example.com/" + "a" * 2_000_000
        assert guard.add_screenshot(None, url) == [url]


class TestCompress:
    def test_small_image_kept_under_budget(self, guard):
        data_url = guard.compress(png_bytes())
        assert estimate_base64_bytes(data_url) <= guard.max_bytes
        assert decode(data_url).size == (200, 100)

    def test_large_image_fits_bounds(self, guard):
        image = decode(guard.compress(png_bytes(size=(3840, 2160))))
        assert image.size == (1920, 1080)

    def test_tall_image_bounded_by_height(self, guard):
        image = decode(guard.compress(png_bytes(size=(1000, 2160))))
        assert image.height == 1080
        assert image.width == 500

    def test_alpha_converted_to_rgb(self, guard):
        image = decode(guard.compress(png_bytes(mode="RGBA", color=(0, 0, 0, 0))))
        assert image.mode == "RGB"

    def test_noisy_image_within_budget(self):
        guard = ImageIngestGuard(max_bytes=200_000)
        data_url = guard.compress(noise_png())
        assert estimate_base64_bytes(data_url) <= 200_000

    def test_unreachable_budget_returns_smallest_attempt(self):
        guard = ImageIngestGuard(max_bytes=100)
        data_url = guard.compress(noise_png())
        image = decode(data_url)
        assert estimate_base64_bytes(data_url) > 100
        assert image.width < 400

    def test_unreadable_bytes(self, guard):
        with pytest.raises(ScreenshotRejected, match="Unable to read image"):
            guard.compress(b"definitely not an image")

    async def test_compress_async(self, guard):
        data_url = await guard.compress_async(png_bytes())
        assert data_url.startswith("data:image/jpeg;base64,")
