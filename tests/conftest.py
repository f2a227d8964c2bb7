"""Pytest configuration and shared fixtures."""

import asyncio
from pathlib import Path

import numpy as np
import pytest

from pagediff.executor.capture import CaptureError
from pagediff.models.config import CaptureConfig, RetryConfig, RunConfig
from pagediff.models.image import RasterImage

BASELINE_URL = "https://www.example.com"
CANDIDATE_URL = "https://dev.example.com"


# ============================================================================
# Image helpers
# ============================================================================


def solid(width: int, height: int, color=(255, 255, 255, 255)) -> RasterImage:
    return RasterImage.blank(width, height, color)


def with_changed_pixels(img: RasterImage, count: int, color=(0, 0, 0, 255)) -> RasterImage:
    """Copy of ``img`` with the first ``count`` pixels (row-major) recoloured."""
    pixels = img.as_array().copy().reshape(-1, 4)
    pixels[:count] = color
    return RasterImage.from_array(pixels.reshape(img.height, img.width, 4))


# ============================================================================
# Fake capture provider
# ============================================================================


class FakeCapture:
    """Stands in for the browser: writes prepared images for known locations.

    ``failures`` maps a location to how many times it should fail before
    succeeding; a negative count fails forever.
    """

    def __init__(self, images: dict, failures: dict | None = None, delay: float = 0.0):
        self.images = images
        self.failures = dict(failures or {})
        self.delay = delay
        self.calls: list[tuple] = []
        self.started_with: int | None = None
        self.closed = False

    async def start(self, page_count: int) -> list:
        self.started_with = page_count
        return [f"page-{i}" for i in range(page_count)]

    async def close(self) -> None:
        self.closed = True

    async def capture(self, resource, location: str, output_path: Path) -> Path:
        self.calls.append((resource, location))
        if self.delay:
            await asyncio.sleep(self.delay)
        remaining = self.failures.get(location, 0)
        if remaining:
            if remaining > 0:
                self.failures[location] = remaining - 1
            raise CaptureError(f"Timeout 60000ms exceeded loading {location}")
        if location not in self.images:
            raise CaptureError(f"net::ERR_NAME_NOT_RESOLVED at {location}")
        self.images[location].save(output_path)
        return Path(output_path)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def capture_config() -> CaptureConfig:
    """Capture settings with no settle delay."""
    return CaptureConfig(settle_ms=0, scroll_to_bottom=False)


@pytest.fixture
def run_config(tmp_path: Path, capture_config: CaptureConfig) -> RunConfig:
    """Run configuration writing everything under tmp_path."""
    input_file = tmp_path / "urls.txt"
    input_file.write_text("/a\n/b\n")
    return RunConfig(
        baseline_url=BASELINE_URL,
        candidate_url=CANDIDATE_URL,
        input_file=str(input_file),
        screenshot_dir=str(tmp_path / "screenshots"),
        report_output_dir=str(tmp_path / "reports"),
        concurrency=2,
        retry=RetryConfig(max_attempts=3),
        capture=capture_config,
    )


@pytest.fixture
def temp_config_file(run_config: RunConfig, tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_file = tmp_path / "pagediff.json"
    run_config.save(config_file)
    return config_file


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def white_page() -> RasterImage:
    return solid(100, 50)


@pytest.fixture
def changed_page(white_page: RasterImage) -> RasterImage:
    """The white page with 500 pixels turned black."""
    return with_changed_pixels(white_page, 500)


@pytest.fixture
def gradient_image() -> RasterImage:
    """A 16x8 image with distinct colours per pixel."""
    ys, xs = np.mgrid[0:8, 0:16]
    pixels = np.zeros((8, 16, 4), dtype=np.uint8)
    pixels[..., 0] = xs * 16
    pixels[..., 1] = ys * 32
    pixels[..., 2] = 128
    pixels[..., 3] = 255
    return RasterImage.from_array(pixels)
