"""Pixel diff engine — perceptual per-pixel comparison of two equal-sized images."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from pagediff.models.image import RasterImage

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.1

# Largest possible weighted YIQ distance between two opaque colours
MAX_YIQ_DELTA = 35215.0

DIFF_COLOR = (255, 0, 0, 255)
# Matching pixels are drawn as the baseline's luminance faded toward white
FADE_ALPHA = 0.1


class DimensionMismatch(ValueError):
    """Raised when two images of different dimensions reach the diff engine."""


@dataclass(frozen=True)
class DiffResult:
    diff_pixel_count: int
    diff_image: RasterImage

    @property
    def matched(self) -> bool:
        return self.diff_pixel_count == 0


def _luma(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.29889531 + rgb[..., 1] * 0.58662247 + rgb[..., 2] * 0.11448223


def _in_phase(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.59597799 - rgb[..., 1] * 0.27417610 - rgb[..., 2] * 0.32180189


def _quadrature(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.21147017 - rgb[..., 1] * 0.52261711 + rgb[..., 2] * 0.31114694


def _blend_on_white(pixels: np.ndarray) -> np.ndarray:
    rgb = pixels[..., :3].astype(np.float64)
    alpha = pixels[..., 3:4].astype(np.float64) / 255.0
    return 255.0 + (rgb - 255.0) * alpha


def color_delta(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Weighted squared YIQ distance per pixel for two ``(h, w, 4)`` arrays."""
    rgb_a = _blend_on_white(a)
    rgb_b = _blend_on_white(b)
    y = _luma(rgb_a) - _luma(rgb_b)
    i = _in_phase(rgb_a) - _in_phase(rgb_b)
    q = _quadrature(rgb_a) - _quadrature(rgb_b)
    return 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q


def _faded(pixels: np.ndarray) -> np.ndarray:
    alpha = FADE_ALPHA * pixels[..., 3].astype(np.float64) / 255.0
    grey = 255.0 + (_luma(pixels[..., :3].astype(np.float64)) - 255.0) * alpha
    grey = np.clip(np.rint(grey), 0, 255).astype(np.uint8)
    out = np.empty(pixels.shape, dtype=np.uint8)
    out[..., 0] = grey
    out[..., 1] = grey
    out[..., 2] = grey
    out[..., 3] = 255
    return out


def compute_diff(
    baseline: RasterImage,
    candidate: RasterImage,
    threshold: float = DEFAULT_THRESHOLD,
) -> DiffResult:
    """Count pixels whose perceptual distance exceeds ``threshold`` (0-1).

    The returned diff image paints differing pixels red on top of a faded
    greyscale rendering of the baseline.
    """
    if baseline.size != candidate.size:
        raise DimensionMismatch(
            f"Image sizes differ: {baseline.width}x{baseline.height} "
            f"vs {candidate.width}x{candidate.height}"
        )
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"Threshold must be between 0 and 1, got {threshold}")

    a = baseline.as_array()
    b = candidate.as_array()
    out = _faded(a)

    if baseline.data == candidate.data:
        return DiffResult(0, RasterImage.from_array(out))

    max_delta = MAX_YIQ_DELTA * threshold * threshold
    mask = color_delta(a, b) > max_delta
    out[mask] = DIFF_COLOR
    count = int(np.count_nonzero(mask))
    logger.debug("Diff: %d of %d pixels differ (threshold %.3f)",
                 count, baseline.width * baseline.height, threshold)
    return DiffResult(count, RasterImage.from_array(out))
