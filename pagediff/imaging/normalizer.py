"""Image normalizer — brings two captures onto a common canvas.

Smaller images are padded with opaque white, anchored at the top-left
corner. Cropping to the common area would hide content that only exists
on one side (a page that grew longer), so the canvas always grows.
"""

from __future__ import annotations

import logging

import numpy as np

from pagediff.models.image import WHITE, RasterImage

logger = logging.getLogger(__name__)


class EmptyImageError(ValueError):
    """Raised when an image with zero width or height reaches the normalizer."""


def pad_image(img: RasterImage, width: int, height: int) -> RasterImage:
    """Place ``img`` on a white ``width`` x ``height`` canvas."""
    if img.width == width and img.height == height:
        return img
    if width < img.width or height < img.height:
        raise ValueError(
            f"Cannot pad {img.width}x{img.height} image down to {width}x{height}"
        )
    canvas = np.empty((height, width, 4), dtype=np.uint8)
    canvas[:] = WHITE
    canvas[: img.height, : img.width] = img.as_array()
    return RasterImage.from_array(canvas)


def normalize_pair(a: RasterImage, b: RasterImage) -> tuple[RasterImage, RasterImage]:
    """Return both images padded to ``(max(w1, w2), max(h1, h2))``."""
    for label, img in (("first", a), ("second", b)):
        if img.is_empty:
            raise EmptyImageError(f"The {label} image is empty ({img.width}x{img.height})")

    if a.size == b.size:
        return a, b

    width = max(a.width, b.width)
    height = max(a.height, b.height)
    logger.debug("Padding %dx%d and %dx%d to %dx%d",
                 a.width, a.height, b.width, b.height, width, height)
    return pad_image(a, width, height), pad_image(b, width, height)
