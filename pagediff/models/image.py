"""Decoded raster image used by the normalizer and diff engine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

WHITE = (255, 255, 255, 255)


@dataclass(frozen=True)
class RasterImage:
    """An RGBA pixel buffer with explicit dimensions.

    ``data`` is row-major RGBA, four bytes per pixel, and its length always
    equals ``width * height * 4``.
    """

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Negative image dimensions: {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"Buffer length {len(self.data)} does not match "
                f"{self.width}x{self.height} RGBA ({expected} bytes)"
            )

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    @classmethod
    def blank(cls, width: int, height: int, fill: tuple[int, int, int, int] = WHITE) -> "RasterImage":
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:] = fill
        return cls(width, height, pixels.tobytes())

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "RasterImage":
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected an (h, w, 4) array, got shape {pixels.shape}")
        height, width = pixels.shape[:2]
        return cls(width, height, np.ascontiguousarray(pixels, dtype=np.uint8).tobytes())

    def as_array(self) -> np.ndarray:
        """Return a read-only ``(height, width, 4)`` view of the pixels."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)

    @classmethod
    def from_pil(cls, img: Image.Image) -> "RasterImage":
        rgba = img.convert("RGBA")
        return cls(rgba.width, rgba.height, rgba.tobytes())

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.data)

    @classmethod
    def open(cls, path: str | Path) -> "RasterImage":
        """Decode a PNG or JPEG (or anything Pillow reads) into RGBA."""
        with Image.open(path) as img:
            img.load()
            return cls.from_pil(img)

    def save(self, path: str | Path, fmt: str = "png", quality: int = 100) -> Path:
        """Encode to disk. JPEG has no alpha channel, so it is flattened to RGB."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        img = self.to_pil()
        if fmt.lower() in ("jpeg", "jpg"):
            img.convert("RGB").save(path, format="JPEG", quality=quality)
        else:
            img.save(path, format="PNG")
        return path
