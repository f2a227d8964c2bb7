"""File-level comparison: decode two captures, normalize, diff, write the diff image."""

from __future__ import annotations

import logging
from pathlib import Path

from pagediff.models.image import RasterImage

from .diff_engine import DEFAULT_THRESHOLD, DiffResult, compute_diff
from .normalizer import normalize_pair

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg")


def compare_image_files(
    baseline_path: Path,
    candidate_path: Path,
    diff_path: Path,
    threshold: float = DEFAULT_THRESHOLD,
    image_format: str = "png",
    quality: int = 100,
) -> DiffResult:
    """Diff two image files of any size and save the highlight image."""
    baseline = RasterImage.open(baseline_path)
    candidate = RasterImage.open(candidate_path)
    baseline, candidate = normalize_pair(baseline, candidate)
    result = compute_diff(baseline, candidate, threshold)
    result.diff_image.save(diff_path, fmt=image_format, quality=quality)
    return result


def pair_image_files(baseline_dir: Path, candidate_dir: Path) -> dict[str, tuple[Path, Path]]:
    """Match images in two directories by file stem, in sorted order.

    Files present on only one side are logged and left out.
    """
    def _index(directory: Path) -> dict[str, Path]:
        return {
            p.stem: p for p in sorted(directory.iterdir())
            if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
        }

    baseline = _index(baseline_dir)
    candidate = _index(candidate_dir)
    for stem in sorted(baseline.keys() - candidate.keys()):
        logger.warning("No candidate image for %s, skipping", stem)
    for stem in sorted(candidate.keys() - baseline.keys()):
        logger.warning("No baseline image for %s, skipping", stem)
    return {stem: (baseline[stem], candidate[stem]) for stem in sorted(baseline.keys() & candidate.keys())}
