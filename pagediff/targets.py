"""Target list input — reads page paths from a spreadsheet, CSV, or text file."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable

from openpyxl import load_workbook

from pagediff.url_utils import normalize_target

logger = logging.getLogger(__name__)


class TargetListError(ValueError):
    """The input file held no usable targets."""


def _xlsx_values(path: Path) -> list:
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        # First row is the header
        return [row[0] if row else None for row in sheet.iter_rows(min_row=2, values_only=True)]
    finally:
        workbook.close()


def _csv_values(path: Path) -> list:
    with open(path, newline="", encoding="utf-8-sig") as f:
        rows = list(csv.reader(f))
    return [row[0] if row else None for row in rows[1:]]


def _text_values(path: Path) -> list:
    with open(path, encoding="utf-8") as f:
        return [line for line in f.read().splitlines() if not line.lstrip().startswith("#")]


def clean_targets(values: Iterable) -> list[str]:
    """Normalize raw cell values to unique paths, keeping first-seen order."""
    targets: list[str] = []
    seen: set[str] = set()
    for value in values:
        if value is None:
            continue
        text = str(value).strip()
        if not text:
            continue
        target = normalize_target(text)
        if target in seen:
            logger.warning("Duplicate target %s ignored", target)
            continue
        seen.add(target)
        targets.append(target)
    return targets


def read_targets(path: str | Path) -> list[str]:
    """Read the ordered list of targets from ``path``.

    ``.xlsx`` and ``.csv`` files use the first column of the first sheet,
    skipping the header row. Anything else is read as one target per line.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm"):
        values = _xlsx_values(path)
    elif suffix == ".csv":
        values = _csv_values(path)
    else:
        values = _text_values(path)

    targets = clean_targets(values)
    if not targets:
        raise TargetListError(f"No targets found in {path}")
    logger.info("Loaded %d targets from %s", len(targets), path)
    return targets
