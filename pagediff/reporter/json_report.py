"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from pagediff.models.results import RunReport


def generate_json_report(report: RunReport, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    data = report.model_dump()
    data["mismatched_targets"] = [r.target for r in report.results if not r.matched]

    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)
