"""Report generation orchestration."""

from __future__ import annotations

import logging
from pathlib import Path

from pagediff.models.config import RunConfig
from pagediff.models.results import RunReport

from .html_report import generate_html_report
from .json_report import generate_json_report

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("html", "json")


class Reporter:
    """Renders a RunReport into the configured report formats."""

    def __init__(self, config: RunConfig):
        self.config = config

    def generate_reports(self, report: RunReport, output_dir: Path | None = None) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        out_dir = output_dir or Path(self.config.report_output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Report output directory: %s", out_dir)

        missing = self.missing_artifacts(report)
        if missing:
            logger.warning("%d artifact(s) referenced by the report are missing: %s",
                           len(missing), ", ".join(missing[:5]))

        for fmt in self.config.report_formats:
            if fmt not in SUPPORTED_FORMATS:
                logger.warning("Unknown report format '%s' ignored", fmt)

        generated = {}
        if "html" in self.config.report_formats:
            path = out_dir / f"report_{report.run_id}.html"
            logger.debug("Generating HTML report...")
            generate_html_report(report, path)
            generated["html"] = str(path)
            logger.info("HTML report: %s", path)

        if "json" in self.config.report_formats:
            path = out_dir / f"report_{report.run_id}.json"
            logger.debug("Generating JSON report...")
            generate_json_report(report, path)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        return generated

    @staticmethod
    def missing_artifacts(report: RunReport) -> list[str]:
        missing = []
        for r in report.results:
            paths = r.artifact_paths
            for p in (paths.baseline, paths.candidate, paths.diff):
                if not Path(p).exists():
                    missing.append(p)
        return missing
