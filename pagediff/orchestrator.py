"""Pipeline orchestrator — coordinates targets, capture/compare, aggregation, and report stages."""

from __future__ import annotations

import asyncio
import logging
import shutil
import time
import uuid
from pathlib import Path
from typing import Any, Optional

from pagediff.executor.capture import CaptureSession, PlaywrightCapture
from pagediff.executor.pipeline import ComparisonPipeline
from pagediff.executor.resource_pool import ResourcePool
from pagediff.executor.retry import RetryPolicy
from pagediff.executor.scheduler import ConcurrencyScheduler
from pagediff.imaging.comparison import compare_image_files, pair_image_files
from pagediff.models.config import RunConfig
from pagediff.models.results import ArtifactPaths, ComparisonResult, RunReport, TaskOutcome
from pagediff.reporter.aggregator import aggregate
from pagediff.reporter.reporter import Reporter
from pagediff.targets import TargetListError, read_targets

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates a full comparison run.

    ``capture`` may be any object with ``start(page_count)``, ``capture(...)``
    and ``close()``; by default a Playwright browser is launched.
    """

    def __init__(self, config: RunConfig, capture: Optional[Any] = None):
        self.config = config
        self.run_id = f"run_{uuid.uuid4().hex[:8]}"
        self.capture = capture

    def run_full_pipeline(self) -> dict:
        """Execute the complete targets → compare → aggregate → report pipeline."""
        return asyncio.run(self._run_pipeline())

    async def _run_pipeline(self) -> dict:
        start = time.time()
        logger.info("=== Starting visual comparison %s: %s vs %s ===",
                    self.run_id, self.config.baseline_url, self.config.candidate_url)

        # Stage 1: Targets
        logger.info("--- Stage 1: Load targets ---")
        targets = read_targets(self.config.input_file)
        self._prepare_output_dirs()

        # Stage 2: Capture and compare
        logger.info("--- Stage 2: Capture & compare (%d targets) ---", len(targets))
        stage_start = time.time()
        outcomes = await self._compare(targets)
        logger.info("--- Stage 2 complete in %.1fs ---", time.time() - stage_start)

        return self._finish(outcomes, start, self.config.baseline_url, self.config.candidate_url)

    async def _compare(self, targets: list[str]) -> list[TaskOutcome]:
        capture = self.capture or PlaywrightCapture(self.config.capture, CaptureSession())
        try:
            resources = await capture.start(self.config.pool_size)
            pool = ResourcePool(resources, wait_warning_seconds=self.config.resource_wait_warning_seconds)
            pipeline = ComparisonPipeline(self.config, capture, pool)
            return await pipeline.run(targets)
        finally:
            await capture.close()

    def run_compare_only(
        self, baseline_dir: Path, candidate_dir: Path, diff_dir: Optional[Path] = None,
    ) -> dict:
        """Diff already-captured screenshots from two directories."""
        return asyncio.run(self._compare_directories(
            Path(baseline_dir), Path(candidate_dir), Path(diff_dir or self.config.diff_dir),
        ))

    async def _compare_directories(self, baseline_dir: Path, candidate_dir: Path, diff_dir: Path) -> dict:
        start = time.time()
        for directory in (baseline_dir, candidate_dir):
            if not directory.is_dir():
                raise FileNotFoundError(f"Directory not found: {directory}")
        pairs = pair_image_files(baseline_dir, candidate_dir)
        if not pairs:
            raise TargetListError(f"No matching images in {baseline_dir} and {candidate_dir}")
        diff_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Comparing %d image pairs from %s and %s", len(pairs), baseline_dir, candidate_dir)

        ext = self.config.capture.extension

        async def _diff_pair(name: str, attempt: int) -> ComparisonResult:
            task_start = time.time()
            baseline_path, candidate_path = pairs[name]
            diff_path = diff_dir / f"{name}_diff.{ext}"
            diff = await asyncio.to_thread(
                compare_image_files, baseline_path, candidate_path, diff_path,
                self.config.threshold, self.config.capture.image_format,
                self.config.capture.jpeg_quality,
            )
            return ComparisonResult(
                target=name,
                diff_pixel_count=diff.diff_pixel_count,
                duration_seconds=round(time.time() - task_start, 2),
                artifact_paths=ArtifactPaths(
                    baseline=str(baseline_path), candidate=str(candidate_path), diff=str(diff_path),
                ),
                attempts=attempt,
                width=diff.diff_image.width,
                height=diff.diff_image.height,
            )

        # Local files: a failure is not transient, so one attempt only
        retry = RetryPolicy(max_attempts=1)
        scheduler = ConcurrencyScheduler(self.config.concurrency)
        outcomes = await scheduler.run(
            list(pairs),
            lambda name: retry.run(name, lambda attempt: _diff_pair(name, attempt)),
        )
        return self._finish(outcomes, start, str(baseline_dir), str(candidate_dir))

    def _finish(self, outcomes: list[TaskOutcome], start: float, baseline: str, candidate: str) -> dict:
        # Stage 3: Aggregate (raises NoResults when nothing succeeded)
        logger.info("--- Stage 3: Aggregate ---")
        report = aggregate(
            outcomes,
            run_id=self.run_id,
            baseline_url=baseline,
            candidate_url=candidate,
            started_at=start,
            completed_at=time.time(),
        )

        # Stage 4: Report
        logger.info("--- Stage 4: Report ---")
        reports = self._report(report)

        logger.info("=== Run complete in %.1fs: %d matched, %d differ, %d failed ===",
                    report.summary.total_duration_seconds, report.summary.matched,
                    report.summary.mismatched, report.summary.failed)
        return {"run_id": self.run_id, "report": report, "reports": reports}

    def _report(self, report: RunReport) -> dict[str, str]:
        reporter = Reporter(self.config)
        return reporter.generate_reports(report, output_dir=Path(self.config.report_output_dir))

    def _prepare_output_dirs(self) -> None:
        for directory in (self.config.baseline_dir, self.config.candidate_dir, self.config.diff_dir):
            if self.config.clean_output_dirs and directory.exists():
                logger.debug("Clearing %s", directory)
                shutil.rmtree(directory)
            directory.mkdir(parents=True, exist_ok=True)
