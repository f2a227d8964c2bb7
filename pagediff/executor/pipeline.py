"""Comparison pipeline — capture both environments, diff, and record each target."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from pagediff.imaging.comparison import compare_image_files
from pagediff.models.config import RunConfig
from pagediff.models.results import ArtifactPaths, ComparisonResult, TaskOutcome
from pagediff.url_utils import artifact_names, join_url, sanitize_target

from .capture import CaptureError, CaptureProvider
from .resource_pool import ResourcePool
from .retry import RetryPolicy
from .scheduler import ConcurrencyScheduler

logger = logging.getLogger(__name__)


class ComparisonPipeline:
    """Runs capture-and-diff for every target through the retry policy and scheduler.

    One attempt leases a single pool resource, captures the baseline and
    then the candidate with it, and releases it before the (CPU-bound)
    diff runs in a worker thread.
    """

    def __init__(
        self,
        config: RunConfig,
        capture: CaptureProvider,
        pool: ResourcePool[Any],
        retry: Optional[RetryPolicy] = None,
        scheduler: Optional[ConcurrencyScheduler] = None,
    ):
        self.config = config
        self.capture = capture
        self.pool = pool
        self.retry = retry or RetryPolicy(
            max_attempts=config.retry.max_attempts,
            backoff_seconds=config.retry.backoff_seconds,
        )
        self.scheduler = scheduler or ConcurrencyScheduler(config.concurrency)
        self._artifact_names: dict[str, str] = {}

    def artifact_paths(self, target: str) -> ArtifactPaths:
        name = self._artifact_names.get(target) or sanitize_target(target)
        ext = self.config.capture.extension
        return ArtifactPaths(
            baseline=str(self.config.baseline_dir / f"{name}.{ext}"),
            candidate=str(self.config.candidate_dir / f"{name}.{ext}"),
            diff=str(self.config.diff_dir / f"{name}_diff.{ext}"),
        )

    async def run(
        self,
        targets: Sequence[str],
        on_complete: Optional[Callable[[TaskOutcome], None]] = None,
    ) -> list[TaskOutcome]:
        """Process every target; returns one outcome per target in target order."""
        logger.info("Comparing %d targets (concurrency=%d, pool=%d, attempts=%d)",
                    len(targets), self.scheduler.limit, self.pool.size, self.retry.max_attempts)
        self._artifact_names = artifact_names(targets)
        return await self.scheduler.run(targets, self.process_target, on_complete)

    async def process_target(self, target: str) -> TaskOutcome:
        task_start = time.time()
        paths = self.artifact_paths(target)

        async def _attempt(attempt: int) -> ComparisonResult:
            return await self._run_attempt(target, attempt, paths, task_start)

        return await self.retry.run(target, _attempt)

    async def _run_attempt(
        self, target: str, attempt: int, paths: ArtifactPaths, task_start: float,
    ) -> ComparisonResult:
        baseline_path = Path(paths.baseline)
        candidate_path = Path(paths.candidate)
        diff_path = Path(paths.diff)
        for path in (baseline_path, candidate_path, diff_path):
            path.unlink(missing_ok=True)

        async with self.pool.lease() as resource:
            await self.capture.capture(
                resource, join_url(self.config.baseline_url, target), baseline_path,
            )
            await self.capture.capture(
                resource, join_url(self.config.candidate_url, target), candidate_path,
            )

        diff = await asyncio.to_thread(
            compare_image_files,
            baseline_path,
            candidate_path,
            diff_path,
            self.config.threshold,
            self.config.capture.image_format,
            self.config.capture.jpeg_quality,
        )

        missing = [str(p) for p in (baseline_path, candidate_path, diff_path) if not p.exists()]
        if missing:
            raise CaptureError(f"Artifacts missing after comparison: {', '.join(missing)}")

        duration = round(time.time() - task_start, 2)
        if diff.matched:
            logger.info("[MATCH] %s (%.1fs)", target, duration)
        else:
            logger.info("[DIFF] %s: %d pixels differ (%.1fs)", target, diff.diff_pixel_count, duration)

        return ComparisonResult(
            target=target,
            diff_pixel_count=diff.diff_pixel_count,
            duration_seconds=duration,
            artifact_paths=paths,
            attempts=attempt,
            width=diff.diff_image.width,
            height=diff.diff_image.height,
        )
