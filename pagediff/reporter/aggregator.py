"""Result aggregation — partitions outcomes and computes run timing."""

from __future__ import annotations

import logging
import time
from typing import Iterable

from pagediff.models.results import (
    ComparisonResult,
    RunReport,
    RunSummary,
    TaskFailure,
    TaskOutcome,
)

logger = logging.getLogger(__name__)


class NoResults(Exception):
    """No target completed, so there is nothing to summarize."""

    def __init__(self, failures: list[TaskFailure]):
        self.failures = failures
        super().__init__(
            f"No comparisons succeeded ({len(failures)} target(s) failed)"
        )


def partition_outcomes(
    outcomes: Iterable[TaskOutcome],
) -> tuple[list[ComparisonResult], list[TaskFailure]]:
    results: list[ComparisonResult] = []
    failures: list[TaskFailure] = []
    for outcome in outcomes:
        if isinstance(outcome, ComparisonResult):
            results.append(outcome)
        else:
            failures.append(outcome)
    return results, failures


def summarize(
    results: list[ComparisonResult],
    failures: list[TaskFailure],
    started_at: float,
    completed_at: float,
) -> RunSummary:
    """Build the run summary; raises NoResults when nothing succeeded."""
    if not results:
        raise NoResults(failures)

    average = sum(r.duration_seconds for r in results) / len(results)
    matched = sum(1 for r in results if r.matched)
    return RunSummary(
        total_urls=len(results),
        matched=matched,
        mismatched=len(results) - matched,
        failed=len(failures),
        average_duration_seconds=round(average, 2),
        total_duration_seconds=round(completed_at - started_at, 2),
        started_at=_iso(started_at),
        completed_at=_iso(completed_at),
    )


def aggregate(
    outcomes: Iterable[TaskOutcome],
    run_id: str,
    baseline_url: str,
    candidate_url: str,
    started_at: float,
    completed_at: float,
) -> RunReport:
    """Turn the drained outcome set into a report for the renderers.

    ``started_at`` and ``completed_at`` are epoch seconds for the whole run.
    """
    results, failures = partition_outcomes(outcomes)
    if failures:
        logger.warning("%d target(s) failed: %s",
                       len(failures), ", ".join(f.target for f in failures))
    summary = summarize(results, failures, started_at, completed_at)
    return RunReport(
        run_id=run_id,
        baseline_url=baseline_url,
        candidate_url=candidate_url,
        summary=summary,
        results=results,
        failures=failures,
    )


def _iso(ts: float) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(ts))
