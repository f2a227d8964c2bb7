"""Tests for result aggregation."""

import pytest

from pagediff.models.results import ArtifactPaths, ComparisonResult, TaskFailure
from pagediff.reporter.aggregator import NoResults, aggregate, partition_outcomes, summarize

START = 1_700_000_000.0


def _result(target: str, pixels: int = 0, duration: float = 1.0) -> ComparisonResult:
    return ComparisonResult(
        target=target,
        diff_pixel_count=pixels,
        duration_seconds=duration,
        artifact_paths=ArtifactPaths(baseline="b", candidate="c", diff="d"),
    )


def _failure(target: str) -> TaskFailure:
    return TaskFailure(target=target, reason="CaptureError: timeout", attempts=3)


class TestPartitionOutcomes:
    """Tests for splitting outcomes."""

    def test_splits_and_keeps_order(self):
        outcomes = [_result("/a"), _failure("/x"), _result("/b"), _failure("/y")]
        results, failures = partition_outcomes(outcomes)
        assert [r.target for r in results] == ["/a", "/b"]
        assert [f.target for f in failures] == ["/x", "/y"]


class TestSummarize:
    """Tests for summary counts and timing."""

    def test_counts(self):
        results = [_result("/a"), _result("/b", pixels=500), _result("/c", pixels=1)]
        summary = summarize(results, [_failure("/z")], START, START + 12.5)
        assert summary.total_urls == 3
        assert summary.matched == 1
        assert summary.mismatched == 2
        assert summary.failed == 1
        assert summary.total_duration_seconds == 12.5

    def test_average_over_successes_only(self):
        results = [_result("/a", duration=1.0), _result("/b", duration=2.5)]
        summary = summarize(results, [_failure("/z")], START, START + 10)
        assert summary.average_duration_seconds == 1.75

    def test_timestamps_are_iso_utc(self):
        summary = summarize([_result("/a")], [], START, START + 60)
        assert summary.started_at == "2023-11-14T22:13:20Z"
        assert summary.completed_at == "2023-11-14T22:14:20Z"

    def test_no_results_raises(self):
        failures = [_failure("/c"), _failure("/d")]
        with pytest.raises(NoResults) as exc_info:
            summarize([], failures, START, START + 1)
        assert exc_info.value.failures == failures
        assert "2 target(s) failed" in str(exc_info.value)

    def test_empty_run_raises(self):
        with pytest.raises(NoResults):
            summarize([], [], START, START)


class TestAggregate:
    """Tests for building the run report."""

    def test_report_fields(self):
        outcomes = [_result("/a"), _result("/b", pixels=500), _failure("/c")]
        report = aggregate(
            outcomes, run_id="run_1234abcd",
            baseline_url="https://www.example.com", candidate_url="https://dev.example.com",
            started_at=START, completed_at=START + 5,
        )
        assert report.run_id == "run_1234abcd"
        assert report.summary.total_urls == 2
        assert [r.target for r in report.results] == ["/a", "/b"]
        assert [f.target for f in report.failures] == ["/c"]

    def test_failed_targets_not_counted_as_compared(self):
        report = aggregate(
            [_failure("/c"), _result("/a")], "r", "b", "c", START, START + 1,
        )
        assert report.summary.total_urls == 1
        assert report.summary.failed == 1

    def test_all_failed_raises(self):
        with pytest.raises(NoResults):
            aggregate([_failure("/c")], "r", "b", "c", START, START + 1)
