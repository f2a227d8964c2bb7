"""Comparison result data structures produced by the pipeline."""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, Field, model_validator


class ArtifactPaths(BaseModel):
    baseline: str
    candidate: str
    diff: str


class ComparisonResult(BaseModel):
    """Outcome of a target whose capture and diff completed."""
    target: str
    matched: bool = False
    diff_pixel_count: int = Field(ge=0)
    duration_seconds: float = 0.0
    artifact_paths: ArtifactPaths
    attempts: int = 1
    width: int = 0
    height: int = 0

    @model_validator(mode="after")
    def derive_matched(self) -> "ComparisonResult":
        self.matched = self.diff_pixel_count == 0
        return self


class TaskFailure(BaseModel):
    """Terminal failure record for a target that exhausted its attempts."""
    target: str
    reason: str
    attempts: int


TaskOutcome = Union[ComparisonResult, TaskFailure]


class RunSummary(BaseModel):
    total_urls: int
    matched: int = 0
    mismatched: int = 0
    failed: int = 0
    average_duration_seconds: float
    total_duration_seconds: float
    started_at: str
    completed_at: str


class RunReport(BaseModel):
    run_id: str
    baseline_url: str
    candidate_url: str
    summary: RunSummary
    results: list[ComparisonResult] = Field(default_factory=list)
    failures: list[TaskFailure] = Field(default_factory=list)
