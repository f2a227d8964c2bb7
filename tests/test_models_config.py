"""Tests for configuration models."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from pagediff.models.config import CaptureConfig, RetryConfig, RunConfig, ViewportConfig


class TestCaptureConfig:
    """Tests for CaptureConfig model."""

    def test_default_values(self):
        config = CaptureConfig()
        assert config.viewport == ViewportConfig(width=1280, height=720)
        assert config.image_format == "png"
        assert config.full_page is True
        assert config.wait_until == "networkidle"
        assert config.navigation_timeout_ms == 60000
        assert config.settle_ms == 3000
        assert config.consent_selector is None
        assert config.storage_state is None

    def test_extension_follows_format(self):
        assert CaptureConfig().extension == "png"
        assert CaptureConfig(image_format="jpeg").extension == "jpg"

    def test_rejects_unknown_format(self):
        with pytest.raises(ValidationError):
            CaptureConfig(image_format="webp")

    def test_storage_state_from_env(self, monkeypatch):
        monkeypatch.setenv("PAGEDIFF_SESSION", "/tmp/session.json")
        config = CaptureConfig(storage_state="env:PAGEDIFF_SESSION")
        assert config.storage_state == "/tmp/session.json"

    def test_storage_state_missing_env(self, monkeypatch):
        monkeypatch.delenv("PAGEDIFF_MISSING", raising=False)
        with pytest.raises(ValidationError, match="PAGEDIFF_MISSING"):
            CaptureConfig(storage_state="env:PAGEDIFF_MISSING")


class TestRetryConfig:
    """Tests for RetryConfig model."""

    def test_defaults(self):
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.backoff_seconds == 0.0

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValidationError):
            RetryConfig(max_attempts=0)


class TestRunConfig:
    """Tests for RunConfig model."""

    def test_minimal(self):
        config = RunConfig(baseline_url="https://example.com", candidate_url="http://localhost:3000")
        assert config.concurrency == 5
        assert config.pool_size == 5
        assert config.threshold == 0.1
        assert config.report_formats == ["html", "json"]

    def test_pool_size_follows_concurrency(self):
        config = RunConfig(baseline_url="https://a.com", candidate_url="https://b.com", concurrency=2)
        assert config.pool_size == 2

    def test_explicit_pool_size(self):
        config = RunConfig(baseline_url="https://a.com", candidate_url="https://b.com",
                           concurrency=4, pool_size=2)
        assert config.pool_size == 2

    def test_trailing_slash_stripped(self):
        config = RunConfig(baseline_url="https://a.com/", candidate_url=" https://b.com// ")
        assert config.baseline_url == "https://a.com"
        assert config.candidate_url == "https://b.com"

    def test_empty_url_rejected(self):
        with pytest.raises(ValidationError):
            RunConfig(baseline_url="", candidate_url="https://b.com")

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_threshold_bounds(self, threshold):
        with pytest.raises(ValidationError):
            RunConfig(baseline_url="https://a.com", candidate_url="https://b.com", threshold=threshold)

    def test_concurrency_must_be_positive(self):
        with pytest.raises(ValidationError):
            RunConfig(baseline_url="https://a.com", candidate_url="https://b.com", concurrency=0)

    def test_artifact_dirs(self):
        config = RunConfig(baseline_url="https://a.com", candidate_url="https://b.com",
                           screenshot_dir="shots")
        assert config.baseline_dir == Path("shots") / "baseline"
        assert config.candidate_dir == Path("shots") / "candidate"
        assert config.diff_dir == Path("shots") / "diff"


class TestRunConfigPersistence:
    """Tests for loading and saving RunConfig."""

    def test_save_and_load(self, run_config: RunConfig, tmp_path: Path):
        path = tmp_path / "nested" / "config.json"
        run_config.save(path)
        loaded = RunConfig.load(path)
        assert loaded == run_config

    def test_saved_file_is_json(self, temp_config_file: Path):
        data = json.loads(temp_config_file.read_text())
        assert data["baseline_url"] == "https://www.example.com"
        assert data["retry"]["max_attempts"] == 3

    def test_load_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            RunConfig.load(tmp_path / "missing.json")
