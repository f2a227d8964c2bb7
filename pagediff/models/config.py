"""Configuration models for the visual comparison pipeline."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class CaptureConfig(BaseModel):
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    image_format: Literal["png", "jpeg"] = "png"
    jpeg_quality: int = Field(default=100, ge=1, le=100)
    full_page: bool = True
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "networkidle"
    navigation_timeout_ms: int = 60000
    settle_ms: int = 3000
    scroll_to_bottom: bool = True
    consent_selector: Optional[str] = None
    style_overrides: Optional[str] = None  # CSS injected before the screenshot
    headless: bool = True
    user_agent: Optional[str] = None
    storage_state: Optional[str] = None  # path to a saved Playwright storage state

    @field_validator("storage_state", mode="before")
    @classmethod
    def resolve_env_storage_state(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v

    @property
    def extension(self) -> str:
        return "jpg" if self.image_format == "jpeg" else "png"


class RetryConfig(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=0.0, ge=0.0)


class RunConfig(BaseModel):
    # Environments
    baseline_url: str
    candidate_url: str

    # Input
    input_file: str = "urls.xlsx"

    # Artifacts
    screenshot_dir: str = "./screenshots"
    clean_output_dirs: bool = True

    # Execution
    concurrency: int = Field(default=5, ge=1)
    pool_size: Optional[int] = Field(default=None, ge=1)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    resource_wait_warning_seconds: float = 30.0

    # Comparison
    threshold: float = Field(default=0.1, ge=0.0, le=1.0)

    # Capture
    capture: CaptureConfig = Field(default_factory=CaptureConfig)

    # Reporting
    report_formats: list[str] = Field(default_factory=lambda: ["html", "json"])
    report_output_dir: str = "./reports"

    @field_validator("baseline_url", "candidate_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("Base URL must not be empty")
        return v

    def model_post_init(self, __context) -> None:
        if self.pool_size is None:
            self.pool_size = self.concurrency

    @property
    def baseline_dir(self) -> Path:
        return Path(self.screenshot_dir) / "baseline"

    @property
    def candidate_dir(self) -> Path:
        return Path(self.screenshot_dir) / "candidate"

    @property
    def diff_dir(self) -> Path:
        return Path(self.screenshot_dir) / "diff"

    @classmethod
    def load(cls, path: str | Path) -> "RunConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
