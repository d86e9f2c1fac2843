"""Configuration models for the visual tester."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class BrowserConfig(BaseModel):
    headless: bool = True
    args: list[str] = Field(default_factory=lambda: ["--disable-dev-shm-usage"])
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    navigation_timeout_ms: int = 30000


class DiffConfig(BaseModel):
    # Per-channel delta (0-255) tolerated before a pixel counts as mismatched
    pixel_tolerance: int = 16

    @field_validator("pixel_tolerance")
    @classmethod
    def check_tolerance(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("pixel_tolerance must be between 0 and 255")
        return v


class RunnerConfig(BaseModel):
    # Target
    base_url: str = "http://localhost:3000"

    # Image directories
    base_path: str = "./visual-tests/base"
    current_path: str = "./visual-tests/current"
    diff_path: str = "./visual-tests/diff"

    # Capture
    selector: str = ""

    # Run modes
    overwrite: bool = False
    isolated_context: bool = False
    test_groups: list[str] = Field(default_factory=list)
    retries: int = 3
    open_browser: bool = False

    # Reporting
    reporter: Literal["dot", "console"] = "dot"

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)

    @field_validator("retries")
    @classmethod
    def check_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("retries must not be negative")
        return v

    def model_post_init(self, __context) -> None:
        if self.open_browser:
            self.browser.headless = False

    @classmethod
    def load(cls, path: str | Path) -> "RunnerConfig":
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
