"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from visual_tester.comparison.store import SnapshotStore
from visual_tester.models.config import BrowserConfig, RunnerConfig
from visual_tester.models.test_result import FailureRecord, RunSummary
from visual_tester.reporter.base import Reporter


# ============================================================================
# Image Helpers
# ============================================================================


def make_png(width: int = 4, height: int = 4, color=(255, 255, 255), dots=None) -> bytes:
    """Build a PNG of a solid color, with optional {(x, y): color} overrides."""
    img = Image.new("RGB", (width, height), color)
    for (x, y), dot_color in (dots or {}).items():
        img.putpixel((x, y), dot_color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png():
    """Expose the PNG builder to tests."""
    return make_png


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def runner_config(tmp_path: Path) -> RunnerConfig:
    """Create a config whose image directories live under tmp_path."""
    return RunnerConfig(
        base_url="https://example.com",
        base_path=str(tmp_path / "base"),
        current_path=str(tmp_path / "current"),
        diff_path=str(tmp_path / "diff"),
        retries=2,
        browser=BrowserConfig(headless=True, navigation_timeout_ms=5000),
    )


@pytest.fixture
def store(runner_config: RunnerConfig) -> SnapshotStore:
    """Create a prepared snapshot store."""
    s = SnapshotStore(runner_config.base_path, runner_config.current_path, runner_config.diff_path)
    s.prepare()
    return s


# ============================================================================
# Reporter Fixtures
# ============================================================================


class RecordingReporter(Reporter):
    """Reporter that records every event instead of printing."""

    def __init__(self):
        super().__init__(console=Mock())
        self.events: list[tuple] = []

    def info(self, message: str) -> None:
        self.events.append(("info", message))

    def test_passed(self, url: str) -> None:
        self.events.append(("pass", url))

    def test_failed(self, url: str, mismatch: float) -> None:
        self.events.append(("fail", url, mismatch))

    def retry(self, url: str, attempt: int) -> None:
        self.events.append(("retry", url, attempt))

    def error(self, message: str, err: BaseException) -> None:
        self.events.append(("error", message, str(err)))

    def report(self, failures: list[FailureRecord], summary: RunSummary) -> None:
        self.events.append(("report", list(failures), summary))

    def of_kind(self, kind: str) -> list[tuple]:
        return [e for e in self.events if e[0] == kind]


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


# ============================================================================
# Playwright Fixtures
# ============================================================================


def make_mock_page(screenshot_bytes: bytes | None = None, box=None):
    """Create an AsyncMock page. screenshot() writes ``screenshot_bytes`` to its path."""
    page = AsyncMock()
    element = AsyncMock()
    element.bounding_box = AsyncMock(
        return_value=box or {"x": 0, "y": 0, "width": 4, "height": 4}
    )
    page.query_selector = AsyncMock(return_value=element)
    page.element = element

    async def _screenshot(path=None, **kwargs):
        if screenshot_bytes is not None and path:
            Path(path).write_bytes(screenshot_bytes)
        return screenshot_bytes or b""

    page.screenshot = AsyncMock(side_effect=_screenshot)
    return page


def make_mock_browser(page_factory=None):
    """Create an AsyncMock browser whose new_page() returns pages from ``page_factory``."""
    browser = AsyncMock()
    factory = page_factory or make_mock_page
    browser.new_page = AsyncMock(side_effect=lambda **kwargs: factory())
    return browser
