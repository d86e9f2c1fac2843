"""Browser utilities — launch Chromium and open contexts for capture."""

from __future__ import annotations

from playwright.async_api import Browser, BrowserContext, Playwright

from visual_tester.models.config import BrowserConfig


async def launch_browser(playwright: Playwright, config: BrowserConfig) -> Browser:
    """Launch Chromium with the configured flags and headless mode."""
    return await playwright.chromium.launch(
        headless=config.headless,
        args=list(config.args),
    )


async def create_isolated_context(browser: Browser, config: BrowserConfig) -> BrowserContext:
    """Create a fresh incognito-style context sized to the configured viewport."""
    return await browser.new_context(
        viewport={"width": config.viewport.width, "height": config.viewport.height},
    )
