"""Page actions performed before and during capture."""

from __future__ import annotations

import inspect
import logging
from pathlib import Path

from playwright.async_api import Page

from visual_tester.models.test_case import TestOptions

logger = logging.getLogger(__name__)

# Zero out transitions/animations and hide the text caret so captures are stable
DISABLE_ANIMATIONS_CSS = """
*,
*::after,
*::before {
    transition-delay: 0s !important;
    transition-duration: 0s !important;
    animation-delay: -0.0001s !important;
    animation-duration: 0s !important;
    animation-play-state: paused !important;
    caret-color: transparent !important;
    color-adjust: exact !important;
}
"""

# Opacity 0 keeps the element in layout, unlike removing it from the DOM
_SOFT_HIDE_JS = """
(selector) => {
    for (const element of document.querySelectorAll(selector)) {
        element.style.opacity = "0";
    }
}
"""


async def navigate(page: Page, url: str, timeout_ms: int) -> None:
    """Go to ``url`` and wait for both DOM-ready and load."""
    await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    await page.wait_for_load_state("load", timeout=timeout_ms)


async def disable_css_animations(page: Page) -> None:
    await page.add_style_tag(content=DISABLE_ANIMATIONS_CSS)


async def soft_hide(page: Page, selector: str) -> None:
    """Make every element matching ``selector`` invisible without removing it."""
    logger.debug("Hiding elements matching %s", selector)
    await page.evaluate(_SOFT_HIDE_JS, selector)


async def run_before_hook(page: Page, options: TestOptions) -> None:
    if options.before is None:
        return
    result = options.before(page)
    if inspect.isawaitable(result):
        await result


async def capture(page: Page, path: Path, options: TestOptions) -> None:
    """Screenshot the element matched by the capture selector, or the full page.

    With a selector: run the ``before`` hook, wait for the selector, soft-hide
    ``hide_selectors`` and clip to the element's bounding box.
    """
    if not options.selector:
        await page.screenshot(path=str(path), full_page=True)
        return

    await run_before_hook(page, options)
    await page.wait_for_selector(options.selector)
    element = await page.query_selector(options.selector)
    if element is None:
        raise LookupError(f"Selector '{options.selector}' matched no element")

    for hide_selector in options.hide_selectors:
        await soft_hide(page, hide_selector)

    clip = await element.bounding_box()
    if clip is None:
        raise LookupError(f"Element '{options.selector}' is not visible")
    await page.screenshot(path=str(path), clip=clip)
