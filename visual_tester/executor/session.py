"""Session manager — owns the shared browser and serializes its replacement."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright

from visual_tester.models.config import BrowserConfig
from visual_tester.utils.browser import create_isolated_context, launch_browser

logger = logging.getLogger(__name__)


class SessionUnavailableError(RuntimeError):
    """Raised when a page is requested while no browser is running."""


@dataclass
class SessionLease:
    """Read access to the session handle that was current when the lease was taken."""

    browser: Browser
    context: Optional[BrowserContext]
    generation: int
    viewport: dict

    async def new_page(self) -> Page:
        if self.context is not None:
            return await self.context.new_page()
        return await self.browser.new_page(viewport=self.viewport)


class SessionManager:
    """Holds exactly one live browser (plus an optional shared isolated context).

    Tests use the browser through :meth:`lease`. A replacement requested via
    :meth:`respawn` blocks new leases and waits for in-flight ones to finish
    before closing the old browser, so a retry never pulls a page out from
    under a sibling test. Each replacement bumps :attr:`generation`.
    """

    def __init__(self, playwright: Playwright, config: BrowserConfig, isolated_context: bool = False):
        self._playwright = playwright
        self.config = config
        self.isolated_context = isolated_context

        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self.generation = 0

        self._cond = asyncio.Condition()
        self._leases = 0
        self._respawning = False

    @property
    def browser(self) -> Browser | None:
        return self._browser

    @property
    def context(self) -> BrowserContext | None:
        return self._context

    async def spawn(self) -> Browser:
        """Close any existing browser, then launch a new one."""
        try:
            await self.close_all()
        except Exception as e:
            # A crashed browser can fail to close; the replacement still proceeds
            logger.warning("Previous browser did not close cleanly: %s", e)
        logger.debug("Launching Chromium (headless=%s)...", self.config.headless)
        browser = await launch_browser(self._playwright, self.config)
        context = None
        if self.isolated_context:
            context = await create_isolated_context(browser, self.config)
        self._browser = browser
        self._context = context
        self.generation += 1
        logger.info("Browser session %d ready", self.generation)
        return browser

    async def close_all(self) -> None:
        """Close the browser if one is running."""
        browser, self._browser = self._browser, None
        context, self._context = self._context, None
        if context is not None:
            try:
                await context.close()
            except Exception as e:
                logger.debug("Closing isolated context failed: %s", e)
        if browser is not None:
            logger.debug("Closing browser session %d", self.generation)
            await browser.close()

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[SessionLease]:
        """Borrow the current browser for the duration of one test attempt."""
        async with self._cond:
            await self._cond.wait_for(lambda: not self._respawning)
            if self._browser is None:
                raise SessionUnavailableError("No browser session is running")
            self._leases += 1
            lease = SessionLease(
                browser=self._browser,
                context=self._context,
                generation=self.generation,
                viewport={
                    "width": self.config.viewport.width,
                    "height": self.config.viewport.height,
                },
            )
        try:
            yield lease
        finally:
            async with self._cond:
                self._leases -= 1
                self._cond.notify_all()

    async def respawn(self, generation: int | None) -> bool:
        """Replace the browser if it is still the one ``generation`` refers to.

        Returns True when this call performed the replacement, False when
        another task already replaced it.
        """
        async with self._cond:
            if self._respawning:
                await self._cond.wait_for(lambda: not self._respawning)
                return False
            if generation is not None and generation != self.generation and self._browser is not None:
                logger.debug("Session %s already replaced by %d", generation, self.generation)
                return False
            self._respawning = True

        try:
            async with self._cond:
                await self._cond.wait_for(lambda: self._leases == 0)
            logger.info("Respawning browser session (was %d)", self.generation)
            await self.spawn()
        finally:
            async with self._cond:
                self._respawning = False
                self._cond.notify_all()
        return True
