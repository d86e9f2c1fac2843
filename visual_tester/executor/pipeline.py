"""Execution pipeline — capture one test's page and compare it, with retries."""

from __future__ import annotations

import logging
import time

from visual_tester.comparison.comparator import BaselineComparator
from visual_tester.comparison.store import SnapshotStore
from visual_tester.models.config import RunnerConfig
from visual_tester.models.test_case import TestCase, TestOptions
from visual_tester.models.test_result import (
    FAIL_TO_MATCH,
    FAIL_TO_RUN,
    ComparisonOutcome,
    FailureRecord,
    TestOutcome,
)
from visual_tester.reporter.base import Reporter
from visual_tester.url_utils import build_page_url, snapshot_filename

from .page_actions import capture, disable_css_animations, navigate
from .session import SessionLease, SessionManager

logger = logging.getLogger(__name__)


class ExecutionPipeline:
    """Runs a single test: navigate, capture, compare.

    Any exception during an attempt triggers a retry with a fresh page,
    after asking the session manager to replace the browser. Retries are
    counted per call, so one flaky test cannot use up another test's retries.
    A visual mismatch is a verdict and is never retried.
    """

    def __init__(
        self,
        config: RunnerConfig,
        sessions: SessionManager,
        store: SnapshotStore,
        comparator: BaselineComparator,
        reporter: Reporter,
    ):
        self.config = config
        self.sessions = sessions
        self.store = store
        self.comparator = comparator
        self.reporter = reporter

    async def run(self, test: TestCase, index: int, options: TestOptions | None = None) -> TestOutcome:
        """Run ``test`` with resolved ``options`` (defaults to the test's own)."""
        if options is None:
            options = test.options
        name = options.name or test.url
        image_name = snapshot_filename(test.url, index)
        retries = 0

        while True:
            generation = None
            start = time.time()
            try:
                async with self.sessions.lease() as lease:
                    generation = lease.generation
                    comparison = await self._attempt(lease, test, image_name, options)
            except Exception as e:
                if retries < self.config.retries:
                    retries += 1
                    logger.warning("Test %s failed on attempt %d: %s", name, retries, e)
                    await self._recover(generation)
                    self.reporter.retry(test.url, retries)
                    continue

                self.reporter.error(f"Failed to run {test.url} after {retries} retries with error", e)
                return TestOutcome(
                    url=test.url,
                    test_name=name,
                    image_name=image_name,
                    attempts=retries + 1,
                    failure=FailureRecord(
                        test_name=name,
                        url=test.url,
                        kind=FAIL_TO_RUN,
                        detail=f"{type(e).__name__}: {e}",
                    ),
                )

            logger.debug("Test %s finished in %.1fs (%s)", name, time.time() - start, comparison.status)
            return self._settle(test, name, image_name, retries + 1, comparison)

    async def _recover(self, generation: int | None) -> None:
        try:
            await self.sessions.respawn(generation)
        except Exception as e:
            # The next attempt fails fast on the missing session and is counted
            logger.error("Browser respawn failed: %s", e)

    async def _attempt(
        self, lease: SessionLease, test: TestCase, image_name: str, options: TestOptions,
    ) -> ComparisonOutcome:
        page = await lease.new_page()
        try:
            url = build_page_url(options.base_url or self.config.base_url, test.url)
            logger.debug("Navigating to %s", url)
            await navigate(page, url, self.config.browser.navigation_timeout_ms)

            if options.ignore_css_animations:
                await disable_css_animations(page)

            await capture(page, self.store.current_path(image_name), options)
            return await self.comparator.compare(image_name, options)
        finally:
            await page.close()

    def _settle(
        self, test: TestCase, name: str, image_name: str, attempts: int, comparison: ComparisonOutcome,
    ) -> TestOutcome:
        outcome = TestOutcome(
            url=test.url,
            test_name=name,
            image_name=image_name,
            attempts=attempts,
            comparison=comparison,
        )
        if comparison.passed:
            self.reporter.test_passed(test.url)
            return outcome

        self.reporter.test_failed(test.url, comparison.mismatch_percentage)
        outcome.failure = FailureRecord(
            test_name=name,
            url=test.url,
            kind=FAIL_TO_MATCH,
            detail=f"Mismatch {comparison.mismatch_percentage:.4f}%",
            filename=image_name,
            mismatch_percentage=comparison.mismatch_percentage,
        )
        return outcome
