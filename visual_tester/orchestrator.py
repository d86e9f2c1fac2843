"""Run coordinator — registers tests, prepares a run, dispatches and aggregates."""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, Mapping, Union

from playwright.async_api import async_playwright

from visual_tester.comparison.comparator import BaselineComparator
from visual_tester.comparison.store import SnapshotStore
from visual_tester.executor.pipeline import ExecutionPipeline
from visual_tester.executor.session import SessionManager
from visual_tester.models.config import RunnerConfig
from visual_tester.models.test_case import TestCase, TestGroup, TestOptions
from visual_tester.models.test_result import FailureRecord, RunResult, RunSummary, TestOutcome
from visual_tester.registry.options import resolve_options
from visual_tester.registry.test_registry import TestRegistry
from visual_tester.reporter.base import Reporter
from visual_tester.reporter.reporter import create_reporter

logger = logging.getLogger(__name__)

# Test options may be given directly or produced by a zero-argument factory
Setup = Union[Mapping[str, Any], TestOptions, Callable[[], Mapping[str, Any]], None]


class RunState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    DISPATCHING = "dispatching"
    AGGREGATING = "aggregating"
    DONE = "done"


def _parse_setup(setup: Setup) -> TestOptions:
    if callable(setup):
        setup = setup()
    if setup is None:
        return TestOptions()
    if isinstance(setup, TestOptions):
        return setup
    return TestOptions.model_validate(dict(setup))


class Runner:
    """Public entry point: declare tests with ``it``/``fit``/``xit``/``group``, then ``run``."""

    def __init__(self, config: RunnerConfig | None = None, reporter: Reporter | None = None):
        self.config = config or RunnerConfig()
        self.reporter = reporter or create_reporter(self.config.reporter)
        self.registry = TestRegistry()
        self.store = SnapshotStore(
            self.config.base_path, self.config.current_path, self.config.diff_path,
        )
        self.global_options = TestOptions()
        self.custom_spec_options = TestOptions()
        self.state = RunState.IDLE
        self.failures: list[FailureRecord] = []
        self.sessions: SessionManager | None = None

    # -- registration ---------------------------------------------------

    def it(self, url: str, setup: Setup = None) -> TestCase:
        """Declare a normal test."""
        return self.registry.register_normal(url, _parse_setup(setup))

    def fit(self, url: str, setup: Setup = None) -> TestCase:
        """Declare a focused test; when any exist, only focused tests run."""
        return self.registry.register_focused(url, _parse_setup(setup))

    def xit(self, url: str, setup: Setup = None) -> TestCase:
        """Declare an ignored test; normal tests with the same URL are skipped."""
        return self.registry.register_ignored(url, _parse_setup(setup))

    def group(self, group: TestGroup | Mapping[str, Any]) -> list[TestCase]:
        if not isinstance(group, TestGroup):
            group = TestGroup.model_validate(dict(group))
        self.reporter.info(f"Created test group '{group.name}'. Tests count: {len(group.tests)}")
        return self.registry.register_group(group, self.config.test_groups)

    def setup(self, options: Setup) -> None:
        """Set global default options, layered over the config's base URL and selector."""
        self.global_options = _parse_setup(options)

    def spec_options(self, options: Setup) -> None:
        """Set run-level default options, applied under every test's own options."""
        self.custom_spec_options = _parse_setup(options)

    def tests(self) -> list[TestCase]:
        return self.registry.effective_set()

    def resolve(self, test: TestCase) -> TestOptions:
        config_defaults: dict[str, Any] = {"base_url": self.config.base_url}
        if self.config.selector:
            config_defaults["selector"] = self.config.selector
        global_defaults = {
            **config_defaults,
            **self.global_options.model_dump(exclude_unset=True),
        }
        return resolve_options(global_defaults, self.custom_spec_options, test.options)

    # -- running ----------------------------------------------------------

    def run_sync(self) -> RunResult:
        return asyncio.run(self.run())

    async def run(self) -> RunResult:
        """Execute every selected test and return the aggregated result."""
        start = time.time()
        tests = self.tests()
        if not tests:
            self.reporter.info("No tests found")
            self.state = RunState.DONE
            return RunResult(exit_code=0)

        self.state = RunState.PREPARING
        self.failures = []
        self._prepare_directories()

        skipped = len(self.registry.ignored)
        self.reporter.info(
            f"Prepare to run {len(tests)} tests"
            + (f", skipping {skipped} tests" if skipped else "")
        )
        if self.config.overwrite:
            self.reporter.info("Overwriting base images")

        outcomes: list[TestOutcome] = []
        async with async_playwright() as p:
            self.sessions = SessionManager(p, self.config.browser, self.config.isolated_context)
            try:
                await self.sessions.spawn()
                self.state = RunState.DISPATCHING
                outcomes = await self._dispatch(tests)
            finally:
                self.state = RunState.AGGREGATING
                await self.sessions.close_all()

        result = self._aggregate(tests, outcomes, time.time() - start)
        self.reporter.info(f"Run for {result.duration_seconds}s.")
        self.reporter.info("No more tests to work with, closing connection...")
        self.state = RunState.DONE
        return result

    def _prepare_directories(self) -> None:
        logger.debug("Preparing %s, %s, %s",
                     self.store.base_dir, self.store.current_dir, self.store.diff_dir)
        self.store.prepare()

    async def _dispatch(self, tests: list[TestCase]) -> list[TestOutcome]:
        comparator = BaselineComparator(self.store, self.config.diff, overwrite=self.config.overwrite)
        pipeline = ExecutionPipeline(self.config, self.sessions, self.store, comparator, self.reporter)

        tasks = [
            asyncio.create_task(pipeline.run(test, index, self.resolve(test)))
            for index, test in enumerate(tests)
        ]
        outcomes = []
        for finished in asyncio.as_completed(tasks):
            outcome = await finished
            outcomes.append(outcome)
            if outcome.failure is not None:
                self.failures.append(outcome.failure)
        return outcomes

    def _aggregate(self, tests: list[TestCase], outcomes: list[TestOutcome], duration: float) -> RunResult:
        summary = RunSummary(
            total=len(self.registry.normal),
            skipped=len(self.registry.ignored),
            focused=len(self.registry.focused),
            failed=len(self.failures),
            passed=len(tests) - len(self.failures),
        )
        self.reporter.report(self.failures, summary)

        exit_code = 1 if self.failures else 0
        logger.info("Run complete: %d passed, %d failed in %.1fs",
                    summary.passed, summary.failed, duration)
        return RunResult(
            summary=summary,
            failures=list(self.failures),
            outcomes=outcomes,
            duration_seconds=round(duration, 3),
            exit_code=exit_code,
        )
